"""AST Adapter: normalizes a parser front-end tree into the engine's Node model."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from design_guide_linter.domain.errors import MalformedInputError
from design_guide_linter.domain.nodes import AttributeValue, Node, NodeKind, SourceRange

_LITERAL_TYPES = (str, int, float, bool, type(None))


@dataclass(frozen=True)
class KindShape:
    """Mandatory shape of one node kind."""

    min_children: int = 0
    required_attributes: tuple[str, ...] = ()
    child_kinds: tuple[NodeKind | None, ...] = ()
    """Expected kind per leading child position; None means any kind."""


KIND_SHAPES: Mapping[NodeKind, KindShape] = MappingProxyType(
    {
        NodeKind.SOURCE_FILE: KindShape(),
        NodeKind.MODULE: KindShape(required_attributes=("name",)),
        NodeKind.FUNCTION: KindShape(
            2, ("name", "visibility"), (NodeKind.PARAMS, NodeKind.BLOCK)
        ),
        NodeKind.PARAMS: KindShape(),
        NodeKind.BLOCK: KindShape(),
        NodeKind.IMPORT: KindShape(required_attributes=("module",)),
        NodeKind.ALIAS: KindShape(required_attributes=("module",)),
        NodeKind.REQUIRE: KindShape(required_attributes=("module",)),
        NodeKind.USE: KindShape(required_attributes=("module",)),
        NodeKind.MODULE_ATTRIBUTE: KindShape(required_attributes=("name",)),
        NodeKind.CALL: KindShape(required_attributes=("name",)),
        NodeKind.PIPE: KindShape(2, child_kinds=(None, NodeKind.CALL)),
        NodeKind.WITH: KindShape(2, child_kinds=(NodeKind.WITH_CLAUSE,)),
        NodeKind.WITH_CLAUSE: KindShape(2),
        NodeKind.ELSE: KindShape(),
        NodeKind.CASE: KindShape(1),
        NodeKind.COND: KindShape(),
        NodeKind.IF: KindShape(2, child_kinds=(None, NodeKind.BLOCK)),
        NodeKind.BRANCH: KindShape(2),
        NodeKind.FN: KindShape(),
        NodeKind.MATCH: KindShape(2),
        NodeKind.TUPLE: KindShape(),
        NodeKind.LIST: KindShape(),
        NodeKind.KEYWORD: KindShape(),
        NodeKind.MAP: KindShape(),
        NodeKind.STRUCT: KindShape(required_attributes=("name",)),
        NodeKind.PAIR: KindShape(2),
        NodeKind.ATOM: KindShape(required_attributes=("value",)),
        NodeKind.LITERAL: KindShape(required_attributes=("value",)),
        NodeKind.VAR: KindShape(required_attributes=("name",)),
        NodeKind.ACCESS: KindShape(2),
        NodeKind.BINARY_OP: KindShape(2, ("operator",)),
        NodeKind.UNARY_OP: KindShape(1, ("operator",)),
        NodeKind.DEFAULT: KindShape(2),
        NodeKind.RAISE: KindShape(),
    }
)

_ONLY_CHILDREN: Mapping[NodeKind, frozenset[NodeKind]] = MappingProxyType(
    {
        NodeKind.SOURCE_FILE: frozenset({NodeKind.MODULE}),
        NodeKind.ELSE: frozenset({NodeKind.BRANCH}),
        NodeKind.COND: frozenset({NodeKind.BRANCH}),
        NodeKind.FN: frozenset({NodeKind.BRANCH}),
        NodeKind.KEYWORD: frozenset({NodeKind.PAIR}),
        NodeKind.MAP: frozenset({NodeKind.PAIR}),
        NodeKind.STRUCT: frozenset({NodeKind.PAIR}),
    }
)

_DEFAULT_SPAN = (1, 1, 1, 1)


class NodeAdapter:
    """
    Converts raw mappings (as decoded from the front-end's JSON dump) into Nodes.

    Side-effect free and deterministic. Raises MalformedInputError on any
    vocabulary or shape mismatch.
    """

    def normalize(self, raw_tree: object, file: str | None = None) -> Node:
        """Normalize a raw tree. The file comes from the argument or the root's `file` attribute."""
        if not isinstance(raw_tree, Mapping):
            raise MalformedInputError("Raw tree root must be a mapping")
        if file is None:
            attrs = raw_tree.get("attributes") or {}
            candidate = attrs.get("file") if isinstance(attrs, Mapping) else None
            if not isinstance(candidate, str) or not candidate:
                raise MalformedInputError("Raw tree does not name its source file")
            file = candidate
        return self._convert(raw_tree, file, _DEFAULT_SPAN, path="$")

    def _convert(
        self,
        raw: Mapping[str, object],
        file: str,
        parent_span: tuple[int, int, int, int],
        path: str,
    ) -> Node:
        kind = self._kind(raw, path)
        coords = self._span(raw, parent_span, path)
        span = SourceRange(file, *coords)
        attributes = self._attributes(raw, path)
        raw_children = raw.get("children", [])
        if raw_children is None:
            raw_children = []
        if not isinstance(raw_children, list | tuple):
            raise MalformedInputError(f"{path}: children must be a list", span)
        children: list[Node] = []
        for index, raw_child in enumerate(raw_children):
            if not isinstance(raw_child, Mapping):
                raise MalformedInputError(f"{path}.children[{index}]: node must be a mapping", span)
            children.append(self._convert(raw_child, file, coords, f"{path}.children[{index}]"))
        self._validate_shape(kind, attributes, children, span, path)
        return Node(
            kind=kind,
            span=span,
            children=tuple(children),
            attributes=MappingProxyType(attributes),
        )

    @staticmethod
    def _kind(raw: Mapping[str, object], path: str) -> NodeKind:
        value = raw.get("kind")
        try:
            return NodeKind(value)
        except ValueError:
            raise MalformedInputError(f"{path}: unknown node kind {value!r}") from None

    @staticmethod
    def _span(
        raw: Mapping[str, object],
        parent_span: tuple[int, int, int, int],
        path: str,
    ) -> tuple[int, int, int, int]:
        source = raw.get("span", raw)
        if not isinstance(source, Mapping) or "line" not in source:
            return parent_span
        keys = ("line", "column", "end_line", "end_column")
        values: list[int] = []
        for key in keys:
            value = source.get(key)
            if value is None:
                value = values[0] if key == "end_line" else (values[1] if key == "end_column" else 1)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise MalformedInputError(f"{path}: span field {key} must be a non-negative int")
            values.append(value)
        return (values[0], values[1], values[2], values[3])

    @staticmethod
    def _attributes(raw: Mapping[str, object], path: str) -> dict[str, AttributeValue]:
        raw_attrs = raw.get("attributes") or {}
        if not isinstance(raw_attrs, Mapping):
            raise MalformedInputError(f"{path}: attributes must be a mapping")
        attributes: dict[str, AttributeValue] = {}
        for key, value in raw_attrs.items():
            if isinstance(value, list | tuple):
                if not all(isinstance(v, _LITERAL_TYPES) for v in value):
                    raise MalformedInputError(f"{path}: attribute {key!r} holds a non-literal item")
                attributes[str(key)] = tuple(value)
            elif isinstance(value, _LITERAL_TYPES):
                attributes[str(key)] = value
            else:
                raise MalformedInputError(f"{path}: attribute {key!r} is not a literal")
        return attributes

    @staticmethod
    def _validate_shape(
        kind: NodeKind,
        attributes: Mapping[str, AttributeValue],
        children: list[Node],
        span: SourceRange,
        path: str,
    ) -> None:
        shape = KIND_SHAPES[kind]
        if len(children) < shape.min_children:
            raise MalformedInputError(
                f"{path}: {kind.value} needs at least {shape.min_children} children", span
            )
        for attribute in shape.required_attributes:
            if attributes.get(attribute) in (None, ""):
                raise MalformedInputError(
                    f"{path}: {kind.value} is missing attribute {attribute!r}", span
                )
        for position, expected in enumerate(shape.child_kinds):
            if expected is not None and children[position].kind is not expected:
                raise MalformedInputError(
                    f"{path}: {kind.value} child {position} must be {expected.value}", span
                )
        allowed = _ONLY_CHILDREN.get(kind)
        if allowed is not None:
            stray = next((c for c in children if c.kind not in allowed), None)
            if stray is not None:
                raise MalformedInputError(
                    f"{path}: {stray.kind.value} not allowed inside {kind.value}", span
                )
        if kind is NodeKind.FUNCTION and attributes.get("visibility") not in ("public", "private"):
            raise MalformedInputError(f"{path}: function visibility must be public or private", span)
        if kind is NodeKind.WITH:
            NodeAdapter._validate_with(children, span, path)
        if kind is NodeKind.CASE and any(c.kind is not NodeKind.BRANCH for c in children[1:]):
            raise MalformedInputError(f"{path}: case arms must be branch nodes", span)

    @staticmethod
    def _validate_with(children: list[Node], span: SourceRange, path: str) -> None:
        clauses = [c for c in children if c.kind is NodeKind.WITH_CLAUSE]
        rest = children[len(clauses):]
        if not rest or rest[0].kind is not NodeKind.BLOCK:
            raise MalformedInputError(f"{path}: with needs a do block after its clauses", span)
        if len(rest) > 2 or (len(rest) == 2 and rest[1].kind is not NodeKind.ELSE):
            raise MalformedInputError(f"{path}: with accepts only an optional else after do", span)

    @staticmethod
    def locate(raw: object, file: str) -> SourceRange:
        """Best-effort span of a raw node that failed to normalize."""
        if isinstance(raw, Mapping):
            try:
                return SourceRange(file, *NodeAdapter._span(raw, _DEFAULT_SPAN, "$"))
            except MalformedInputError:
                pass
        return SourceRange(file, *_DEFAULT_SPAN)
