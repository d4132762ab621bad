"""Uniform node model the engine operates on. Built by NodeAdapter; immutable afterwards."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

LiteralValue = str | int | float | bool | None
AttributeValue = LiteralValue | tuple[LiteralValue, ...]


class NodeKind(Enum):
    """Node-kind vocabulary accepted from the parser front-end."""

    SOURCE_FILE = "source_file"
    MODULE = "module"
    FUNCTION = "function"
    PARAMS = "params"
    BLOCK = "block"
    IMPORT = "import"
    ALIAS = "alias"
    REQUIRE = "require"
    USE = "use"
    MODULE_ATTRIBUTE = "module_attribute"
    CALL = "call"
    PIPE = "pipe"
    WITH = "with"
    WITH_CLAUSE = "with_clause"
    ELSE = "else"
    CASE = "case"
    COND = "cond"
    IF = "if"
    BRANCH = "branch"
    FN = "fn"
    MATCH = "match"
    TUPLE = "tuple"
    LIST = "list"
    KEYWORD = "keyword"
    MAP = "map"
    STRUCT = "struct"
    PAIR = "pair"
    ATOM = "atom"
    LITERAL = "literal"
    VAR = "var"
    ACCESS = "access"
    BINARY_OP = "binary_op"
    UNARY_OP = "unary_op"
    DEFAULT = "default"
    RAISE = "raise"


@dataclass(frozen=True, order=True)
class SourceRange:
    """Location of a node in its source file. Used verbatim in violation output."""

    file: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def __str__(self) -> str:
        return f"{self.file}:{self.start_line}:{self.start_col}"


@dataclass(frozen=True, eq=False)
class Node:
    """
    One normalized tree node.

    Identity-compared; use Shapes.structurally_equal for span-insensitive
    comparison. Attributes are exposed through a read-only mapping.
    """

    kind: NodeKind
    span: SourceRange
    children: tuple[Node, ...] = ()
    attributes: Mapping[str, AttributeValue] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def attr(self, name: str, default: AttributeValue = None) -> AttributeValue:
        """Return an attribute value or default."""
        return self.attributes.get(name, default)

    @property
    def name(self) -> str:
        """Shortcut for the `name` attribute as a string ('' when absent)."""
        value = self.attributes.get("name")
        return value if isinstance(value, str) else ""

    def child_of_kind(self, kind: NodeKind) -> Node | None:
        """First direct child of the given kind, if any."""
        return next((c for c in self.children if c.kind is kind), None)

    def children_of_kind(self, kind: NodeKind) -> list[Node]:
        return [c for c in self.children if c.kind is kind]

    def walk(self, *, skip: frozenset[NodeKind] = frozenset()) -> Iterator[Node]:
        """
        Pre-order traversal of this subtree, self included.

        Subtrees rooted at a node whose kind is in ``skip`` are not entered
        (the root itself is always yielded).
        """
        stack: list[Node] = [self]
        while stack:
            node = stack.pop()
            yield node
            if node is not self and node.kind in skip:
                continue
            stack.extend(reversed(node.children))
