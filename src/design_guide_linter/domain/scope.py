"""Symbol/Scope Index: one forward pass over a module's top-level forms."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from design_guide_linter.domain.errors import DuplicateFunctionError, MalformedInputError
from design_guide_linter.domain.nodes import Node, NodeKind, SourceRange
from design_guide_linter.domain.shapes import Shapes

logger = logging.getLogger(__name__)

FunctionKey = tuple[str, int]

IMPORT_SELECTORS: frozenset[str] = frozenset({"functions", "macros"})
LOCAL_MODULE_ALIASES: frozenset[str] = frozenset({"__MODULE__"})


class Visibility(Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class ImportScope(Enum):
    MODULE_LEVEL = "module_level"
    FUNCTION_LEVEL = "function_level"


@dataclass(frozen=True)
class ImportDecl:
    """
    One `import` directive.

    ``restriction`` holds the name/arity keys of an `only:` list (None when
    there is no `only:`). ``selector`` is set instead for `only: :functions`
    or `only: :macros`, which restrict by kind rather than by name.
    """

    target_module: str
    scope: ImportScope
    restriction: frozenset[FunctionKey] | None
    span: SourceRange
    node: Node | None = field(default=None, compare=False, repr=False)
    selector: str | None = None

    @property
    def is_restricted(self) -> bool:
        return bool(self.restriction) or self.selector is not None

    @property
    def imports_unknown_names(self) -> bool:
        """Unqualified calls may come from this import without being listed."""
        return self.restriction is None or self.selector is not None


@dataclass(frozen=True)
class UseDecl:
    """One `use` directive (support base / behaviour injection)."""

    target_module: str
    span: SourceRange


@dataclass(frozen=True)
class CallRef:
    """A call site. `resolved` is the local FunctionKey it binds to, if any."""

    name: str
    arity: int
    module: str | None
    span: SourceRange
    caller: FunctionKey | None
    resolved: FunctionKey | None = None

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.name}" if self.module else self.name


@dataclass(frozen=True)
class FunctionSymbol:
    """One function clause group (same name and arity) within a module."""

    name: str
    arity: int
    min_arity: int
    visibility: Visibility
    definition_span: SourceRange
    clauses: tuple[Node, ...]
    position: int
    calls: frozenset[FunctionKey] = frozenset()
    called_by: frozenset[FunctionKey] = frozenset()

    @property
    def key(self) -> FunctionKey:
        return (self.name, self.arity)

    @property
    def is_private(self) -> bool:
        return self.visibility is Visibility.PRIVATE

    def accepts(self, arity: int) -> bool:
        """True when a call with this arity binds here (default args widen the range)."""
        return self.min_arity <= arity <= self.arity

    def bodies(self) -> tuple[Node, ...]:
        """Body block of every clause."""
        return tuple(clause.children[1] for clause in self.clauses)


@dataclass(frozen=True)
class ModuleScope:
    """Everything the rules need to know about one module. Owns its FunctionSymbols."""

    module_name: str
    span: SourceRange
    has_doc: bool
    is_nested: bool
    functions: Mapping[FunctionKey, FunctionSymbol]
    imports: tuple[ImportDecl, ...] = ()
    uses: tuple[UseDecl, ...] = ()
    attributes: Mapping[str, Node] = field(default_factory=lambda: MappingProxyType({}))
    references: tuple[CallRef, ...] = ()

    def function_for_clause(self, clause: Node) -> FunctionSymbol | None:
        """The symbol a function clause node belongs to."""
        for symbol in self.functions.values():
            if any(c is clause for c in symbol.clauses):
                return symbol
        return None

    def import_for(self, node: Node) -> ImportDecl | None:
        """The ImportDecl recorded for an import node."""
        return next((d for d in self.imports if d.node is node), None)

    def resolve(self, name: str, arity: int) -> FunctionSymbol | None:
        """Local function a (name, arity) call binds to."""
        exact = self.functions.get((name, arity))
        if exact is not None:
            return exact
        return next(
            (s for s in self.functions.values() if s.name == name and s.accepts(arity)),
            None,
        )

    def is_local_module(self, module: str | None) -> bool:
        return module is None or module == self.module_name or module in LOCAL_MODULE_ALIASES

    def in_order(self) -> list[FunctionSymbol]:
        """Symbols in declaration order."""
        return sorted(self.functions.values(), key=lambda s: s.position)

    def unresolved_references(self) -> tuple[CallRef, ...]:
        return tuple(r for r in self.references if r.resolved is None)


@dataclass
class _GroupBuilder:
    name: str
    arity: int
    min_arity: int
    visibility: Visibility
    position: int
    clauses: list[Node]


class NamespaceDepthPredicate:
    """
    Default context-nesting predicate.

    A module is nested (internal to a context) when its dotted name has more
    segments than ``context_depth``: with depth 1, ``A`` is global while
    ``A.B.Service`` is nested.
    """

    def __init__(self, context_depth: int = 1) -> None:
        self.context_depth = context_depth

    def __call__(self, module_name: str) -> bool:
        return len(module_name.split(".")) > self.context_depth


class ScopeIndexer:
    """Builds a ModuleScope from a module node in a single pass over its forms."""

    def __init__(self, context_predicate: Callable[[str], bool]) -> None:
        self._is_nested = context_predicate

    def build(self, module_node: Node) -> ModuleScope:
        """Index a module. Raises DuplicateFunctionError on conflicting clause visibility."""
        if module_node.kind is not NodeKind.MODULE:
            raise MalformedInputError(
                f"Expected a module node, got {module_node.kind.value}", module_node.span
            )
        module_name = module_node.name
        groups: dict[FunctionKey, _GroupBuilder] = {}
        attributes: dict[str, Node] = {}
        has_doc = False
        for form in module_node.children:
            if form.kind is NodeKind.FUNCTION:
                self._add_clause(groups, form)
            elif form.kind is NodeKind.MODULE_ATTRIBUTE:
                attributes.setdefault(form.name, form)
                if form.name == "moduledoc":
                    has_doc = self._is_documented(form)

        imports, uses = self._directives(module_node)
        functions = self._freeze_groups(groups)
        references = self._references(module_name, module_node, functions, imports)
        functions = self._link_calls(functions, references)
        logger.debug(
            "Indexed %s: %d functions, %d imports, %d call sites",
            module_name,
            len(functions),
            len(imports),
            len(references),
        )
        return ModuleScope(
            module_name=module_name,
            span=module_node.span,
            has_doc=has_doc,
            is_nested=bool(self._is_nested(module_name)),
            functions=MappingProxyType(functions),
            imports=tuple(imports),
            uses=tuple(uses),
            attributes=MappingProxyType(attributes),
            references=tuple(references),
        )

    @staticmethod
    def _add_clause(groups: dict[FunctionKey, _GroupBuilder], clause: Node) -> None:
        params = clause.children[0].children
        arity = len(params)
        min_arity = arity - sum(1 for p in params if p.kind is NodeKind.DEFAULT)
        visibility = Visibility(clause.attr("visibility"))
        key = (clause.name, arity)
        group = groups.get(key)
        if group is None:
            groups[key] = _GroupBuilder(
                clause.name, arity, min_arity, visibility, len(groups), [clause]
            )
            return
        if group.visibility is not visibility:
            raise DuplicateFunctionError(
                f"{clause.name}/{arity} is declared both public and private",
                clause.span,
            )
        group.min_arity = min(group.min_arity, min_arity)
        group.clauses.append(clause)

    @staticmethod
    def _is_documented(attribute: Node) -> bool:
        if not attribute.children:
            return False
        value = attribute.children[0]
        if value.kind is NodeKind.LITERAL:
            literal = value.attr("value")
            if isinstance(literal, str):
                return bool(literal.strip())
            return literal not in (False, None)
        if value.kind is NodeKind.ATOM:
            return value.attr("value") not in ("false", "nil")
        return True

    @staticmethod
    def _directives(module_node: Node) -> tuple[list[ImportDecl], list[UseDecl]]:
        imports: list[ImportDecl] = []
        uses: list[UseDecl] = []
        stack: list[tuple[Node, bool]] = [(c, False) for c in reversed(module_node.children)]
        while stack:
            node, in_function = stack.pop()
            if node.kind is NodeKind.MODULE:
                continue
            if node.kind is NodeKind.IMPORT:
                selector = ScopeIndexer._selector(node)
                imports.append(
                    ImportDecl(
                        target_module=str(node.attr("module")),
                        scope=ImportScope.FUNCTION_LEVEL if in_function else ImportScope.MODULE_LEVEL,
                        restriction=frozenset() if selector else ScopeIndexer._restriction(node),
                        span=node.span,
                        node=node,
                        selector=selector,
                    )
                )
            elif node.kind is NodeKind.USE:
                uses.append(UseDecl(str(node.attr("module")), node.span))
            inside = in_function or node.kind is NodeKind.FUNCTION
            stack.extend((c, inside) for c in reversed(node.children))
        return imports, uses

    @staticmethod
    def _selector(node: Node) -> str | None:
        only = node.attr("only")
        if isinstance(only, str) and only.lstrip(":") in IMPORT_SELECTORS:
            return only.lstrip(":")
        return None

    @staticmethod
    def _restriction(node: Node) -> frozenset[FunctionKey] | None:
        only = node.attr("only")
        if only is None:
            return None
        entries = only if isinstance(only, tuple) else (only,)
        keys: set[FunctionKey] = set()
        for entry in entries:
            name, _, arity = str(entry).rpartition("/")
            if name and arity.isdigit():
                keys.add((name, int(arity)))
            else:
                raise MalformedInputError(
                    f"import only entry {entry!r} is not name/arity", node.span
                )
        return frozenset(keys)

    @staticmethod
    def _freeze_groups(groups: dict[FunctionKey, _GroupBuilder]) -> dict[FunctionKey, FunctionSymbol]:
        return {
            key: FunctionSymbol(
                name=g.name,
                arity=g.arity,
                min_arity=g.min_arity,
                visibility=g.visibility,
                definition_span=g.clauses[0].span,
                clauses=tuple(g.clauses),
                position=g.position,
            )
            for key, g in groups.items()
        }

    @staticmethod
    def _references(
        module_name: str,
        module_node: Node,
        functions: Mapping[FunctionKey, FunctionSymbol],
        imports: list[ImportDecl],
    ) -> list[CallRef]:
        probe = ModuleScope(module_name, module_node.span, False, False, functions)
        references: list[CallRef] = []
        for symbol in probe.in_order():
            for clause in symbol.clauses:
                references.extend(
                    ScopeIndexer._call_refs(probe, clause, symbol.key, imports)
                )
        for form in module_node.children:
            if form.kind not in (NodeKind.FUNCTION, NodeKind.MODULE):
                references.extend(ScopeIndexer._call_refs(probe, form, None, imports))
        return references

    @staticmethod
    def _call_refs(
        probe: ModuleScope,
        root: Node,
        caller: FunctionKey | None,
        imports: list[ImportDecl],
    ) -> list[CallRef]:
        refs: list[CallRef] = []
        for call, arity in Shapes.iter_calls(root):
            module = call.attr("module")
            module = str(module) if module is not None else None
            resolved: FunctionKey | None = None
            if probe.is_local_module(module):
                symbol = probe.resolve(call.name, arity)
                if symbol is not None:
                    resolved = symbol.key
                elif module is None:
                    module = ScopeIndexer._imported_from(call.name, arity, imports)
            refs.append(CallRef(call.name, arity, module, call.span, caller, resolved))
        return refs

    @staticmethod
    def _imported_from(name: str, arity: int, imports: list[ImportDecl]) -> str | None:
        for decl in imports:
            if decl.restriction and (name, arity) in decl.restriction:
                return decl.target_module
        return None

    @staticmethod
    def _link_calls(
        functions: dict[FunctionKey, FunctionSymbol],
        references: list[CallRef],
    ) -> dict[FunctionKey, FunctionSymbol]:
        calls: dict[FunctionKey, set[FunctionKey]] = {k: set() for k in functions}
        called_by: dict[FunctionKey, set[FunctionKey]] = {k: set() for k in functions}
        for ref in references:
            if ref.caller is None or ref.resolved is None:
                continue
            calls[ref.caller].add(ref.resolved)
            called_by[ref.resolved].add(ref.caller)
        return {
            key: FunctionSymbol(
                name=s.name,
                arity=s.arity,
                min_arity=s.min_arity,
                visibility=s.visibility,
                definition_span=s.definition_span,
                clauses=s.clauses,
                position=s.position,
                calls=frozenset(calls[key]),
                called_by=frozenset(called_by[key]),
            )
            for key, s in functions.items()
        }
