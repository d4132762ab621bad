"""Flow and data-access rules: flattenable conditionals, field-extraction chains, nested updates."""

from __future__ import annotations

from design_guide_linter.domain.callgraph import CallGraph
from design_guide_linter.domain.constants import (
    FIELD_ACCESSORS,
    NESTED_UPDATE_FUNCTIONS,
    NESTED_UPDATE_MODULES,
)
from design_guide_linter.domain.entities import Severity
from design_guide_linter.domain.nodes import Node, NodeKind
from design_guide_linter.domain.rules import Violation
from design_guide_linter.domain.scope import ModuleScope
from design_guide_linter.domain.shapes import Shapes

_CONDITIONALS: frozenset[NodeKind] = frozenset(
    {NodeKind.CASE, NodeKind.IF, NodeKind.COND, NodeKind.WITH}
)
_PATH_READERS: frozenset[str] = frozenset({"Map.get", "Map.fetch!", "Keyword.get", "Keyword.fetch!"})
_MIN_CHAIN = 3


class FlowDirectiveChoiceRule:
    """A conditional that only re-dispatches on another conditional can be flattened."""

    rule_id: str = "flow-directive-choice"
    title: str = "flattenable nested conditional"
    severity: Severity = Severity.ADVISORY
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.CASE, NodeKind.IF})

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        if node.kind is NodeKind.IF:
            flattenable = len(node.children) == 2 and self._is_dispatch(node.children[1])
            hint = "combine the conditions"
        else:
            flattenable = self._case_flattenable(node.children[1:])
            hint = "use `with`"
        if not flattenable:
            return []
        return [
            Violation.from_node(
                rule=self,
                node=node,
                message=f"`{node.kind.value}` only forwards to a nested conditional; {hint} instead.",
            )
        ]

    def _case_flattenable(self, branches: tuple[Node, ...]) -> bool:
        working = [b for b in branches if not Shapes.is_echo(b)]
        if len(working) != 1 or len(branches) < 2:
            return False
        return self._is_dispatch(working[0].children[1])

    @staticmethod
    def _is_dispatch(body: Node) -> bool:
        expression = Shapes.single_expression(body)
        return expression is not None and expression.kind in _CONDITIONALS


class PatternMatchingUsageRule:
    """Successive field extractions from one value read better as a single structural match."""

    rule_id: str = "pattern-matching-usage"
    title: str = "field-access chain instead of pattern match"
    severity: Severity = Severity.ADVISORY
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.BLOCK})

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        violations: list[Violation] = []
        run: list[Node] = []
        roots: set[str] = set()
        for expression in node.children:
            binding = self._extraction(expression)
            if binding is not None and run and binding[1] in roots:
                run.append(expression)
                roots.add(binding[0])
                continue
            self._close(run, violations)
            run, roots = [], set()
            if binding is not None:
                run.append(expression)
                roots.update(binding)
        self._close(run, violations)
        return violations

    def _close(self, run: list[Node], violations: list[Violation]) -> None:
        if len(run) < _MIN_CHAIN:
            return
        violations.append(
            Violation.from_node(
                rule=self,
                node=run[0],
                message=f"{len(run)} successive bindings pick fields out of one value; "
                "destructure it with a single pattern match.",
            )
        )

    @staticmethod
    def _extraction(expression: Node) -> tuple[str, str] | None:
        """(bound name, base name) for `name = base[...]` style bindings."""
        if expression.kind is not NodeKind.MATCH:
            return None
        pattern, value = expression.children[0], expression.children[1]
        if pattern.kind is not NodeKind.VAR:
            return None
        found = Shapes.access_root(value, FIELD_ACCESSORS)
        if found is None:
            return None
        return pattern.name, found[0]


class NestedStructureMacroUsageRule:
    """
    Reading a nested value, updating it and writing it back is what put_in/update_in do.

    Detects `tmp = Map.put(base[key], ...)` followed by `Map.put(base, key, tmp)`
    and the inline `Map.put(base, key, Map.put(base[key], ...))`.
    """

    rule_id: str = "nested-structure-macro-usage"
    title: str = "manual nested update"
    severity: Severity = Severity.ADVISORY
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.BLOCK})

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        violations: list[Violation] = []
        expressions = node.children
        for index, expression in enumerate(expressions):
            value = expression.children[1] if expression.kind is NodeKind.MATCH else expression
            if self._inline(value):
                violations.append(self._violation(expression))
                continue
            if expression.kind is not NodeKind.MATCH or expression.children[0].kind is not NodeKind.VAR:
                continue
            path = self._read_path(value)
            if path is None:
                continue
            temp = expression.children[0].name
            if any(self._writes_back(later, path, temp) for later in expressions[index + 1 :]):
                violations.append(self._violation(expression))
        return violations

    def _violation(self, expression: Node) -> Violation:
        return Violation.from_node(
            rule=self,
            node=expression,
            message="nested value is read, changed and written back by hand; "
            "use put_in/update_in with an access path.",
        )

    @staticmethod
    def _update_call(node: Node) -> bool:
        return (
            node.kind is NodeKind.CALL
            and node.attr("module") in NESTED_UPDATE_MODULES
            and node.name in NESTED_UPDATE_FUNCTIONS
            and bool(node.children)
        )

    @staticmethod
    def _read_path(value: Node) -> tuple[Node, Node] | None:
        """(base, key) when ``value`` updates a value read from ``base[key]``."""
        if not NestedStructureMacroUsageRule._update_call(value):
            return None
        source = value.children[0]
        if source.kind is NodeKind.ACCESS:
            return source.children[0], source.children[1]
        if (
            source.kind is NodeKind.CALL
            and f"{source.attr('module')}.{source.name}" in _PATH_READERS
            and len(source.children) >= 2
        ):
            return source.children[0], source.children[1]
        return None

    @staticmethod
    def _is_write(node: Node, base: Node, key: Node) -> bool:
        return (
            node.kind is NodeKind.CALL
            and node.attr("module") in NESTED_UPDATE_MODULES
            and node.name == "put"
            and len(node.children) == 3
            and Shapes.structurally_equal(node.children[0], base)
            and Shapes.structurally_equal(node.children[1], key)
        )

    @staticmethod
    def _writes_back(expression: Node, path: tuple[Node, Node], temp: str) -> bool:
        value = expression.children[1] if expression.kind is NodeKind.MATCH else expression
        if not NestedStructureMacroUsageRule._is_write(value, *path):
            return False
        written = value.children[2]
        return written.kind is NodeKind.VAR and written.name == temp

    @staticmethod
    def _inline(value: Node) -> bool:
        if value.kind is not NodeKind.CALL or len(value.children) != 3:
            return False
        inner = value.children[2]
        path = NestedStructureMacroUsageRule._read_path(inner)
        return path is not None and NestedStructureMacroUsageRule._is_write(value, *path)
