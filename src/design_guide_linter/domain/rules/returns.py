"""Rules about what functions accept and return: options, tagged results, error locality."""

from __future__ import annotations

from collections.abc import Iterator

from design_guide_linter.domain.callgraph import CallGraph
from design_guide_linter.domain.constants import CALLBACK_FUNCTIONS
from design_guide_linter.domain.entities import Severity
from design_guide_linter.domain.nodes import Node, NodeKind
from design_guide_linter.domain.rules import Violation
from design_guide_linter.domain.scope import FunctionSymbol, ModuleScope
from design_guide_linter.domain.shapes import ReturnKind, Shapes


class OptionFormatRule:
    """Options travel as keyword lists; status-and-value pairs as tuples."""

    rule_id: str = "option-format"
    title: str = "options or status pair in the wrong container"
    severity: Severity = Severity.VIOLATION
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.FUNCTION})

    def __init__(self, option_names: tuple[str, ...] = ("opts", "options")) -> None:
        self.option_names = frozenset(option_names)

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        violations: list[Violation] = []
        params, body = node.children[0], node.children[1]
        for param in params.children:
            if self._map_options(param):
                violations.append(
                    Violation.from_node(
                        rule=self,
                        node=param,
                        message="optional parameters are declared as a map; use a keyword list.",
                    )
                )
        for site in Shapes.terminal_expressions(body):
            if Shapes.status_list(site):
                violations.append(
                    Violation.from_node(
                        rule=self,
                        node=site,
                        message="status and value are returned as a list; return a tuple like `{:ok, value}`.",
                    )
                )
        return violations

    def _map_options(self, param: Node) -> bool:
        if param.kind is NodeKind.DEFAULT:
            pattern = param.children[0]
            if param.children[1].kind is NodeKind.MAP and self._named_options(pattern):
                return True
            return self._map_options(pattern)
        if param.kind is NodeKind.MATCH:
            left, right = param.children[0], param.children[1]
            return self._named_options(param) and NodeKind.MAP in (left.kind, right.kind)
        return False

    def _named_options(self, pattern: Node) -> bool:
        if pattern.kind is NodeKind.VAR:
            return pattern.name in self.option_names
        if pattern.kind is NodeKind.MATCH:
            return any(self._named_options(side) for side in pattern.children[:2])
        return False


class ErrorHandlingLocalityRule:
    """
    A catch-all that turns any failure into a bare error tag hides what went wrong.

    Advisory unless some caller in the module branches on exactly that error.
    """

    rule_id: str = "error-handling-locality"
    title: str = "generic error conversion"
    severity: Severity = Severity.ADVISORY
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.FUNCTION})

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        symbol = scope.function_for_clause(node)
        if symbol is None:
            return []
        violations: list[Violation] = []
        for branch in self._fallback_branches(node.children[1]):
            produced = Shapes.single_expression(branch.children[1])
            if produced is None or not self._generic_error(produced):
                continue
            if self._handled_by_caller(symbol, produced, scope, graph):
                continue
            violations.append(
                Violation.from_node(
                    rule=self,
                    node=branch,
                    message=f"{symbol.name}/{symbol.arity} turns every failure into a generic error "
                    "and no caller here tells them apart; let it fail or return the real reason.",
                )
            )
        return violations

    @staticmethod
    def _fallback_branches(body: Node) -> Iterator[Node]:
        for inner in body.walk(skip=frozenset({NodeKind.FN, NodeKind.MODULE})):
            if inner.kind is NodeKind.CASE:
                branches: tuple[Node, ...] = inner.children[1:]
            elif inner.kind is NodeKind.ELSE:
                branches = inner.children
            else:
                continue
            for branch in branches:
                if Shapes.is_discarding(branch.children[0]):
                    yield branch

    @staticmethod
    def _generic_error(value: Node) -> bool:
        if value.kind is NodeKind.ATOM:
            return value.attr("value") == "error"
        return (
            value.kind is NodeKind.TUPLE
            and len(value.children) == 2
            and Shapes.tag_of(value) == "error"
            and value.children[1].kind is NodeKind.ATOM
        )

    @staticmethod
    def _handled_by_caller(
        symbol: FunctionSymbol, produced: Node, scope: ModuleScope, graph: CallGraph
    ) -> bool:
        for caller_key in graph.callers(symbol.key):
            if caller_key == symbol.key:
                continue
            caller = scope.functions.get(caller_key)
            if caller is None:
                continue
            for body in caller.bodies():
                for inner in body.walk():
                    if inner.kind is NodeKind.BRANCH and Shapes.structurally_equal(
                        Shapes.reduce_pattern(inner.children[0]), produced
                    ):
                        return True
        return False


class OkErrorReturnConsistencyRule:
    """
    Tag results consistently: all sites tagged or none, and only when failure is possible.

    Checked once per clause group, at its first clause, over every clause's
    return sites.
    """

    rule_id: str = "ok-error-return-consistency"
    title: str = "inconsistent ok/error tagging"
    severity: Severity = Severity.VIOLATION
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.FUNCTION})

    def __init__(self, callback_names: frozenset[str] = CALLBACK_FUNCTIONS) -> None:
        self.callback_names = callback_names

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        symbol = scope.function_for_clause(node)
        if symbol is None or symbol.clauses[0] is not node:
            return []
        sites = [
            (site, Shapes.classify_return(site))
            for body in symbol.bodies()
            for site in Shapes.terminal_expressions(body)
        ]
        kinds = {kind for _, kind in sites}
        tagged = kinds & {ReturnKind.OK, ReturnKind.ERROR}
        label = f"{symbol.name}/{symbol.arity}"
        if tagged and ReturnKind.PLAIN in kinds:
            return [
                Violation.from_node(
                    rule=self,
                    node=site,
                    message=f"{label} returns tagged results elsewhere but an untagged value here.",
                )
                for site, kind in sites
                if kind is ReturnKind.PLAIN
            ]
        if ReturnKind.OK in kinds and kinds <= {ReturnKind.OK, ReturnKind.RAISE}:
            if symbol.name in self.callback_names:
                return []
            return [
                Violation.from_node(
                    rule=self,
                    node=node,
                    message=f"{label} can only succeed yet wraps its result in `:ok`; return the value itself.",
                )
            ]
        return []
