"""Module-level rules: documentation scope, imports, test support bases, function order."""

from __future__ import annotations

from collections.abc import Mapping
from fnmatch import fnmatchcase

from design_guide_linter.domain.callgraph import CallGraph
from design_guide_linter.domain.config import CapabilitySpec
from design_guide_linter.domain.entities import Severity
from design_guide_linter.domain.nodes import Node, NodeKind
from design_guide_linter.domain.rules import Violation
from design_guide_linter.domain.scope import FunctionSymbol, ImportScope, ModuleScope


class ModuledocScopeRule:
    """Internal modules of a context should not carry external documentation."""

    rule_id: str = "moduledoc-scope"
    title: str = "moduledoc on an internal module"
    severity: Severity = Severity.VIOLATION
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.MODULE})

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        if not (scope.has_doc and scope.is_nested):
            return []
        return [
            Violation.from_node(
                rule=self,
                node=node,
                message=f"{scope.module_name} is internal to its context; "
                "use `@moduledoc false` and document the context module instead.",
            )
        ]


class ImportScopeRule:
    """Imports belong inside the function that needs them, restricted with `only:`."""

    rule_id: str = "import-scope"
    title: str = "broad import"
    severity: Severity = Severity.VIOLATION
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.IMPORT})

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        decl = scope.import_for(node)
        if decl is None:
            return []
        if decl.scope is ImportScope.MODULE_LEVEL:
            message = f"import {decl.target_module} at module level; move it into the function that uses it."
        elif not decl.is_restricted:
            message = f"import {decl.target_module} without `only:`; list the functions you need."
        else:
            return []
        return [Violation.from_node(rule=self, node=node, message=message)]


class TestCaseUsageRule:
    """
    A test support base should only be used when its capability is exercised.

    The capability table maps a support base (matched by full name or by
    its last segment) to hallmark call patterns; fnmatch globs over the
    qualified names of the module's call sites.
    """

    __test__ = False

    rule_id: str = "test-case-usage"
    title: str = "test support base broader than needed"
    severity: Severity = Severity.ADVISORY
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.USE})

    def __init__(self, capabilities: Mapping[str, CapabilitySpec]) -> None:
        self.capabilities = capabilities

    def _lookup(self, base: str) -> CapabilitySpec | None:
        spec = self.capabilities.get(base)
        if spec is None:
            spec = self.capabilities.get(base.rpartition(".")[2])
        return spec

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        base = str(node.attr("module"))
        spec = self._lookup(base)
        if spec is None:
            return []
        names = {ref.qualified_name for ref in scope.references}
        if any(fnmatchcase(name, glob) for name in names for glob in spec.hallmarks):
            return []
        return [
            Violation.from_node(
                rule=self,
                node=node,
                message=f"{scope.module_name} uses {base} but never exercises {spec.capability}; "
                "a narrower support base would do.",
            )
        ]


class FunctionOrderRule:
    """
    Private helpers sit directly below their first caller.

    Positions and first callers come precomputed from the CallGraph. Between
    a caller and its helper only other private helpers of the same cluster
    (first-called from within the span) may appear.
    """

    rule_id: str = "function-order"
    title: str = "helper not placed below its first caller"
    severity: Severity = Severity.ADVISORY
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.MODULE})

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        if graph.is_empty():
            return []
        ordered = scope.in_order()
        violations: list[Violation] = []
        for symbol in ordered:
            if not symbol.is_private:
                continue
            caller_key = graph.first_caller(symbol.key)
            if caller_key is None:
                continue
            caller_at = graph.position(caller_key)
            if caller_at is None:
                continue
            caller = f"{caller_key[0]}/{caller_key[1]}"
            if symbol.position < caller_at:
                message = f"{symbol.name}/{symbol.arity} is defined above its first caller {caller}."
            elif not self._cluster_only(ordered[caller_at + 1 : symbol.position], graph, caller_at, symbol.position):
                message = (
                    f"{symbol.name}/{symbol.arity} should follow its first caller {caller} directly; "
                    "unrelated functions sit in between."
                )
            else:
                continue
            violations.append(Violation.from_node(rule=self, node=symbol.clauses[0], message=message))
        return violations

    @staticmethod
    def _cluster_only(between: list[FunctionSymbol], graph: CallGraph, low: int, high: int) -> bool:
        for other in between:
            if not other.is_private:
                return False
            first = graph.first_caller(other.key)
            position = graph.position(first) if first is not None else None
            if position is None or not low <= position < high:
                return False
        return True
