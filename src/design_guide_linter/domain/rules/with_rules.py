"""`with` expression rules: else coverage, redundancy, ordering and error mapping."""

from __future__ import annotations

from dataclasses import dataclass

from design_guide_linter.domain.callgraph import CallGraph
from design_guide_linter.domain.entities import Severity
from design_guide_linter.domain.nodes import Node, NodeKind
from design_guide_linter.domain.rules import Violation
from design_guide_linter.domain.scope import ModuleScope
from design_guide_linter.domain.shapes import OPAQUE_KINDS, Shapes


@dataclass(frozen=True)
class ClauseTarget:
    """The call a `with` clause (or `case` subject) dispatches to."""

    clause: Node
    pattern: Node
    call: Node | None
    arity: int
    module: str | None
    local: bool
    resolved: bool

    @property
    def label(self) -> str:
        if self.call is None:
            return "<value>"
        prefix = f"{self.module}." if self.module else ""
        return f"{prefix}{self.call.name}/{self.arity}"


class CallOrigins:
    """Decides where a call lands: this module, a trusted library, or elsewhere."""

    def __init__(self, trusted_modules: frozenset[str]) -> None:
        self.trusted_modules = trusted_modules

    def origin(self, call: Node, arity: int, scope: ModuleScope) -> tuple[str | None, bool, bool]:
        """Return (module, is_local, is_resolved) for one call node."""
        module = call.attr("module")
        module = str(module) if module is not None else None
        if scope.is_local_module(module):
            if scope.resolve(call.name, arity) is not None:
                return scope.module_name, True, True
            if module is not None:
                return module, False, False
            return self._unqualified_origin(call.name, arity, scope)
        return module, False, module in self.trusted_modules

    def _unqualified_origin(
        self, name: str, arity: int, scope: ModuleScope
    ) -> tuple[str | None, bool, bool]:
        for decl in scope.imports:
            if decl.restriction and (name, arity) in decl.restriction:
                return decl.target_module, False, decl.target_module in self.trusted_modules
        if any(decl.imports_unknown_names for decl in scope.imports):
            return None, False, False
        return "Kernel", False, "Kernel" in self.trusted_modules

    def target(self, clause: Node, pattern: Node, expression: Node, scope: ModuleScope) -> ClauseTarget:
        found = Shapes.call_target(expression)
        if found is None:
            return ClauseTarget(clause, pattern, None, 0, None, False, True)
        call, arity = found
        module, local, resolved = self.origin(call, arity, scope)
        return ClauseTarget(clause, pattern, call, arity, module, local, resolved)

    def with_targets(self, with_node: Node, scope: ModuleScope) -> list[ClauseTarget]:
        return [
            self.target(clause, clause.children[0], clause.children[1], scope)
            for clause in with_node.children_of_kind(NodeKind.WITH_CLAUSE)
        ]

    def is_foreign(self, target: ClauseTarget) -> bool:
        """A call into another, non-trusted module."""
        return target.call is not None and not target.local and not target.resolved


def _else_branches(with_node: Node) -> list[Node] | None:
    else_node = with_node.child_of_kind(NodeKind.ELSE)
    return None if else_node is None else list(else_node.children)


class WithElseCoverageRule:
    """External failure modes of a `with` must be enumerated in an `else`."""

    rule_id: str = "with-else-coverage"
    title: str = "with without else over external calls"
    severity: Severity = Severity.VIOLATION
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.WITH})

    def __init__(self, origins: CallOrigins) -> None:
        self.origins = origins

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        if node.child_of_kind(NodeKind.ELSE) is not None:
            return []
        unresolved = [t for t in self.origins.with_targets(node, scope) if not t.resolved]
        if not unresolved:
            return []
        names = ", ".join(sorted({t.label for t in unresolved}))
        return [
            Violation.from_node(
                rule=self,
                node=node,
                message=f"`with` calls {names} outside this module but has no `else`; "
                "enumerate the failure modes it can return.",
            )
        ]


class WithElseRedundancyRule:
    """An `else` that only echoes failures of module-local clauses adds nothing."""

    rule_id: str = "with-else-redundancy"
    title: str = "redundant with/else"
    severity: Severity = Severity.VIOLATION
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.WITH})

    def __init__(self, origins: CallOrigins) -> None:
        self.origins = origins

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        else_node = node.child_of_kind(NodeKind.ELSE)
        if else_node is None or not else_node.children:
            return []
        if not all(t.resolved for t in self.origins.with_targets(node, scope)):
            return []
        if not all(Shapes.is_echo(branch) for branch in else_node.children):
            return []
        return [
            Violation.from_node(
                rule=self,
                node=else_node,
                message="`else` only returns what it matched and every clause is local; remove it.",
            )
        ]


class WithElseOrderRule:
    """
    `else` branches should follow the order of the clauses whose failures they handle.

    A branch is mapped to the first clause that can produce a value it
    matches without satisfying the clause's own pattern. For local targets
    the candidate values are the target's concrete return sites; otherwise
    only the clause pattern's coarse shape is known.
    """

    rule_id: str = "with-else-order"
    title: str = "with/else branches out of clause order"
    severity: Severity = Severity.VIOLATION
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.WITH})

    def __init__(self, origins: CallOrigins) -> None:
        self.origins = origins

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        branches = _else_branches(node)
        if not branches or len(branches) < 2:
            return []
        targets = self.origins.with_targets(node, scope)
        failures = [self._failure_sites(t, scope) for t in targets]
        highest = -1
        for branch in branches:
            pattern = branch.children[0]
            if Shapes.is_catch_all(pattern):
                continue
            index = self._clause_index(pattern, targets, failures)
            if index is None:
                continue
            if index < highest:
                return [
                    Violation.from_node(
                        rule=self,
                        node=branch,
                        message=f"`else` branch handles clause {index + 1} after a branch for "
                        f"clause {highest + 1}; order branches like the clauses they handle.",
                    )
                ]
            highest = index
        return []

    @staticmethod
    def _failure_sites(target: ClauseTarget, scope: ModuleScope) -> list[Node] | None:
        """Concrete non-matching values a clause can produce; None when unknown."""
        if target.call is None:
            expression = target.clause.children[1]
            if expression.kind in OPAQUE_KINDS:
                return None
            sites = [expression]
        elif target.local:
            symbol = scope.resolve(target.call.name, target.arity)
            if symbol is None:
                return None
            sites = [
                site
                for body in symbol.bodies()
                for site in Shapes.terminal_expressions(body)
                if site.kind not in OPAQUE_KINDS and site.kind is not NodeKind.WITH
            ]
            if not sites:
                return None
        else:
            return None
        return [site for site in sites if not Shapes.unify(target.pattern, site)]

    @staticmethod
    def _clause_index(
        pattern: Node, targets: list[ClauseTarget], failures: list[list[Node] | None]
    ) -> int | None:
        for index, (target, sites) in enumerate(zip(targets, failures)):
            if sites is None:
                if Shapes.same_shape(pattern, target.pattern):
                    return index
            elif any(Shapes.unify(pattern, site) for site in sites):
                return index
        return None


class ErrorMappingRule:
    """Errors echoed unchanged from another module's call may leak that module's vocabulary."""

    rule_id: str = "error-mapping"
    title: str = "possibly unmapped cross-context error"
    severity: Severity = Severity.ADVISORY
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.WITH, NodeKind.CASE})

    def __init__(self, origins: CallOrigins) -> None:
        self.origins = origins

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        if node.kind is NodeKind.WITH:
            branches = _else_branches(node) or []
            foreign = [t for t in self.origins.with_targets(node, scope) if self.origins.is_foreign(t)]
        else:
            subject = node.children[0]
            branches = list(node.children[1:])
            target = self.origins.target(node, subject, subject, scope)
            foreign = [target] if self.origins.is_foreign(target) else []
        if not foreign:
            return []
        origin = foreign[0].label
        violations: list[Violation] = []
        for branch in branches:
            tag = Shapes.tag_of(branch.children[0])
            if tag is None or tag == "ok" or not Shapes.is_echo(branch):
                continue
            violations.append(
                Violation.from_node(
                    rule=self,
                    node=branch,
                    message=f"`:{tag}` from {origin} is passed through unchanged; "
                    "consider mapping it to this module's own error vocabulary.",
                )
            )
        return violations
