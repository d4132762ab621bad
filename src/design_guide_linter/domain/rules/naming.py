"""Naming rules (sequential identifiers, predicate functions)."""

from __future__ import annotations

import re

from design_guide_linter.domain.callgraph import CallGraph
from design_guide_linter.domain.entities import Severity
from design_guide_linter.domain.nodes import Node, NodeKind
from design_guide_linter.domain.rules import Violation
from design_guide_linter.domain.scope import ModuleScope
from design_guide_linter.domain.shapes import Shapes

_SEQUENCE = re.compile(r"^(.*?)(_?)(\d+)$")


class SequentialNamingRule:
    """Numbered identifiers in one declaration separate the digit with an underscore."""

    rule_id: str = "sequential-naming"
    title: str = "sequential identifier without underscore"
    severity: Severity = Severity.VIOLATION
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.FUNCTION, NodeKind.MATCH})

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        declared = node.children[0]
        identifiers: dict[str, Node] = {}
        for var in Shapes.pattern_variables(declared):
            if var.name.startswith("_") or var.name in identifiers:
                continue
            identifiers[var.name] = var

        groups: dict[str, list[tuple[str, Node, bool]]] = {}
        for name, var in identifiers.items():
            found = _SEQUENCE.match(name)
            if found is None or not found.group(1):
                groups.setdefault(name, []).append((name, var, True))
            else:
                stem, separator = found.group(1), found.group(2)
                groups.setdefault(stem, []).append((name, var, bool(separator)))

        violations: list[Violation] = []
        for stem, members in groups.items():
            if len(members) < 2:
                continue
            for name, var, compliant in members:
                if compliant:
                    continue
                violations.append(
                    Violation.from_node(
                        rule=self,
                        node=var,
                        message=f"`{name}` is one of a numbered series; name it `{stem}_{name[len(stem):]}`.",
                    )
                )
        return violations


class PredicateNamingRule:
    """
    Boolean functions end with the predicate suffix and never use the guard prefix.

    Checked once per clause group, at its first clause.
    """

    rule_id: str = "predicate-naming"
    title: str = "predicate function naming"
    severity: Severity = Severity.VIOLATION
    applies_to: frozenset[NodeKind] = frozenset({NodeKind.FUNCTION})

    def __init__(self, guard_prefix: str = "is_", predicate_suffix: str = "?") -> None:
        self.guard_prefix = guard_prefix
        self.predicate_suffix = predicate_suffix

    def check(self, node: Node, scope: ModuleScope, graph: CallGraph) -> list[Violation]:
        symbol = scope.function_for_clause(node)
        if symbol is None or symbol.clauses[0] is not node:
            return []
        problems: list[str] = []
        if self.guard_prefix and symbol.name.startswith(self.guard_prefix):
            problems.append(f"the `{self.guard_prefix}` prefix is reserved for guards")
        if not symbol.name.endswith(self.predicate_suffix):
            terminals = [site for body in symbol.bodies() for site in Shapes.terminal_expressions(body)]
            if terminals and all(Shapes.is_boolean_valued(site) for site in terminals):
                problems.append(f"it returns a boolean, so end the name with `{self.predicate_suffix}`")
        if not problems:
            return []
        return [
            Violation.from_node(
                rule=self,
                node=node,
                message=f"{symbol.name}/{symbol.arity}: " + "; ".join(problems) + ".",
            )
        ]
