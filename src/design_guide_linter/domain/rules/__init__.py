"""Domain models for rules and violations."""

from dataclasses import dataclass

__all__ = [
    "StyleRule",
    "Violation",
]

from typing import TYPE_CHECKING, Protocol

from design_guide_linter.domain.entities import ENGINE_RULE_ID, Severity, ViolationDict
from design_guide_linter.domain.nodes import Node, NodeKind, SourceRange

if TYPE_CHECKING:
    from design_guide_linter.domain.callgraph import CallGraph
    from design_guide_linter.domain.scope import ModuleScope


@dataclass(frozen=True)
class Violation:
    """A rule finding: value type, no identity beyond its fields."""

    rule_id: str
    span: SourceRange
    message: str
    severity: Severity

    @classmethod
    def from_node(
        cls,
        *,
        rule: "StyleRule",
        node: Node,
        message: str,
    ) -> "Violation":
        """Build a Violation at a node's span with the rule's id and severity."""
        return cls(
            rule_id=rule.rule_id,
            span=node.span,
            message=message,
            severity=rule.severity,
        )

    @classmethod
    def engine_error(cls, message: str, span: SourceRange) -> "Violation":
        """Distinguished record for a module that could not be analyzed."""
        return cls(
            rule_id=ENGINE_RULE_ID,
            span=span,
            message=message,
            severity=Severity.ERROR,
        )

    @property
    def dedupe_key(self) -> tuple[str, SourceRange]:
        return (self.rule_id, self.span)

    @property
    def sort_key(self) -> tuple[str, int, int, str, int, int, str]:
        """Total order: file, line, column, rule id, then end position and message."""
        s = self.span
        return (s.file, s.start_line, s.start_col, self.rule_id, s.end_line, s.end_col, self.message)

    def to_dict(self) -> ViolationDict:
        """Convert to the output record shape."""
        return {
            "ruleId": self.rule_id,
            "file": self.span.file,
            "line": self.span.start_line,
            "column": self.span.start_col,
            "endLine": self.span.end_line,
            "endColumn": self.span.end_col,
            "message": self.message,
            "severity": self.severity.value,
        }


class StyleRule(Protocol):
    """
    One style rule of the catalog.

    Stateless after construction: ``check`` is a pure function of the node,
    the module's scope and its call graph, and must be total over
    well-formed input.
    """

    rule_id: str
    title: str
    severity: Severity
    applies_to: frozenset[NodeKind]

    def check(self, node: Node, scope: "ModuleScope", graph: "CallGraph") -> list[Violation]:
        """Interrogate a node for breaches of this rule."""
        ...
