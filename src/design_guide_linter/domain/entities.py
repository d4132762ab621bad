from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, TypedDict

if TYPE_CHECKING:
    from design_guide_linter.domain.rules import Violation

ENGINE_RULE_ID = "engine"


class Severity(Enum):
    """Severity carried as explicit data on every record."""

    VIOLATION = "violation"
    ADVISORY = "advisory"
    ERROR = "error"

    @property
    def rank(self) -> int:
        """Blocking weight: advisory < violation < error."""
        return {"advisory": 0, "violation": 1, "error": 2}[self.value]


class ViolationDict(TypedDict):
    """Serialization shape of one Violation (the engine's output contract)."""

    ruleId: str
    file: str
    line: int
    column: int
    endLine: int
    endColumn: int
    message: str
    severity: str


@dataclass(frozen=True)
class AnalysisResult:
    """Result of one analysis run over a set of source trees."""

    violations: tuple["Violation", ...] = ()
    files_analyzed: int = 0
    modules_analyzed: int = 0
    cancelled: bool = False
    skipped_files: tuple[str, ...] = field(default_factory=tuple)

    def has_violations(self) -> bool:
        return bool(self.violations)

    def counts(self) -> dict[str, int]:
        """Record count per severity value (all severities present, zero when absent)."""
        counter = Counter(v.severity.value for v in self.violations)
        return {s.value: counter.get(s.value, 0) for s in Severity}

    def is_blocked(self, threshold: Severity = Severity.VIOLATION) -> bool:
        """True when any record's severity reaches the threshold. Engine errors always block."""
        return any(
            v.severity is Severity.ERROR or v.severity.rank >= threshold.rank
            for v in self.violations
        )

    def by_file(self) -> dict[str, list["Violation"]]:
        grouped: dict[str, list["Violation"]] = {}
        for violation in self.violations:
            grouped.setdefault(violation.span.file, []).append(violation)
        return grouped

    def to_dict(self) -> dict[str, object]:
        return {
            "violations": [v.to_dict() for v in self.violations],
            "summary": {
                **self.counts(),
                "files": self.files_analyzed,
                "modules": self.modules_analyzed,
                "cancelled": self.cancelled,
            },
        }
