"""Protocol for style reporting - no infrastructure imports."""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from design_guide_linter.domain.entities import AnalysisResult


class StyleReporter(Protocol):
    """Protocol for rendering analysis results."""

    def report(self, result: "AnalysisResult") -> None:
        """Render the result to the reporter's sink."""
        ...
