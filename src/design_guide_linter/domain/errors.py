"""Engine error taxonomy. Module-scoped errors never abort a run; configuration errors do."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from design_guide_linter.domain.nodes import SourceRange


class DesignGuideError(Exception):
    """Base class for every error raised by the engine."""


class ModuleAnalysisError(DesignGuideError):
    """An error confined to one module's analysis. Surfaced as an engine record."""

    def __init__(self, message: str, span: SourceRange | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.span = span


class MalformedInputError(ModuleAnalysisError):
    """Raw tree does not match the expected node-kind vocabulary or shape."""


class DuplicateFunctionError(ModuleAnalysisError):
    """Two clauses declare the same name/arity with conflicting visibility."""


class ConfigurationError(DesignGuideError):
    """Required configuration is missing or invalid. Fatal, raised before analysis."""
