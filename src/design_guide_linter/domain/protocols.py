from typing import Protocol

from design_guide_linter.domain.registry_types import RuleRegistryEntry


class TelemetryPort(Protocol):
    """Protocol for telemetry/UI updates."""

    def step(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def debug(self, message: str) -> None: ...
    def handshake(self) -> None: ...


class FileSystemProtocol(Protocol):
    """Protocol for filesystem operations - abstracts Path usage."""

    def is_directory(self, path: str) -> bool:
        """Check if path is a directory."""
        ...

    def exists(self, path: str) -> bool:
        """Return True if path exists (file or directory)."""
        ...

    def glob_files(self, path: str, patterns: tuple[str, ...]) -> list[str]:
        """All files under path matching any pattern (recursive, sorted)."""
        ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """Read text content from a file."""
        ...


class AstSourceProtocol(Protocol):
    """Protocol for locating and loading parser front-end AST dumps."""

    def discover(self, paths: list[str]) -> list[str]:
        """Return every AST dump under the given files/directories, sorted."""
        ...

    def load(self, path: str) -> object:
        """Decode one dump into a raw tree. Raises MalformedInputError when unreadable."""
        ...


class GuidanceServiceProtocol(Protocol):
    """Protocol for rule registry guidance. Implemented by GuidanceService in infrastructure."""

    def get_entry(self, rule_id: str) -> RuleRegistryEntry | None:
        """Return the full registry entry for the rule, or None."""
        ...

    def get_display_name(self, rule_id: str) -> str:
        """Return display name for a rule."""
        ...

    def get_manual_instructions(self, rule_id: str) -> str:
        """Return manual fix instructions for the rule."""
        ...

    def rule_ids(self) -> list[str]:
        """Return every rule id present in the registry."""
        ...

