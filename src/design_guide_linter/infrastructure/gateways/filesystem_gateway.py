"""Filesystem Gateway - Infrastructure implementation of FileSystemProtocol."""

from pathlib import Path

from design_guide_linter.domain.protocols import FileSystemProtocol


class FileSystemGateway(FileSystemProtocol):
    """Infrastructure implementation of FileSystemProtocol using pathlib."""

    def is_directory(self, path: str) -> bool:
        """Check if path is a directory."""
        return Path(path).is_dir()

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def glob_files(self, path: str, patterns: tuple[str, ...]) -> list[str]:
        """All files under path matching any pattern (recursive if directory)."""
        path_obj = Path(path)
        if not path_obj.is_dir():
            return [str(path_obj)] if any(path_obj.match(p) for p in patterns) else []
        found = {str(p) for pattern in patterns for p in path_obj.glob(f"**/{pattern}") if p.is_file()}
        return sorted(found)

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """Read text content from a file."""
        return Path(path).read_text(encoding=encoding)
