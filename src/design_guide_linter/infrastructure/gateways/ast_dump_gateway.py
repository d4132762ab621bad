"""AST dump gateway: finds and decodes the parser front-end's JSON trees."""

import json
import logging

from design_guide_linter.domain.errors import MalformedInputError
from design_guide_linter.domain.protocols import AstSourceProtocol, FileSystemProtocol

logger = logging.getLogger(__name__)

AST_DUMP_PATTERNS: tuple[str, ...] = ("*.ast.json",)


class AstDumpGateway(AstSourceProtocol):
    """Reads `*.ast.json` dumps through the filesystem gateway; named files of any suffix are taken as given."""

    def __init__(self, filesystem: FileSystemProtocol, patterns: tuple[str, ...] = AST_DUMP_PATTERNS) -> None:
        self.filesystem = filesystem
        self.patterns = patterns

    def discover(self, paths: list[str]) -> list[str]:
        found: set[str] = set()
        for path in paths:
            if not self.filesystem.exists(path):
                logger.warning("Path does not exist: %s", path)
                continue
            if self.filesystem.is_directory(path):
                found.update(self.filesystem.glob_files(path, self.patterns))
            else:
                # explicitly named files are taken regardless of suffix
                found.add(path)
        return sorted(found)

    def load(self, path: str) -> object:
        """Decode one dump. Unreadable or invalid JSON becomes a file-scoped MalformedInputError."""
        try:
            content = self.filesystem.read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise MalformedInputError(f"cannot read AST dump {path}: {exc}") from exc
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            raise MalformedInputError(f"invalid JSON in {path}: {exc.msg} (line {exc.lineno})") from exc
