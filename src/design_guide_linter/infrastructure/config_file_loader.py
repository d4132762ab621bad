"""Load [tool.design-guide] from pyproject.toml. Infrastructure I/O only."""

import tomllib
from pathlib import Path

from design_guide_linter.domain.constants import TOOL_SECTION
from design_guide_linter.domain.errors import ConfigurationError


class ConfigFileLoader:
    """
    Loads config from the nearest pyproject.toml, walking up from a start directory.
    """

    @staticmethod
    def find_pyproject(start: Path | None = None) -> Path | None:
        current_path = (start or Path.cwd()).resolve()
        for directory in (current_path, *current_path.parents):
            config_file = directory / "pyproject.toml"
            if config_file.is_file():
                return config_file
        return None

    @staticmethod
    def load_config_from_fs(start: Path | None = None) -> dict[str, object]:
        """Return the [tool.design-guide] table ({} when absent). Invalid TOML is fatal."""
        config_file = ConfigFileLoader.find_pyproject(start)
        if config_file is None:
            return {}
        try:
            with config_file.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"{config_file}: {exc}") from exc
        except OSError:
            return {}
        tool_section = data.get("tool", {}) or {}
        section = tool_section.get(TOOL_SECTION, {}) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"{config_file}: [tool.{TOOL_SECTION}] must be a table")
        return section
