"""Pytest configuration and shared dependency mocks.

Run pytest from this project's root; pythonpath in pyproject.toml makes
both the src layout and the tests helpers (tests.ast_builders) importable.
"""

from unittest.mock import MagicMock

from design_guide_linter.domain.config import ConfigurationLoader
from design_guide_linter.domain.constants import DEFAULT_TEST_SUPPORT


def cli_required_deps(**overrides: object) -> dict[str, object]:
    """Return required dependency mocks for CLIDependencies. Pass overrides to customize."""
    base: dict[str, object] = {
        "config_loader": ConfigurationLoader({"test_support": DEFAULT_TEST_SUPPORT}),
        "telemetry": MagicMock(),
        "ast_source": MagicMock(),
        "guidance_service": MagicMock(),
        "terminal_reporter": MagicMock(),
        "json_reporter": MagicMock(),
        "console": MagicMock(),
    }
    base.update(overrides)
    return base
