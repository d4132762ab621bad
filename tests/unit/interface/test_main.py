"""Unit tests for the composition root."""

from unittest.mock import MagicMock, patch

import pytest

from design_guide_linter import __main__ as entry
from design_guide_linter.domain.errors import ConfigurationError


def test_main_wires_container_into_app() -> None:
    app = MagicMock()
    with (
        patch.object(entry, "DesignGuideContainer") as container_cls,
        patch.object(entry.CLIAppFactory, "create_app", return_value=app) as create_app,
    ):
        entry.main()

    deps = create_app.call_args.args[0]
    container = container_cls.return_value
    assert deps.config_loader is container.get_config_loader.return_value
    assert deps.console is container.get_console.return_value
    app.assert_called_once_with()


def test_main_exits_on_bad_configuration(capsys: pytest.CaptureFixture[str]) -> None:
    with patch.object(entry, "DesignGuideContainer", side_effect=ConfigurationError("'max_workers' must be a positive integer")):
        with pytest.raises(SystemExit) as exc_info:
            entry.main()
    assert exc_info.value.code == 2
    assert "configuration error" in capsys.readouterr().err
