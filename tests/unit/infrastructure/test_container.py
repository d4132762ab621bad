"""Unit tests for DesignGuideContainer."""

from unittest.mock import patch

import pytest
from rich.console import Console

from design_guide_linter.domain.config import ConfigurationLoader
from design_guide_linter.infrastructure.di.container import DesignGuideContainer
from design_guide_linter.infrastructure.gateways.ast_dump_gateway import AstDumpGateway
from design_guide_linter.infrastructure.reporters import JsonStyleReporter, TerminalStyleReporter
from design_guide_linter.infrastructure.services.guidance_service import GuidanceService
from design_guide_linter.interface.telemetry import ProjectTelemetry


def test_container_wires_defaults() -> None:
    config = ConfigurationLoader({"context_depth": 2})
    container = DesignGuideContainer(config)

    assert container.get_config_loader() is config
    assert isinstance(container.get_telemetry_port(), ProjectTelemetry)
    assert isinstance(container.get_ast_source(), AstDumpGateway)
    assert isinstance(container.get_guidance_service(), GuidanceService)
    assert isinstance(container.get_console(), Console)
    assert isinstance(container.get_terminal_reporter(), TerminalStyleReporter)
    assert isinstance(container.get_json_reporter(), JsonStyleReporter)
    assert container.get_ast_source().filesystem is container.get_filesystem_gateway()


def test_container_loads_configuration_from_pyproject() -> None:
    with patch(
        "design_guide_linter.infrastructure.di.container.ConfigFileLoader.load_config_from_fs",
        return_value={"max_workers": 6},
    ):
        container = DesignGuideContainer()
    config = container.get_config_loader()
    assert config.max_workers == 6
    assert set(config.test_support) == {"ConnCase", "DataCase"}
    assert config.test_support["ConnCase"].capability == "web transport"


def test_pyproject_capability_table_replaces_shipped_one() -> None:
    section = {"test_support": {"MyApp.ChannelCase": {"capability": "channels", "hallmarks": ["*ChannelTest.*"]}}}
    with patch(
        "design_guide_linter.infrastructure.di.container.ConfigFileLoader.load_config_from_fs",
        return_value=section,
    ):
        container = DesignGuideContainer()
    assert list(container.get_config_loader().test_support) == ["MyApp.ChannelCase"]


def test_register_singleton_overrides() -> None:
    container = DesignGuideContainer(ConfigurationLoader())
    container.register_singleton("Console", "replacement")
    assert container.get("Console") == "replacement"


def test_unknown_dependency_raises() -> None:
    with pytest.raises(ValueError, match="not registered"):
        DesignGuideContainer(ConfigurationLoader()).get("Nope")
