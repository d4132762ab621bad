from typing import TYPE_CHECKING, Any, cast

from rich.console import Console

from design_guide_linter.domain.config import ConfigurationLoader
from design_guide_linter.domain.constants import DEFAULT_TEST_SUPPORT
from design_guide_linter.infrastructure.config_file_loader import ConfigFileLoader
from design_guide_linter.infrastructure.gateways.ast_dump_gateway import AstDumpGateway
from design_guide_linter.infrastructure.gateways.filesystem_gateway import FileSystemGateway
from design_guide_linter.infrastructure.reporters import JsonStyleReporter, TerminalStyleReporter
from design_guide_linter.infrastructure.services.guidance_service import GuidanceService
from design_guide_linter.interface.telemetry import ProjectTelemetry

if TYPE_CHECKING:
    from design_guide_linter.domain.protocols import (
        AstSourceProtocol,
        FileSystemProtocol,
        GuidanceServiceProtocol,
        TelemetryPort,
    )
    from design_guide_linter.interface.reporters import StyleReporter


class DesignGuideContainer:
    """Dependency Injection Container for the design guide linter."""

    def __init__(self, config: ConfigurationLoader | None = None) -> None:
        self._singletons: dict[str, Any] = {}
        self._register_defaults(config)

    def _register_defaults(self, config: ConfigurationLoader | None) -> None:
        """Register default implementations for protocols."""
        config_loader = config or ConfigurationLoader(
            {"test_support": DEFAULT_TEST_SUPPORT, **ConfigFileLoader.load_config_from_fs()}
        )
        self.register_singleton("ConfigurationLoader", config_loader)

        telemetry = ProjectTelemetry("DESIGN-GUIDE", "cyan", "functional style rule engine")
        self.register_singleton("TelemetryPort", telemetry)
        filesystem = FileSystemGateway()
        self.register_singleton("FileSystemGateway", filesystem)
        self.register_singleton("AstDumpGateway", AstDumpGateway(filesystem))
        guidance_service = GuidanceService()
        self.register_singleton("GuidanceService", guidance_service)

        # Interface
        console = Console()
        self.register_singleton("Console", console)
        self.register_singleton("TerminalReporter", TerminalStyleReporter(guidance_service, console))
        self.register_singleton("JsonReporter", JsonStyleReporter())

    def register_singleton(self, key: str, instance: Any) -> None:
        """Register a singleton instance."""
        self._singletons[key] = instance

    def get(self, key: str) -> Any:
        """Retrieve a dependency by key. Prefer explicit get_* methods for type safety."""
        if key in self._singletons:
            return self._singletons[key]
        raise ValueError(f"Dependency '{key}' not registered.")

    def get_config_loader(self) -> ConfigurationLoader:
        return cast(ConfigurationLoader, self.get("ConfigurationLoader"))

    def get_telemetry_port(self) -> "TelemetryPort":
        """Return the telemetry/UI port."""
        return cast("TelemetryPort", self.get("TelemetryPort"))

    def get_filesystem_gateway(self) -> "FileSystemProtocol":
        """Return the filesystem gateway."""
        return cast("FileSystemProtocol", self.get("FileSystemGateway"))

    def get_ast_source(self) -> "AstSourceProtocol":
        """Return the AST dump gateway."""
        return cast("AstSourceProtocol", self.get("AstDumpGateway"))

    def get_guidance_service(self) -> "GuidanceServiceProtocol":
        """Return the rule guidance service."""
        return cast("GuidanceServiceProtocol", self.get("GuidanceService"))

    def get_console(self) -> Console:
        return cast(Console, self.get("Console"))

    def get_terminal_reporter(self) -> "StyleReporter":
        return cast("StyleReporter", self.get("TerminalReporter"))

    def get_json_reporter(self) -> "StyleReporter":
        return cast("StyleReporter", self.get("JsonReporter"))
