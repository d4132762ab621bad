"""ProjectTelemetry: rich console output mirrored to stdlib logging."""

import logging

from rich.console import Console
from rich.markup import escape

from design_guide_linter.domain.protocols import TelemetryPort


class ProjectTelemetry(TelemetryPort):
    """Prints styled status lines and mirrors every message to a logger."""

    def __init__(
        self,
        project_name: str,
        color: str = "cyan",
        welcome_message: str = "",
        console: Console | None = None,
        verbose: bool = False,
    ) -> None:
        self.project_name = project_name
        self.color = color
        self.welcome_message = welcome_message
        self.console = console or Console(stderr=True, highlight=False)
        self.logger = logging.getLogger(project_name.lower().replace(" ", "_"))
        self.verbose = verbose

    def handshake(self) -> None:
        self.console.print(f"[bold {self.color}]{self.project_name}[/] {escape(self.welcome_message)}".rstrip())
        self.logger.info("%s session started", self.project_name)

    def step(self, message: str) -> None:
        self.console.print(f"[{self.color}]>[/] {escape(message)}")
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]warning:[/] {escape(message)}")
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]error:[/] {escape(message)}")
        self.logger.error(message)

    def debug(self, message: str) -> None:
        if self.verbose:
            self.console.print(f"[dim]{escape(message)}[/]")
        self.logger.debug(message)
