"""CLI entry points for design-guide - Thin Controller using Typer."""

import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from design_guide_linter.domain.config import ConfigurationLoader
from design_guide_linter.domain.engine import StyleEngine
from design_guide_linter.domain.entities import Severity
from design_guide_linter.domain.errors import ConfigurationError
from design_guide_linter.domain.protocols import (
    AstSourceProtocol,
    GuidanceServiceProtocol,
    TelemetryPort,
)
from design_guide_linter.domain.rules.catalog import RuleCatalog
from design_guide_linter.interface.reporters import StyleReporter
from design_guide_linter.use_cases.check_style import CheckStyleUseCase


class OutputFormat(str, Enum):
    TERMINAL = "terminal"
    JSON = "json"


class FailOn(str, Enum):
    VIOLATION = "violation"
    ADVISORY = "advisory"


@dataclass(frozen=True)
class CLIDependencies:
    """Explicit dependencies for the CLI. All dependencies injected at composition root."""

    config_loader: ConfigurationLoader
    telemetry: TelemetryPort
    ast_source: AstSourceProtocol
    guidance_service: GuidanceServiceProtocol
    terminal_reporter: StyleReporter
    json_reporter: StyleReporter
    console: Console


class CLIAppFactory:
    """Creates the Typer app."""

    @staticmethod
    def build_engine(deps: CLIDependencies) -> StyleEngine:
        """Construct the engine; configuration errors end the run with exit code 2."""
        try:
            return StyleEngine(deps.config_loader)
        except ConfigurationError as exc:
            deps.telemetry.error(str(exc))
            sys.exit(2)

    @staticmethod
    def create_app(deps: CLIDependencies) -> typer.Typer:
        """Create the Typer app with explicitly injected dependencies."""
        app = typer.Typer(
            name="design-guide",
            help="Check parsed source trees against the functional design style guide.",
            add_completion=False,
        )

        @app.command()
        def check(
            paths: list[Path] = typer.Argument(..., help="AST dump files or directories to check"),  # noqa: B008
            output_format: OutputFormat = typer.Option(
                OutputFormat.TERMINAL, "--format", help="Report format: terminal or json"
            ),
            fail_on: FailOn = typer.Option(
                FailOn.VIOLATION, "--fail-on", help="Lowest severity that fails the run"
            ),
            workers: Optional[int] = typer.Option(
                None, "--workers", min=1, help="Parallel workers (default: max_workers from config)"
            ),
        ) -> None:
            """Analyze AST dumps and report style violations."""
            if output_format is OutputFormat.TERMINAL:
                deps.telemetry.handshake()
            engine = CLIAppFactory.build_engine(deps)
            use_case = CheckStyleUseCase(engine, deps.ast_source, deps.telemetry, max_workers=workers)
            result = use_case.execute([str(p) for p in paths])
            reporter = deps.json_reporter if output_format is OutputFormat.JSON else deps.terminal_reporter
            reporter.report(result)
            if result.is_blocked(Severity(fail_on.value)):
                sys.exit(1)

        @app.command(name="rules")
        def list_rules() -> None:
            """List the enabled rules of the catalog."""
            catalog = RuleCatalog.from_config(deps.config_loader)
            table = Table(title="Style rules", title_justify="left")
            table.add_column("Rule", no_wrap=True)
            table.add_column("Severity", no_wrap=True)
            table.add_column("Title")
            for rule in catalog:
                table.add_row(rule.rule_id, rule.severity.value, escape(rule.title))
            deps.console.print(table)

        @app.command()
        def explain(rule_id: str = typer.Argument(..., help="Rule id, e.g. with-else-coverage")) -> None:
            """Show the rationale and fix instructions for one rule."""
            entry = deps.guidance_service.get_entry(rule_id)
            if entry is None:
                deps.telemetry.error(f"Unknown rule id '{rule_id}'")
                sys.exit(2)
            rule = RuleCatalog.from_config(ConfigurationLoader()).get(rule_id)
            severity = rule.severity.value if rule is not None else entry.get("severity", "")
            deps.console.print(f"[bold]{escape(deps.guidance_service.get_display_name(rule_id))}[/] ({rule_id}, {severity})")
            if entry.get("short_description"):
                deps.console.print(escape(str(entry["short_description"])))
            if entry.get("rationale"):
                deps.console.print(f"\n[bold]Why[/]\n{escape(str(entry['rationale']).strip())}")
            deps.console.print(
                f"\n[bold]How to fix[/]\n{escape(deps.guidance_service.get_manual_instructions(rule_id))}"
            )
            for reference in entry.get("references", []):
                deps.console.print(f"  - {escape(reference)}")

        return app
