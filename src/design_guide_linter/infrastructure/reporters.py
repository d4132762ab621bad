"""Terminal and JSON reporter implementations - live in infrastructure (rich, json)."""

import json
import sys
from typing import TYPE_CHECKING, TextIO

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from design_guide_linter.domain.entities import Severity

if TYPE_CHECKING:
    from design_guide_linter.domain.entities import AnalysisResult
    from design_guide_linter.domain.protocols import GuidanceServiceProtocol

_SEVERITY_STYLES: dict[Severity, str] = {
    Severity.ERROR: "bold red",
    Severity.VIOLATION: "red",
    Severity.ADVISORY: "yellow",
}


class TerminalStyleReporter:
    """Rich tables grouped by file, then a guidance table for every rule that fired."""

    def __init__(self, guidance_service: "GuidanceServiceProtocol", console: Console | None = None) -> None:
        self._guidance = guidance_service
        self.console = console or Console()

    def report(self, result: "AnalysisResult") -> None:
        if not result.has_violations():
            self.console.print(
                f"[green]No style issues[/] in {result.files_analyzed} file(s), "
                f"{result.modules_analyzed} module(s)."
            )
            return
        for file, violations in result.by_file().items():
            table = Table(title=escape(file), title_justify="left", show_lines=False)
            table.add_column("Location", no_wrap=True)
            table.add_column("Severity", no_wrap=True)
            table.add_column("Rule", no_wrap=True)
            table.add_column("Message")
            for violation in violations:
                style = _SEVERITY_STYLES[violation.severity]
                table.add_row(
                    f"{violation.span.start_line}:{violation.span.start_col}",
                    f"[{style}]{violation.severity.value}[/]",
                    violation.rule_id,
                    escape(violation.message),
                )
            self.console.print(table)
        self._report_guidance(result)
        self._report_summary(result)

    def _report_guidance(self, result: "AnalysisResult") -> None:
        rule_ids = sorted({v.rule_id for v in result.violations if v.severity is not Severity.ERROR})
        if not rule_ids:
            return
        table = Table(title="How to fix", title_justify="left")
        table.add_column("Rule", no_wrap=True)
        table.add_column("Guidance")
        for rule_id in rule_ids:
            name = self._guidance.get_display_name(rule_id)
            table.add_row(
                f"{rule_id}\n[dim]{escape(name)}[/]",
                escape(self._guidance.get_manual_instructions(rule_id)),
            )
        self.console.print(table)

    def _report_summary(self, result: "AnalysisResult") -> None:
        counts = result.counts()
        parts = [
            f"[{_SEVERITY_STYLES[severity]}]{counts[severity.value]} {severity.value}[/]"
            for severity in (Severity.ERROR, Severity.VIOLATION, Severity.ADVISORY)
        ]
        line = ", ".join(parts) + f" in {result.files_analyzed} file(s)"
        if result.cancelled:
            line += f" [yellow](cancelled, {len(result.skipped_files)} skipped)[/]"
        self.console.print(line)


class JsonStyleReporter:
    """Machine-readable output: the record list plus a summary block."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream

    def report(self, result: "AnalysisResult") -> None:
        print(json.dumps(result.to_dict(), indent=2), file=self.stream or sys.stdout)
