"""Use Case: Check Style - analyze AST dumps in parallel and return one ordered result."""

import threading
from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor, as_completed

from design_guide_linter.domain.engine import FileReport, StyleEngine
from design_guide_linter.domain.entities import AnalysisResult
from design_guide_linter.domain.errors import MalformedInputError
from design_guide_linter.domain.nodes import SourceRange
from design_guide_linter.domain.protocols import AstSourceProtocol, TelemetryPort
from design_guide_linter.domain.rules import Violation


class CheckStyleUseCase:
    """
    One worker task per file; workers share only the read-only engine.

    Setting ``cancel_event`` discards queued files and lets in-flight files
    stop after their current module. Whatever finished is still reported.
    """

    def __init__(
        self,
        engine: StyleEngine,
        source: AstSourceProtocol,
        telemetry: TelemetryPort,
        max_workers: int | None = None,
    ) -> None:
        self.engine = engine
        self.source = source
        self.telemetry = telemetry
        self.max_workers = max_workers or engine.config.max_workers

    def execute(
        self,
        paths: list[str],
        cancel_event: threading.Event | None = None,
    ) -> AnalysisResult:
        files = self.source.discover(paths)
        self.telemetry.step(f"Analyzing {len(files)} AST dump(s) with {self.max_workers} worker(s)")
        cancel_event = cancel_event or threading.Event()
        reports: list[FileReport] = []
        skipped: list[str] = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures: dict[Future[FileReport | None], str] = {
                executor.submit(self._analyze_file, path, cancel_event): path for path in files
            }
            for future in as_completed(futures):
                if future.cancelled():
                    continue
                report = future.result()
                if report is None:
                    skipped.append(futures[future])
                    continue
                reports.append(report)
                self.telemetry.debug(
                    f"{report.file}: {len(report.violations)} record(s) from {report.modules_analyzed} module(s)"
                )
                if cancel_event.is_set():
                    for pending, path in futures.items():
                        if pending.cancel():
                            skipped.append(path)

        violations = self.engine.reporter.merge(*(r.violations for r in reports))
        cancelled = cancel_event.is_set() and (bool(skipped) or any(r.cancelled for r in reports))
        if cancelled:
            self.telemetry.warning(f"Run cancelled; {len(skipped)} file(s) not analyzed")
        return AnalysisResult(
            violations=tuple(violations),
            files_analyzed=len(reports),
            modules_analyzed=sum(r.modules_analyzed for r in reports),
            cancelled=cancelled,
            skipped_files=tuple(sorted(set(skipped))),
        )

    def _analyze_file(self, path: str, cancel_event: threading.Event) -> FileReport | None:
        if cancel_event.is_set():
            return None
        try:
            raw_tree = self.source.load(path)
        except MalformedInputError as exc:
            return FileReport(
                path, (Violation.engine_error(exc.message, exc.span or SourceRange(path, 1, 1, 1, 1)),)
            )
        return self.engine.analyze(raw_tree, self._named_file(raw_tree) or path, cancel_event)

    @staticmethod
    def _named_file(raw_tree: object) -> str | None:
        if not isinstance(raw_tree, Mapping):
            return None
        attributes = raw_tree.get("attributes")
        if isinstance(attributes, Mapping) and isinstance(attributes.get("file"), str):
            return attributes["file"] or None
        return None
