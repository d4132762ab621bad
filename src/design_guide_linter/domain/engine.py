"""StyleEngine: adapter, evaluator and reporter wired together for one source file."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from design_guide_linter.domain.adapter import NodeAdapter
from design_guide_linter.domain.config import CapabilitySpec, ConfigurationLoader
from design_guide_linter.domain.errors import ConfigurationError, MalformedInputError
from design_guide_linter.domain.evaluator import RuleEvaluator
from design_guide_linter.domain.nodes import NodeKind, SourceRange
from design_guide_linter.domain.reporter import ViolationReporter
from design_guide_linter.domain.rules import Violation
from design_guide_linter.domain.rules.catalog import RuleCatalog
from design_guide_linter.domain.scope import NamespaceDepthPredicate, ScopeIndexer

logger = logging.getLogger(__name__)

UNKNOWN_FILE = "<unknown>"


@dataclass(frozen=True)
class FileReport:
    """Violations of one source file, already deduplicated and ordered."""

    file: str
    violations: tuple[Violation, ...]
    modules_analyzed: int = 0
    cancelled: bool = False


class StyleEngine:
    """
    Runs the rule catalog over raw parser trees.

    Construction validates the external collaborators (capability table and
    context predicate) and raises ConfigurationError before any analysis.
    Each top-level module is normalized and evaluated on its own, so a
    malformed or slow module only costs its own results.
    """

    def __init__(
        self,
        config: ConfigurationLoader | None = None,
        context_predicate: Callable[[str], bool] | None = None,
        capabilities: Mapping[str, CapabilitySpec] | None = None,
    ) -> None:
        config = config or ConfigurationLoader()
        if capabilities is not None:
            config = config.with_overrides(
                test_support={
                    base: {"capability": spec.capability, "hallmarks": list(spec.hallmarks)}
                    for base, spec in capabilities.items()
                }
            )
        predicate = context_predicate or NamespaceDepthPredicate(config.context_depth)
        if not callable(predicate):
            raise ConfigurationError("Context nesting predicate must be callable")
        self.catalog = RuleCatalog.from_config(config)
        if self.catalog.enabled("test-case-usage"):
            if not config.has_test_support:
                raise ConfigurationError(
                    "test-case-usage is enabled but no test support capability table was supplied"
                )
            if not config.test_support:
                raise ConfigurationError("test-case-usage is enabled but the capability table is empty")
        self.config = config
        self.adapter = NodeAdapter()
        self.evaluator = RuleEvaluator(self.catalog, ScopeIndexer(predicate))
        self.reporter = ViolationReporter()
        self.module_timeout = config.module_timeout

    def analyze(
        self,
        raw_tree: object,
        file: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> FileReport:
        """Analyze one raw source-file (or module) tree. Never raises for module-scoped errors."""
        try:
            raw_modules, file = self._split(raw_tree, file)
        except MalformedInputError as exc:
            where = file or UNKNOWN_FILE
            return FileReport(where, (Violation.engine_error(exc.message, SourceRange(where, 1, 1, 1, 1)),))

        violations: list[Violation] = []
        analyzed = 0
        cancelled = False
        for raw_module in raw_modules:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break
            started = time.monotonic()
            try:
                module = self.adapter.normalize(raw_module, file)
            except MalformedInputError as exc:
                span = exc.span or self.adapter.locate(raw_module, file)
                violations.append(Violation.engine_error(f"malformed input: {exc.message}", span))
                continue
            if module.kind is not NodeKind.MODULE:
                violations.append(
                    Violation.engine_error(
                        f"malformed input: expected a module, got {module.kind.value}", module.span
                    )
                )
                continue
            found = self.evaluator.evaluate(module)
            elapsed = time.monotonic() - started
            if self.module_timeout is not None and elapsed > self.module_timeout:
                logger.debug("Module %s took %.3fs, over budget", module.name, elapsed)
                violations.append(
                    Violation.engine_error(
                        f"{module.name}: analysis exceeded {self.module_timeout:g}s budget",
                        module.span,
                    )
                )
                continue
            violations.extend(found)
            analyzed += 1
        return FileReport(file, tuple(self.reporter.report(violations)), analyzed, cancelled)

    def check(self, raw_trees: Iterable[tuple[object, str | None]]) -> list[Violation]:
        """Analyze several trees sequentially and return one merged, ordered sequence."""
        return self.reporter.merge(*(self.analyze(tree, file).violations for tree, file in raw_trees))

    @staticmethod
    def _split(raw_tree: object, file: str | None) -> tuple[list[object], str]:
        if not isinstance(raw_tree, Mapping):
            raise MalformedInputError("Raw tree root must be a mapping")
        kind = raw_tree.get("kind")
        if file is None:
            attributes = raw_tree.get("attributes")
            candidate = attributes.get("file") if isinstance(attributes, Mapping) else None
            if not isinstance(candidate, str) or not candidate:
                raise MalformedInputError("Raw tree does not name its source file")
            file = candidate
        if kind == NodeKind.MODULE.value:
            return [raw_tree], file
        if kind != NodeKind.SOURCE_FILE.value:
            raise MalformedInputError(f"Root must be a source_file or module, got {kind!r}")
        children = raw_tree.get("children") or []
        if not isinstance(children, list):
            raise MalformedInputError("source_file children must be a list")
        return list(children), file
