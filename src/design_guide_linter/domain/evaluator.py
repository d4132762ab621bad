"""Rule Evaluator: one traversal, per-module scope and graph, dispatch by node kind."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from design_guide_linter.domain.callgraph import CallGraph, CallGraphBuilder
from design_guide_linter.domain.errors import ModuleAnalysisError
from design_guide_linter.domain.nodes import Node, NodeKind
from design_guide_linter.domain.rules import Violation
from design_guide_linter.domain.rules.catalog import RuleCatalog
from design_guide_linter.domain.scope import ModuleScope, ScopeIndexer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ModuleContext:
    scope: ModuleScope
    graph: CallGraph


class RuleEvaluator:
    """
    Walks a normalized tree once and hands each node to the rules interested in its kind.

    Entering a module builds its ModuleScope and CallGraph once; they serve
    every node of that module's subtree. A module that cannot be indexed
    yields one engine record and its subtree is skipped.
    """

    def __init__(
        self,
        catalog: RuleCatalog,
        indexer: ScopeIndexer,
        graph_builder: CallGraphBuilder | None = None,
    ) -> None:
        self.catalog = catalog
        self.indexer = indexer
        self.graph_builder = graph_builder or CallGraphBuilder()
        self._dispatch = catalog.dispatch_table()

    def evaluate(self, tree: Node) -> list[Violation]:
        """Run every applicable rule over ``tree`` (a source file or a module)."""
        violations: list[Violation] = []
        stack: list[tuple[Node, _ModuleContext | None]] = [(tree, None)]
        while stack:
            node, context = stack.pop()
            if node.kind is NodeKind.MODULE:
                context = self._enter_module(node, violations)
                if context is None:
                    continue
            if context is not None:
                for rule in self._dispatch.get(node.kind, ()):
                    violations.extend(rule.check(node, context.scope, context.graph))
            stack.extend((child, context) for child in reversed(node.children))
        return violations

    def _enter_module(self, node: Node, violations: list[Violation]) -> _ModuleContext | None:
        try:
            scope = self.indexer.build(node)
        except ModuleAnalysisError as exc:
            logger.debug("Skipping module %s: %s", node.name, exc.message)
            violations.append(
                Violation.engine_error(f"{node.name}: {exc.message}", exc.span or node.span)
            )
            return None
        return _ModuleContext(scope, self.graph_builder.build(scope))
