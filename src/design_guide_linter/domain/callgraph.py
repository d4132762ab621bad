"""Intra-module call graph derived from a ModuleScope."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from design_guide_linter.domain.scope import CallRef, FunctionKey, ModuleScope

logger = logging.getLogger(__name__)

Edge = tuple[FunctionKey, FunctionKey]


@dataclass(frozen=True)
class CallGraph:
    """
    Direct call edges between functions of one module.

    Cross-module calls never become edges; they are kept in ``unresolved``.
    Declaration positions and each callee's first caller are computed once
    at build time so ordering rules only do lookups.
    """

    module_name: str
    edges: frozenset[Edge] = frozenset()
    unresolved: tuple[CallRef, ...] = ()
    order: tuple[FunctionKey, ...] = ()
    _positions: Mapping[FunctionKey, int] = field(default_factory=lambda: MappingProxyType({}))
    _first_callers: Mapping[FunctionKey, FunctionKey] = field(
        default_factory=lambda: MappingProxyType({})
    )
    _callees: Mapping[FunctionKey, frozenset[FunctionKey]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    _callers: Mapping[FunctionKey, frozenset[FunctionKey]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def has_edge(self, caller: FunctionKey, callee: FunctionKey) -> bool:
        return (caller, callee) in self.edges

    def callees(self, key: FunctionKey) -> frozenset[FunctionKey]:
        return self._callees.get(key, frozenset())

    def callers(self, key: FunctionKey) -> frozenset[FunctionKey]:
        return self._callers.get(key, frozenset())

    def is_resolved(self, call: CallRef) -> bool:
        """True when a call site binds to a function of this module."""
        return call.resolved is not None and call.resolved in self._positions

    def position(self, key: FunctionKey) -> int | None:
        """Declaration index of a function group."""
        return self._positions.get(key)

    def first_caller(self, key: FunctionKey) -> FunctionKey | None:
        """Earliest-declared function calling ``key`` (self-calls excluded)."""
        return self._first_callers.get(key)

    def is_empty(self) -> bool:
        return not self.order


class CallGraphBuilder:
    """Builds a CallGraph in one pass over the scope's resolved references."""

    def build(self, scope: ModuleScope) -> CallGraph:
        order = tuple(s.key for s in scope.in_order())
        positions = {key: index for index, key in enumerate(order)}
        edges: set[Edge] = set()
        callees: dict[FunctionKey, set[FunctionKey]] = defaultdict(set)
        callers: dict[FunctionKey, set[FunctionKey]] = defaultdict(set)
        unresolved: list[CallRef] = []
        for ref in scope.references:
            if ref.resolved is None:
                unresolved.append(ref)
                continue
            if ref.caller is None:
                continue
            edges.add((ref.caller, ref.resolved))
            callees[ref.caller].add(ref.resolved)
            callers[ref.resolved].add(ref.caller)

        first_callers: dict[FunctionKey, FunctionKey] = {}
        for callee, its_callers in callers.items():
            candidates = [c for c in its_callers if c != callee]
            if candidates:
                first_callers[callee] = min(candidates, key=lambda c: positions[c])

        logger.debug(
            "Call graph for %s: %d edges, %d unresolved references",
            scope.module_name,
            len(edges),
            len(unresolved),
        )
        return CallGraph(
            module_name=scope.module_name,
            edges=frozenset(edges),
            unresolved=tuple(unresolved),
            order=order,
            _positions=MappingProxyType(positions),
            _first_callers=MappingProxyType(first_callers),
            _callees=MappingProxyType({k: frozenset(v) for k, v in callees.items()}),
            _callers=MappingProxyType({k: frozenset(v) for k, v in callers.items()}),
        )
