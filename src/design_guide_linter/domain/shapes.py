"""Structural vocabulary shared by the rules: equality, echoes, terminals, return shapes."""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum

from design_guide_linter.domain.nodes import Node, NodeKind

COMPARISON_OPERATORS: frozenset[str] = frozenset(
    {"==", "!=", "===", "!==", "<", ">", "<=", ">=", "=~", "in", "not in"}
)
BOOLEAN_OPERATORS: frozenset[str] = frozenset({"and", "or", "&&", "||"})
NEGATION_OPERATORS: frozenset[str] = frozenset({"not", "!"})
STATUS_TAGS: frozenset[str] = frozenset({"ok", "error"})

# Kinds whose runtime value cannot be inferred structurally.
OPAQUE_KINDS: frozenset[NodeKind] = frozenset(
    {NodeKind.VAR, NodeKind.CALL, NodeKind.PIPE, NodeKind.ACCESS, NodeKind.MATCH}
)


class ReturnKind(Enum):
    """Classification of one return site."""

    OK = "ok"
    ERROR = "error"
    RAISE = "raise"
    PLAIN = "plain"
    UNKNOWN = "unknown"


class Shapes:
    """Pure structural helpers over Node trees. Stateless; all static."""

    @staticmethod
    def structurally_equal(left: Node, right: Node) -> bool:
        """Same kind, attributes and children recursively; spans are ignored."""
        stack: list[tuple[Node, Node]] = [(left, right)]
        while stack:
            a, b = stack.pop()
            if a.kind is not b.kind or len(a.children) != len(b.children):
                return False
            if dict(a.attributes) != dict(b.attributes):
                return False
            stack.extend(zip(a.children, b.children))
        return True

    @staticmethod
    def reduce_pattern(pattern: Node) -> Node:
        """`name = %Struct{}` (either side) reduces to `name`; anything else is returned as is."""
        if pattern.kind is NodeKind.MATCH:
            left, right = pattern.children[0], pattern.children[1]
            if left.kind is NodeKind.VAR:
                return left
            if right.kind is NodeKind.VAR:
                return right
        if pattern.kind is NodeKind.TUPLE:
            reduced = tuple(Shapes.reduce_pattern(c) for c in pattern.children)
            if any(r is not c for r, c in zip(reduced, pattern.children)):
                return Node(pattern.kind, pattern.span, reduced, pattern.attributes)
        return pattern

    @staticmethod
    def branch_parts(branch: Node) -> tuple[Node, Node]:
        """Return (pattern, body) of a branch node."""
        return branch.children[0], branch.children[1]

    @staticmethod
    def single_expression(body: Node) -> Node | None:
        """The only expression of a body (unwrapping a one-element block), else None."""
        if body.kind is NodeKind.BLOCK:
            return body.children[0] if len(body.children) == 1 else None
        return body

    @staticmethod
    def is_echo(branch: Node) -> bool:
        """True when the branch body returns its matched input untouched."""
        pattern, body = Shapes.branch_parts(branch)
        expression = Shapes.single_expression(body)
        if expression is None:
            return False
        return Shapes.structurally_equal(Shapes.reduce_pattern(pattern), expression)

    @staticmethod
    def is_catch_all(pattern: Node) -> bool:
        """A bare variable (including `_` / `_ignored`) matches everything."""
        return Shapes.reduce_pattern(pattern).kind is NodeKind.VAR

    @staticmethod
    def is_discarding(pattern: Node) -> bool:
        """Catch-all whose name marks it unused (`_`, `_reason`)."""
        return pattern.kind is NodeKind.VAR and pattern.name.startswith("_")

    @staticmethod
    def tag_of(node: Node) -> str | None:
        """Leading atom of a tagged value: `:error` -> 'error', `{:error, x}` -> 'error'."""
        node = Shapes.reduce_pattern(node)
        if node.kind is NodeKind.ATOM:
            return str(node.attr("value"))
        if node.kind is NodeKind.TUPLE and node.children and node.children[0].kind is NodeKind.ATOM:
            return str(node.children[0].attr("value"))
        return None

    @staticmethod
    def terminal_expressions(body: Node) -> list[Node]:
        """
        Expressions whose value can become the result of ``body``.

        Descends into blocks (last expression), conditionals (every arm) and
        matches. An ``if`` without else contributes itself (the implicit nil
        path); a ``with`` without else contributes itself (bubbled failures).
        """
        out: list[Node] = []
        Shapes._collect_terminals(body, out)
        return out

    @staticmethod
    def _collect_terminals(node: Node, out: list[Node]) -> None:
        kind = node.kind
        if kind is NodeKind.BLOCK:
            if node.children:
                Shapes._collect_terminals(node.children[-1], out)
            else:
                out.append(node)
        elif kind is NodeKind.IF:
            Shapes._collect_terminals(node.children[1], out)
            if len(node.children) > 2:
                Shapes._collect_terminals(node.children[2], out)
            else:
                out.append(node)
        elif kind is NodeKind.CASE:
            for branch in node.children[1:]:
                Shapes._collect_terminals(branch.children[1], out)
        elif kind is NodeKind.COND:
            for branch in node.children:
                Shapes._collect_terminals(branch.children[1], out)
        elif kind is NodeKind.WITH:
            do_block = node.child_of_kind(NodeKind.BLOCK)
            if do_block is not None:
                Shapes._collect_terminals(do_block, out)
            else_node = node.child_of_kind(NodeKind.ELSE)
            if else_node is None:
                out.append(node)
            else:
                for branch in else_node.children:
                    Shapes._collect_terminals(branch.children[1], out)
        elif kind is NodeKind.MATCH:
            pattern, value = node.children[0], node.children[1]
            if any(n.kind is NodeKind.VAR for n in pattern.walk()):
                Shapes._collect_terminals(value, out)
            else:
                out.append(pattern)
        else:
            out.append(node)

    @staticmethod
    def classify_return(node: Node) -> ReturnKind:
        """Classify one terminal expression."""
        tag = None
        if node.kind in (NodeKind.ATOM, NodeKind.TUPLE):
            tag = Shapes.tag_of(node)
        if tag == "ok":
            return ReturnKind.OK
        if tag == "error":
            return ReturnKind.ERROR
        if Shapes.is_raise(node):
            return ReturnKind.RAISE
        if node.kind in (NodeKind.VAR, NodeKind.ACCESS, NodeKind.WITH):
            return ReturnKind.UNKNOWN
        if node.kind in (NodeKind.CALL, NodeKind.PIPE):
            call = node.children[1] if node.kind is NodeKind.PIPE else node
            return ReturnKind.PLAIN if call.name.endswith("!") else ReturnKind.UNKNOWN
        return ReturnKind.PLAIN

    @staticmethod
    def is_raise(node: Node) -> bool:
        if node.kind is NodeKind.RAISE:
            return True
        return (
            node.kind is NodeKind.CALL
            and node.name in ("raise", "reraise", "throw", "exit")
            and node.attr("module") in (None, "Kernel")
        )

    @staticmethod
    def is_boolean_valued(node: Node) -> bool:
        """Structurally known to evaluate to true/false."""
        if node.kind is NodeKind.LITERAL:
            return isinstance(node.attr("value"), bool)
        if node.kind is NodeKind.ATOM:
            return node.attr("value") in ("true", "false")
        if node.kind is NodeKind.BINARY_OP:
            operator = node.attr("operator")
            return operator in COMPARISON_OPERATORS or operator in BOOLEAN_OPERATORS
        if node.kind is NodeKind.UNARY_OP:
            return node.attr("operator") in NEGATION_OPERATORS
        if node.kind in (NodeKind.CALL, NodeKind.PIPE):
            call = node.children[1] if node.kind is NodeKind.PIPE else node
            return call.name.endswith("?") or call.name.startswith("is_")
        return False

    @staticmethod
    def status_list(node: Node) -> bool:
        """`[:ok, value]` / `[:error, reason]`: a status-and-value pair rendered as a list."""
        return (
            node.kind is NodeKind.LIST
            and len(node.children) >= 2
            and node.children[0].kind is NodeKind.ATOM
            and node.children[0].attr("value") in STATUS_TAGS
        )

    @staticmethod
    def call_target(expression: Node) -> tuple[Node, int] | None:
        """Outermost call of an expression with its effective arity (pipes add one)."""
        if expression.kind is NodeKind.CALL:
            return expression, len(expression.children)
        if expression.kind is NodeKind.PIPE:
            call = expression.children[1]
            return call, len(call.children) + 1
        return None

    @staticmethod
    def iter_calls(root: Node) -> Iterator[tuple[Node, int]]:
        """Every call in ``root`` (nested modules excluded) with its effective arity."""
        piped: set[int] = set()
        for node in root.walk(skip=frozenset({NodeKind.MODULE})):
            if node.kind is NodeKind.MODULE and node is not root:
                continue
            if node.kind is NodeKind.PIPE:
                piped.add(id(node.children[1]))
            elif node.kind is NodeKind.CALL:
                arity = len(node.children) + (1 if id(node) in piped else 0)
                yield node, arity

    @staticmethod
    def unify(pattern: Node, value: Node) -> bool:
        """Could ``value`` be matched by ``pattern``? Opaque values unify with anything."""
        pattern = Shapes.reduce_pattern(pattern)
        if pattern.kind is NodeKind.VAR or value.kind in OPAQUE_KINDS:
            return True
        if pattern.kind in (NodeKind.ATOM, NodeKind.LITERAL):
            return value.kind is pattern.kind and value.attr("value") == pattern.attr("value")
        if pattern.kind in (NodeKind.TUPLE, NodeKind.LIST):
            if value.kind is not pattern.kind or len(value.children) != len(pattern.children):
                return False
            return all(Shapes.unify(p, v) for p, v in zip(pattern.children, value.children))
        if pattern.kind is NodeKind.STRUCT:
            return value.kind is NodeKind.STRUCT and value.name == pattern.name
        return value.kind is pattern.kind

    @staticmethod
    def same_shape(pattern: Node, other: Node) -> bool:
        """Coarse shape compatibility: same kind and, for tuples/lists, same length."""
        pattern = Shapes.reduce_pattern(pattern)
        other = Shapes.reduce_pattern(other)
        if pattern.kind is NodeKind.VAR or other.kind is NodeKind.VAR:
            return True
        if pattern.kind is not other.kind:
            return False
        if pattern.kind in (NodeKind.TUPLE, NodeKind.LIST):
            return len(pattern.children) == len(other.children)
        return True

    @staticmethod
    def pattern_variables(pattern: Node) -> list[Node]:
        """Variable nodes bound by a pattern, in source order."""
        return [n for n in pattern.walk() if n.kind is NodeKind.VAR]

    @staticmethod
    def access_root(expression: Node, accessors: frozenset[str]) -> tuple[str, int] | None:
        """
        Base variable of a field-access chain and the chain's depth.

        ``doc["data"]["id"]`` -> ("doc", 2). Calls named in ``accessors``
        (e.g. ``Map.get``) count as one hop through their first argument.
        """
        depth = 0
        node = expression
        while True:
            if node.kind is NodeKind.ACCESS:
                node = node.children[0]
            elif (
                node.kind is NodeKind.CALL
                and node.children
                and f"{node.attr('module')}.{node.name}" in accessors
            ):
                node = node.children[0]
            else:
                break
            depth += 1
        if depth and node.kind is NodeKind.VAR:
            return node.name, depth
        return None
