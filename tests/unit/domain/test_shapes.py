"""Unit tests for the structural helpers in Shapes."""

import pytest

from design_guide_linter.domain.constants import FIELD_ACCESSORS
from design_guide_linter.domain.shapes import ReturnKind, Shapes
from tests.ast_builders import (
    access,
    atom,
    binop,
    branch,
    call,
    case,
    error,
    if_,
    lit,
    lst,
    match,
    node,
    normalize,
    ok,
    pipe,
    tup,
    var,
    with_,
)


def test_structural_equality_ignores_spans() -> None:
    left = normalize(error(var("reason", line=3)))
    right = normalize(error(var("reason", line=9)))
    assert left is not right
    assert Shapes.structurally_equal(left, right)
    assert not Shapes.structurally_equal(left, normalize(error(var("other"))))


def test_echo_branch() -> None:
    assert Shapes.is_echo(normalize(branch(error(var("e")), error(var("e")))))
    assert not Shapes.is_echo(normalize(branch(error(var("e")), error(atom("failed")))))
    assert not Shapes.is_echo(normalize(branch(error(var("e")), call("log"), error(var("e")))))


def test_echo_through_bound_struct_pattern() -> None:
    struct_match = match(var("changeset"), node("struct", name="Ecto.Changeset"))
    raw = branch(error(struct_match), error(var("changeset")))
    assert Shapes.is_echo(normalize(raw))


def test_tag_of() -> None:
    assert Shapes.tag_of(normalize(atom("error"))) == "error"
    assert Shapes.tag_of(normalize(ok(var("x")))) == "ok"
    assert Shapes.tag_of(normalize(var("x"))) is None


def test_catch_all_and_discarding() -> None:
    assert Shapes.is_catch_all(normalize(var("other")))
    assert Shapes.is_discarding(normalize(var("_reason")))
    assert not Shapes.is_discarding(normalize(var("reason")))
    assert not Shapes.is_catch_all(normalize(error(var("e"))))


def test_terminal_expressions_descend_into_conditionals() -> None:
    body = normalize(
        node(
            "block",
            call("prepare"),
            case(var("x"), branch(atom("a"), ok(var("x"))), branch(var("_"), error(atom("bad")))),
        )
    )
    kinds = [Shapes.classify_return(t) for t in Shapes.terminal_expressions(body)]
    assert kinds == [ReturnKind.OK, ReturnKind.ERROR]


def test_if_without_else_contributes_itself() -> None:
    expression = normalize(if_(var("flag"), (ok(var("x")),)))
    terminals = Shapes.terminal_expressions(expression)
    assert len(terminals) == 2
    assert terminals[1] is expression


def test_with_without_else_contributes_itself() -> None:
    expression = normalize(with_([(ok(var("x")), call("fetch"))], (ok(var("x")),)))
    terminals = Shapes.terminal_expressions(expression)
    assert terminals[-1] is expression


@pytest.mark.parametrize(
    "raw, expected",
    [
        (ok(var("x")), ReturnKind.OK),
        (atom("error"), ReturnKind.ERROR),
        (call("raise", lit("boom")), ReturnKind.RAISE),
        (node("raise"), ReturnKind.RAISE),
        (call("fetch!", var("x"), module="Repo"), ReturnKind.PLAIN),
        (call("fetch", var("x"), module="Repo"), ReturnKind.UNKNOWN),
        (var("x"), ReturnKind.UNKNOWN),
        (lit(42), ReturnKind.PLAIN),
    ],
)
def test_classify_return(raw: dict, expected: ReturnKind) -> None:
    assert Shapes.classify_return(normalize(raw)) is expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        (lit(True), True),
        (atom("false"), True),
        (binop("==", var("a"), var("b")), True),
        (binop("+", var("a"), var("b")), False),
        (call("member?", var("xs"), var("x"), module="Enum"), True),
        (pipe(var("x"), call("is_nil")), True),
        (ok(var("x")), False),
    ],
)
def test_is_boolean_valued(raw: dict, expected: bool) -> None:
    assert Shapes.is_boolean_valued(normalize(raw)) is expected


def test_status_list() -> None:
    assert Shapes.status_list(normalize(lst(atom("ok"), var("x"))))
    assert not Shapes.status_list(normalize(lst(atom("ok"))))
    assert not Shapes.status_list(normalize(lst(atom("pending"), var("x"))))


def test_unify_treats_opaque_values_as_wildcards() -> None:
    pattern = normalize(error(atom("not_found")))
    assert Shapes.unify(pattern, normalize(error(atom("not_found"))))
    assert not Shapes.unify(pattern, normalize(error(atom("forbidden"))))
    assert Shapes.unify(pattern, normalize(call("fetch")))
    assert not Shapes.unify(pattern, normalize(ok(var("x"))))


def test_same_shape_compares_kind_and_length() -> None:
    assert Shapes.same_shape(normalize(error(var("e"))), normalize(ok(var("x"))))
    assert not Shapes.same_shape(normalize(error(var("e"))), normalize(tup(atom("ok"))))
    assert not Shapes.same_shape(normalize(atom("error")), normalize(ok(var("x"))))


def test_access_root_follows_index_and_accessor_calls() -> None:
    chain = access(access(var("doc"), lit("data")), lit("id"))
    assert Shapes.access_root(normalize(chain), FIELD_ACCESSORS) == ("doc", 2)
    getter = call("get", var("params"), lit("id"), module="Map")
    assert Shapes.access_root(normalize(getter), FIELD_ACCESSORS) == ("params", 1)
    assert Shapes.access_root(normalize(var("doc")), FIELD_ACCESSORS) is None


def test_iter_calls_reports_pipe_arity() -> None:
    tree = normalize(pipe(var("x"), call("step", lit(1))))
    assert [(c.name, arity) for c, arity in Shapes.iter_calls(tree)] == [("step", 2)]
