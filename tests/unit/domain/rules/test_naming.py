"""Unit tests for SequentialNamingRule and PredicateNamingRule."""

from tests.ast_builders import (
    atom,
    binop,
    branch,
    call,
    case,
    defn,
    lit,
    match,
    module,
    ok,
    run_rule,
    tup,
    var,
)


def _names(violations: list) -> list[str]:
    return sorted(v.message.split("`")[1] for v in violations)


# --- sequential-naming ---


def test_every_unseparated_numbered_parameter_is_flagged() -> None:
    raw = module("A", defn("merge", (var("fileName1"), var("fileName2"))))
    violations = run_rule("sequential-naming", raw)
    assert _names(violations) == ["fileName1", "fileName2"]
    assert "fileName_1" in violations[0].message or "fileName_1" in violations[1].message


def test_separated_series_is_compliant() -> None:
    raw = module("A", defn("merge", (var("user_1"), var("user_2"))))
    assert run_rule("sequential-naming", raw) == []


def test_mixed_series_flags_only_unseparated_member() -> None:
    raw = module("A", defn("merge", (var("user_1"), var("user2"))))
    assert _names(run_rule("sequential-naming", raw)) == ["user2"]


def test_single_numbered_identifier_is_not_a_series() -> None:
    raw = module("A", defn("decode", (var("base64"), var("opts"))))
    assert run_rule("sequential-naming", raw) == []


def test_numbered_name_next_to_its_stem_forms_a_series() -> None:
    raw = module("A", defn("diff", (var("user"), var("user2"))))
    assert _names(run_rule("sequential-naming", raw)) == ["user2"]


def test_underscored_names_are_ignored() -> None:
    raw = module("A", defn("f", (var("_arg1"), var("_arg2"))))
    assert run_rule("sequential-naming", raw) == []


def test_match_patterns_are_declarations() -> None:
    raw = module(
        "A",
        defn("f", (var("pair"),), (match(tup(var("item1"), var("item2")), var("pair")),)),
    )
    assert _names(run_rule("sequential-naming", raw)) == ["item1", "item2"]


# --- predicate-naming ---


def test_guard_prefix_with_suffix_reports_only_prefix() -> None:
    raw = module("A", defn("is_active?", (var("user"),), (binop("==", var("user"), atom("active")),)))
    [violation] = run_rule("predicate-naming", raw)
    assert "`is_` prefix" in violation.message
    assert "end the name" not in violation.message


def test_boolean_function_without_suffix_reports_only_suffix() -> None:
    raw = module("A", defn("active", (var("user"),), (binop("==", var("user"), atom("active")),)))
    [violation] = run_rule("predicate-naming", raw)
    assert "end the name with `?`" in violation.message
    assert "prefix" not in violation.message


def test_prefix_and_missing_suffix_are_reported_together() -> None:
    raw = module("A", defn("is_admin", (var("user"),), (call("member?", var("roles"), var("user"), module="Enum"),)))
    [violation] = run_rule("predicate-naming", raw)
    assert "prefix" in violation.message
    assert "end the name" in violation.message


def test_compliant_predicate_is_fine() -> None:
    raw = module("A", defn("active?", (var("user"),), (binop("==", var("user"), atom("active")),)))
    assert run_rule("predicate-naming", raw) == []


def test_function_returning_tagged_tuples_is_not_a_predicate() -> None:
    raw = module(
        "A",
        defn(
            "check",
            (var("x"),),
            (case(var("x"), branch(lit(True), ok(var("x"))), branch(var("_"), atom("false"))),),
        ),
    )
    assert run_rule("predicate-naming", raw) == []


def test_all_clauses_must_be_boolean() -> None:
    raw = module(
        "A",
        defn("valid", (atom("nil"),), (atom("false"),)),
        defn("valid", (var("x"),), (binop(">", var("x"), lit(0)),)),
    )
    assert len(run_rule("predicate-naming", raw)) == 1
    mixed = module(
        "A",
        defn("valid", (atom("nil"),), (atom("false"),)),
        defn("valid", (var("x"),), (var("x"),)),
    )
    assert run_rule("predicate-naming", mixed) == []


def test_custom_guard_prefix_and_suffix() -> None:
    raw = module("A", defn("has_role", (var("u"),), (lit(True),)))
    [violation] = run_rule("predicate-naming", raw, guard_prefix="has_", predicate_suffix="_p")
    assert "`has_` prefix" in violation.message
    assert "`_p`" in violation.message
