"""Unit tests for StyleEngine."""

import json
import random
import threading
from unittest.mock import MagicMock, patch

import pytest

from design_guide_linter.domain.config import CapabilitySpec, ConfigurationLoader
from design_guide_linter.domain.engine import StyleEngine
from design_guide_linter.domain.entities import ENGINE_RULE_ID, Severity
from design_guide_linter.domain.errors import ConfigurationError
from tests.ast_builders import (
    FILE,
    atom,
    call,
    defn,
    defp,
    engine_config,
    import_,
    module,
    moduledoc,
    node,
    ok,
    source_file,
    use,
    var,
    with_,
)


def _sample_modules() -> list[dict]:
    return [
        module(
            "Shop.Checkout.Payment",
            moduledoc("Payment internals."),
            import_("Enum"),
            defn(
                "pay",
                (var("cart"),),
                (with_([(ok(var("r")), call("charge", var("cart"), module="Billing"))], (var("r"),)),),
            ),
        ),
        module(
            "Shop",
            defp("helper", (var("x"),), (var("x"),)),
            defn("is_ready", (var("x"),), (call("helper", var("x")), atom("true"))),
        ),
        module("Shop.Other", defn("wrap", (var("x"),), (ok(var("x")),))),
    ]


def test_analysis_is_idempotent() -> None:
    raw = source_file(*_sample_modules())
    engine = StyleEngine(engine_config())
    first = [v.to_dict() for v in engine.analyze(raw).violations]
    second = [v.to_dict() for v in engine.analyze(raw).violations]
    assert first
    assert json.dumps(first) == json.dumps(second)


def test_module_submission_order_does_not_change_output() -> None:
    engine = StyleEngine(engine_config())
    modules = _sample_modules()
    expected = engine.analyze(source_file(*modules)).violations
    for seed in range(3):
        shuffled = list(modules)
        random.Random(seed).shuffle(shuffled)
        assert engine.analyze(source_file(*shuffled)).violations == expected


def test_check_merges_several_files() -> None:
    engine = StyleEngine(engine_config())
    trees = [
        (source_file(module("A.B.C", moduledoc("x")), file="lib/b.ex"), None),
        (source_file(module("A.B.D", moduledoc("x")), file="lib/a.ex"), None),
    ]
    violations = engine.check(trees)
    assert [v.span.file for v in violations] == ["lib/a.ex", "lib/b.ex"]


def test_sample_findings_carry_expected_rules() -> None:
    report = StyleEngine(engine_config()).analyze(source_file(*_sample_modules()))
    rule_ids = {v.rule_id for v in report.violations}
    assert {
        "moduledoc-scope",
        "import-scope",
        "with-else-coverage",
        "predicate-naming",
        "function-order",
        "ok-error-return-consistency",
    } <= rule_ids
    assert report.modules_analyzed == 3


def test_malformed_module_is_isolated() -> None:
    bad = module("Bad", node("case", line=44))
    good = module("A.B.Good", moduledoc("doc"))
    report = StyleEngine(engine_config()).analyze(source_file(bad, good))
    engine_records = [v for v in report.violations if v.rule_id == ENGINE_RULE_ID]
    assert len(engine_records) == 1
    assert engine_records[0].span.start_line == 44
    assert engine_records[0].message.startswith("malformed input:")
    assert any(v.rule_id == "moduledoc-scope" for v in report.violations)
    assert report.modules_analyzed == 1


def test_unknown_kind_in_one_module_is_isolated() -> None:
    bad = module("Bad", {"kind": "lambda", "span": {"line": 3, "column": 1}})
    report = StyleEngine(engine_config()).analyze(source_file(bad, module("Fine")))
    assert [v.rule_id for v in report.violations] == [ENGINE_RULE_ID]
    assert report.modules_analyzed == 1


def test_root_without_file_is_a_single_engine_record() -> None:
    report = StyleEngine(engine_config()).analyze({"kind": "source_file", "children": []})
    [record] = report.violations
    assert record.rule_id == ENGINE_RULE_ID
    assert record.span.file == "<unknown>"


def test_non_mapping_root_is_reported_against_given_file() -> None:
    report = StyleEngine(engine_config()).analyze(["not", "a", "tree"], "lib/x.ex")
    [record] = report.violations
    assert record.span.file == "lib/x.ex"


def test_bare_module_root_is_accepted() -> None:
    report = StyleEngine(engine_config()).analyze(module("A.B.C", moduledoc("doc")), FILE)
    assert [v.rule_id for v in report.violations] == ["moduledoc-scope"]


def test_non_module_child_is_rejected() -> None:
    raw = source_file(module("A"))
    raw["children"].append({"kind": "atom", "attributes": {"value": "ok"}})
    report = StyleEngine(engine_config()).analyze(raw)
    assert [v.rule_id for v in report.violations] == [ENGINE_RULE_ID]


def test_cancellation_stops_before_next_module() -> None:
    cancel = threading.Event()
    cancel.set()
    report = StyleEngine(engine_config()).analyze(source_file(module("A.B", moduledoc("doc"))), cancel_event=cancel)
    assert report.cancelled
    assert report.violations == ()
    assert report.modules_analyzed == 0


def test_module_over_time_budget_is_an_engine_record() -> None:
    engine = StyleEngine(engine_config(module_timeout=0.5))
    clock = MagicMock()
    clock.monotonic.side_effect = [0.0, 2.0]
    with patch("design_guide_linter.domain.engine.time", clock):
        report = engine.analyze(source_file(module("A.B", moduledoc("doc"), line=3)))
    [record] = report.violations
    assert record.rule_id == ENGINE_RULE_ID
    assert "0.5s budget" in record.message
    assert record.span.start_line == 3


def test_context_predicate_is_injectable() -> None:
    engine = StyleEngine(engine_config(), context_predicate=lambda name: name == "Flat")
    report = engine.analyze(source_file(module("Flat", moduledoc("doc")), module("A.B.C", moduledoc("doc"))))
    flagged = [v for v in report.violations if v.rule_id == "moduledoc-scope"]
    assert len(flagged) == 1
    assert "Flat" in flagged[0].message


def test_non_callable_predicate_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="callable"):
        StyleEngine(context_predicate="A.B")  # type: ignore[arg-type]


def test_missing_capability_table_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="no test support capability table was supplied"):
        StyleEngine(ConfigurationLoader({}))


def test_missing_capability_table_is_fine_when_rule_disabled() -> None:
    engine = StyleEngine(ConfigurationLoader({"disabled_rules": ["test-case-usage"]}))
    assert engine.config.test_support == {}


def test_empty_capability_table_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="capability table"):
        StyleEngine(capabilities={})


def test_empty_capability_table_is_fine_when_rule_disabled() -> None:
    config = ConfigurationLoader({"disabled_rules": ["test-case-usage"]})
    engine = StyleEngine(config, capabilities={})
    assert not engine.catalog.enabled("test-case-usage")


def test_capabilities_argument_replaces_table() -> None:
    engine = StyleEngine(capabilities={"QueueCase": CapabilitySpec("broker", ("*Broker.*",))})
    report = engine.analyze(source_file(module("MyApp.QTest", use("MyApp.QueueCase"), defn("t"))))
    [violation] = [v for v in report.violations if v.rule_id == "test-case-usage"]
    assert violation.severity is Severity.ADVISORY
