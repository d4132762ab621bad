"""Unit tests for CheckStyleUseCase."""

import threading
from unittest.mock import MagicMock

from design_guide_linter.domain.engine import StyleEngine
from design_guide_linter.domain.entities import ENGINE_RULE_ID
from design_guide_linter.domain.errors import MalformedInputError
from design_guide_linter.use_cases.check_style import CheckStyleUseCase
from tests.ast_builders import engine_config, module, moduledoc, source_file


def _source(trees: dict[str, object]) -> MagicMock:
    source = MagicMock()
    source.discover.return_value = sorted(trees)
    source.load.side_effect = lambda path: trees[path]
    return source


def _documented(name: str, file: str) -> dict:
    return source_file(module(name, moduledoc("doc")), file=file)


def test_execute_merges_files_in_sorted_order() -> None:
    trees = {
        "dumps/b.json": _documented("A.B.Two", "lib/b.ex"),
        "dumps/a.json": _documented("A.B.One", "lib/a.ex"),
    }
    telemetry = MagicMock()
    use_case = CheckStyleUseCase(StyleEngine(engine_config()), _source(trees), telemetry, max_workers=2)

    result = use_case.execute(["dumps"])

    assert [v.span.file for v in result.violations] == ["lib/a.ex", "lib/b.ex"]
    assert result.files_analyzed == 2
    assert result.modules_analyzed == 2
    assert not result.cancelled
    telemetry.step.assert_called_once()


def test_parallel_and_sequential_runs_agree() -> None:
    trees = {f"dumps/{i}.json": _documented(f"A.B.M{i}", f"lib/m{i}.ex") for i in range(8)}
    engine = StyleEngine(engine_config())
    sequential = CheckStyleUseCase(engine, _source(trees), MagicMock(), max_workers=1).execute(["dumps"])
    parallel = CheckStyleUseCase(engine, _source(trees), MagicMock(), max_workers=4).execute(["dumps"])
    assert sequential.violations == parallel.violations


def test_unreadable_dump_is_an_engine_record() -> None:
    source = MagicMock()
    source.discover.return_value = ["dumps/bad.json", "dumps/good.json"]

    def load(path: str) -> object:
        if path == "dumps/bad.json":
            raise MalformedInputError("invalid JSON in dumps/bad.json")
        return _documented("A.B.Good", "lib/good.ex")

    source.load.side_effect = load
    result = CheckStyleUseCase(StyleEngine(engine_config()), source, MagicMock()).execute(["dumps"])

    rule_ids = [(v.span.file, v.rule_id) for v in result.violations]
    assert ("dumps/bad.json", ENGINE_RULE_ID) in rule_ids
    assert ("lib/good.ex", "moduledoc-scope") in rule_ids
    assert result.files_analyzed == 2


def test_file_name_falls_back_to_dump_path() -> None:
    raw = module("A.B.C", moduledoc("doc"))
    result = CheckStyleUseCase(StyleEngine(engine_config()), _source({"dumps/c.json": raw}), MagicMock()).execute(["dumps"])
    assert [v.span.file for v in result.violations] == ["dumps/c.json"]


def test_cancelled_run_skips_files_and_reports_partial_result() -> None:
    trees = {f"dumps/{i}.json": _documented(f"A.B.M{i}", f"lib/m{i}.ex") for i in range(3)}
    cancel = threading.Event()
    cancel.set()
    telemetry = MagicMock()
    result = CheckStyleUseCase(StyleEngine(engine_config()), _source(trees), telemetry, max_workers=1).execute(
        ["dumps"], cancel_event=cancel
    )
    assert result.cancelled
    assert result.violations == ()
    assert result.skipped_files == tuple(sorted(trees))
    telemetry.warning.assert_called_once()


def test_worker_count_defaults_to_configuration() -> None:
    engine = StyleEngine(engine_config(max_workers=3))
    assert CheckStyleUseCase(engine, MagicMock(), MagicMock()).max_workers == 3
    assert CheckStyleUseCase(engine, MagicMock(), MagicMock(), max_workers=7).max_workers == 7


def test_no_files_is_an_empty_result() -> None:
    result = CheckStyleUseCase(StyleEngine(engine_config()), _source({}), MagicMock()).execute(["nowhere"])
    assert result.violations == ()
    assert result.files_analyzed == 0
