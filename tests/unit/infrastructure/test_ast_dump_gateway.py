"""Unit tests for AstDumpGateway and FileSystemGateway."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from design_guide_linter.domain.errors import MalformedInputError
from design_guide_linter.infrastructure.gateways.ast_dump_gateway import AstDumpGateway
from design_guide_linter.infrastructure.gateways.filesystem_gateway import FileSystemGateway


def test_discover_walks_directories_for_ast_dumps_only(tmp_path: Path) -> None:
    (tmp_path / "lib").mkdir()
    (tmp_path / "lib" / "a.ast.json").write_text("{}", encoding="utf-8")
    (tmp_path / "package.json").write_text("{}", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("", encoding="utf-8")

    found = AstDumpGateway(FileSystemGateway()).discover([str(tmp_path)])

    assert found == [str(tmp_path / "lib" / "a.ast.json")]


def test_discover_patterns_are_configurable(tmp_path: Path) -> None:
    (tmp_path / "b.json").write_text("{}", encoding="utf-8")
    found = AstDumpGateway(FileSystemGateway(), patterns=("*.json",)).discover([str(tmp_path)])
    assert found == [str(tmp_path / "b.json")]


def test_discover_takes_named_files_and_skips_missing(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    named = tmp_path / "dump.txt"
    named.write_text("{}", encoding="utf-8")
    gateway = AstDumpGateway(FileSystemGateway())

    found = gateway.discover([str(named), str(tmp_path / "missing.json")])

    assert found == [str(named)]
    assert "missing.json" in caplog.text


def test_load_decodes_json(tmp_path: Path) -> None:
    dump = tmp_path / "a.json"
    dump.write_text(json.dumps({"kind": "module", "attributes": {"name": "A"}}), encoding="utf-8")
    assert AstDumpGateway(FileSystemGateway()).load(str(dump)) == {"kind": "module", "attributes": {"name": "A"}}


def test_load_invalid_json_is_malformed_input(tmp_path: Path) -> None:
    dump = tmp_path / "bad.json"
    dump.write_text("{not json", encoding="utf-8")
    with pytest.raises(MalformedInputError, match="invalid JSON"):
        AstDumpGateway(FileSystemGateway()).load(str(dump))


def test_load_unreadable_file_is_malformed_input() -> None:
    filesystem = MagicMock()
    filesystem.read_text.side_effect = OSError("permission denied")
    with pytest.raises(MalformedInputError, match="cannot read"):
        AstDumpGateway(filesystem).load("dumps/a.json")


def test_filesystem_gateway_basics(tmp_path: Path) -> None:
    gateway = FileSystemGateway()
    target = tmp_path / "x.json"
    target.write_text("[]", encoding="utf-8")
    assert gateway.exists(str(target))
    assert gateway.is_directory(str(tmp_path))
    assert gateway.read_text(str(target)) == "[]"
    assert gateway.glob_files(str(target), ("*.json",)) == [str(target)]
