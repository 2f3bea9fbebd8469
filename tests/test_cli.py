from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List

import pytest
from click.testing import CliRunner

import udiscan.__main__ as cli_module
from udiscan.models import LookupFailure, LookupResult, LookupSuccess


class StubClient:
    calls: List[str] = []

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs

    def lookup(self, raw_identifier: str) -> LookupResult:
        StubClient.calls.append(raw_identifier)
        if raw_identifier.startswith("(01)"):
            return LookupSuccess(device={"brandName": "Acme"})
        return LookupFailure(reason="lookup failed with status 404; the device may not be in the database", status=404)


@pytest.fixture(autouse=True)
def stub_client(monkeypatch: pytest.MonkeyPatch) -> None:
    StubClient.calls = []
    monkeypatch.setattr(cli_module, "LookupClient", StubClient)


def test_lookup_prints_record() -> None:
    result = CliRunner().invoke(cli_module.cli, ["lookup", "(01)00843188003523"])

    assert result.exit_code == 0, result.output
    record = json.loads(result.output)
    assert record["udi"] == "(01)00843188003523"
    assert record["brandName"] == "Acme"
    assert record["quantity"] == "1"


def test_lookup_failure_reports_notice() -> None:
    result = CliRunner().invoke(cli_module.cli, ["lookup", "missing"])

    assert result.exit_code == 0
    assert "notice: lookup failed with status 404" in result.output


def test_batch_exports_all_lines(tmp_path: Path) -> None:
    source = tmp_path / "scans.txt"
    source.write_text("(01)A\n\n  missing  \n(01)B\n", encoding="utf-8")
    out_dir = tmp_path / "exports"

    result = CliRunner().invoke(cli_module.cli, ["batch", "--input", str(source), "--out", str(out_dir)])

    assert result.exit_code == 0, result.output
    assert StubClient.calls == ["(01)A", "missing", "(01)B"]
    exported = list(out_dir.glob("device-inventory-*.csv"))
    assert len(exported) == 1
    assert str(exported[0]) in result.output
    lines = exported[0].read_text(encoding="utf-8").split("\n")
    assert len(lines) == 4
    assert lines[1].endswith('"(01)A"')
    assert lines[2].endswith('"missing"')


def test_batch_rejects_empty_input(tmp_path: Path) -> None:
    source = tmp_path / "scans.txt"
    source.write_text("\n  \n", encoding="utf-8")

    result = CliRunner().invoke(cli_module.cli, ["batch", "--input", str(source), "--out", str(tmp_path)])

    assert result.exit_code == 1
    assert "no identifiers found" in result.output


def test_invalid_config_is_reported(tmp_path: Path) -> None:
    config = tmp_path / "bad.yml"
    config.write_text("lookup:\n  url: nope\n", encoding="utf-8")

    result = CliRunner().invoke(cli_module.cli, ["--config", str(config), "lookup", "x"])

    assert result.exit_code == 1
    assert "invalid" in result.output


def test_main_returns_exit_code(tmp_path: Path) -> None:
    assert cli_module.main(["lookup", "(01)X"]) == 0
    assert cli_module.main(["batch", "--input", str(tmp_path / "absent.txt")]) != 0


def test_main_with_empty_argv_ignores_process_arguments(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module.sys, "argv", ["udiscan", "lookup", "(01)X"])

    cli_module.main([])

    assert StubClient.calls == []
