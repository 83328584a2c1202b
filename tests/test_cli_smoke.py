from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any

import pytest

import cli
from cli import main
from contract.columns import CSV_HEADER
from fakes import FakeFrontend, FakeSourceModel, call_node, mixed_program
from frontend.model import Diagnostic, LoadedUnit


@pytest.fixture
def frontend_calls(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> list[dict[str, Any]]:
    """Replace libclang with prepared units and record how it was built."""
    calls: list[dict[str, Any]] = []
    units: dict[str, LoadedUnit | str] = {
        "main.cpp": LoadedUnit(model=mixed_program()),
        "broken.cpp": "failed to parse",
        "diag.cpp": LoadedUnit(
            model=FakeSourceModel(nodes=[call_node("app::run")]),
            diagnostics=[Diagnostic(severity="error", message="unknown type")],
        ),
    }

    def fake_frontend(**kwargs: Any) -> FakeFrontend:
        calls.append(kwargs)
        return FakeFrontend(units=units)

    monkeypatch.setattr(cli, "ClangFrontend", fake_frontend)
    monkeypatch.chdir(tmp_path)
    return calls


def _rows(out: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(out)))


def test_cli_scan_smoke(
    frontend_calls: list[dict[str, Any]], capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main(["main.cpp"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert [row[4] for row in _rows(captured.out)] == [
        "std::vector<int>::vector",
        "std::vector<int>::push_back",
        "util::helper",
    ]
    assert captured.err == ""
    assert frontend_calls[0]["fixed_args"] is None
    assert frontend_calls[0]["prune_system_headers"] is True


@pytest.mark.parametrize("flag", ["--only-std", "--only-std=1", "--only-std=true"])
def test_only_std_flag_spellings(
    flag: str,
    frontend_calls: list[dict[str, Any]],
    capsys: pytest.CaptureFixture[str],
) -> None:
    assert main([flag, "main.cpp"]) == 0

    rows = _rows(capsys.readouterr().out)
    assert rows
    assert all(row[4].startswith("std::") for row in rows)


def test_only_std_can_be_switched_off(
    frontend_calls: list[dict[str, Any]],
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    (tmp_path / "callscan.toml").write_text("only_std = true\n", encoding="utf-8")

    assert main(["--only-std=0", "main.cpp"]) == 0

    assert len(_rows(capsys.readouterr().out)) == 3


def test_csv_header_comes_first(
    frontend_calls: list[dict[str, Any]], capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["--csv-header", "--name-prefix", "util::", "main.cpp"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == CSV_HEADER
    assert len(lines) == 2
    assert '"util::helper"' in lines[1]


def test_header_without_rows_when_nothing_matches(
    frontend_calls: list[dict[str, Any]], capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["--csv-header=yes", "--name-prefix", "boost::", "main.cpp"]) == 0

    assert capsys.readouterr().out == CSV_HEADER + "\n"


def test_jsonl_format(
    frontend_calls: list[dict[str, Any]], capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["--format", "jsonl", "--csv-header", "main.cpp"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 3
    assert json.loads(lines[1])["kind"] == "member-call"


def test_flags_after_double_dash_are_fixed_compiler_args(
    frontend_calls: list[dict[str, Any]], capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main(
        ["--extra-arg", "-Wall", "main.cpp", "--", "-std=c++17", "-Iinclude"]
    )

    assert exit_code == 0
    assert frontend_calls[0]["fixed_args"] == ["-std=c++17", "-Iinclude"]
    assert frontend_calls[0]["extra_args"] == ["-Wall"]
    capsys.readouterr()


def test_build_path_and_system_header_override(
    frontend_calls: list[dict[str, Any]], capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["-p", "build", "--include-system-headers", "main.cpp"]) == 0

    assert frontend_calls[0]["build_path"] == Path("build")
    assert frontend_calls[0]["prune_system_headers"] is False
    capsys.readouterr()


def test_failed_unit_reports_and_continues(
    frontend_calls: list[dict[str, Any]], capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main(["broken.cpp", "main.cpp"])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "broken.cpp: error: failed to parse" in captured.err
    assert len(_rows(captured.out)) == 3


def test_error_diagnostics_set_failure_exit_code(
    frontend_calls: list[dict[str, Any]], capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main(["diag.cpp"])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "error: unknown type" in captured.err
    assert [row[4] for row in _rows(captured.out)] == ["app::run"]


def test_invalid_config_exits_with_usage_error(
    frontend_calls: list[dict[str, Any]],
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    (tmp_path / "callscan.toml").write_text("bogus = 1\n", encoding="utf-8")

    exit_code = main(["main.cpp"])

    captured = capsys.readouterr()
    assert exit_code == 2
    assert captured.err.startswith("error: Invalid config")
    assert captured.out == ""
    assert frontend_calls == []


def test_missing_explicit_config_exits_with_usage_error(
    frontend_calls: list[dict[str, Any]], capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main(["--config", "nope.toml", "main.cpp"])

    assert exit_code == 2
    assert "Config file not found" in capsys.readouterr().err


def test_invalid_boolean_is_rejected_by_argparse(
    frontend_calls: list[dict[str, Any]], capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["--only-std=maybe", "main.cpp"])

    assert exc_info.value.code == 2
    assert "invalid boolean value" in capsys.readouterr().err


def test_directory_arguments_expand_to_sources(
    frontend_calls: list[dict[str, Any]],
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    src = tmp_path / "src"
    src.mkdir()
    (src / "main.cpp").write_text("int main() {}\n", encoding="utf-8")
    (src / "README.md").write_text("docs\n", encoding="utf-8")

    assert main([str(src)]) == 0

    assert len(_rows(capsys.readouterr().out)) == 3


def test_extra_arg_values_may_look_like_options(
    frontend_calls: list[dict[str, Any]], capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main(
        ["main.cpp", "--extra-arg", "-DNDEBUG", "--extra-arg=-O2", "--only-std"]
    )

    assert exit_code == 0
    assert frontend_calls[0]["extra_args"] == ["-DNDEBUG", "-O2"]
    assert all(row[4].startswith("std::") for row in _rows(capsys.readouterr().out))


def test_help_mentions_template_instantiations(
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["--help"])

    assert exc_info.value.code == 0
    assert "implicit template" in capsys.readouterr().out
