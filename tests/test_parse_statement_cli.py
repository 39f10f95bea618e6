import sys

import pytest

from scripts.parse_statement_cli import main


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["parse_statement_cli.py", *argv])
    main()


def test_prints_statement_summary(tmp_path, monkeypatch, capsys, mt940_message):
    path = tmp_path / "stmt.sta"
    path.write_text(mt940_message())

    _run(monkeypatch, str(path), "--strict")

    out = capsys.readouterr().out
    assert ":20: STMT-1" in out
    assert "Validation: OK" in out


def test_lenient_mode_reports_broken_message_and_continues(tmp_path, monkeypatch, capsys, mt940_message):
    path = tmp_path / "mixed.sta"
    path.write_text(mt940_message("GOOD") + mt940_message("BROKEN", opening="C24XX01EUR100,00"))

    _run(monkeypatch, str(path))

    out = capsys.readouterr().out
    assert ":20: GOOD" in out
    assert "DECODE ERROR" in out


def test_strict_mode_exits_on_broken_message(tmp_path, monkeypatch, capsys, mt940_message):
    path = tmp_path / "mixed.sta"
    path.write_text(mt940_message("BROKEN", opening="C24XX01EUR100,00") + mt940_message("GOOD"))

    with pytest.raises(SystemExit) as exc_info:
        _run(monkeypatch, str(path), "--strict")

    assert exc_info.value.code == 1
    captured = capsys.readouterr()
    assert "Error:" in captured.err
    assert "GOOD" not in captured.out


def test_van_file_is_listed(tmp_path, monkeypatch, capsys, van_row, van_csv):
    path = tmp_path / "credits.csv"
    path.write_text(van_csv([van_row(), van_row()]))

    _run(monkeypatch, str(path), "--limit", "1")

    out = capsys.readouterr().out
    assert "Total rows: 2" in out
    assert "more rows" in out


def test_missing_file_exits(tmp_path, monkeypatch):
    with pytest.raises(SystemExit) as exc_info:
        _run(monkeypatch, str(tmp_path / "nope.sta"))

    assert exc_info.value.code == 1
