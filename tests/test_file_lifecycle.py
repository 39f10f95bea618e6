import hashlib
from datetime import date

import pytest

from statement_ingest.services import file_lifecycle
from statement_ingest.services.errors import FileLifecycleError


def test_discover_missing_directory_returns_empty(tmp_path):
    assert file_lifecycle.discover_stable_files(tmp_path / "nope", (".csv",), 0) == []


def test_discover_empty_directory_returns_empty(tmp_path):
    assert file_lifecycle.discover_stable_files(tmp_path, (".csv",), 0) == []


def test_discover_filters_by_extension_case_insensitive(tmp_path):
    (tmp_path / "a.STA").write_text("x")
    (tmp_path / "b.mt940").write_text("x")
    (tmp_path / "c.txt").write_text("x")
    (tmp_path / "sub.sta").mkdir()

    found = file_lifecycle.discover_stable_files(tmp_path, (".mt940", ".sta"), 0)

    assert [p.name for p in found] == ["a.STA", "b.mt940"]


def test_discover_skips_file_that_grows_during_window(tmp_path, monkeypatch):
    growing = tmp_path / "growing.csv"
    steady = tmp_path / "steady.csv"
    growing.write_text("a")
    steady.write_text("a")

    def fake_sleep(seconds):
        assert seconds == 5
        growing.write_text("a,b,c")

    monkeypatch.setattr(file_lifecycle.time, "sleep", fake_sleep)

    found = file_lifecycle.discover_stable_files(tmp_path, (".csv",), 5)

    assert found == [steady]


def test_discover_waits_once_per_poll(tmp_path, monkeypatch):
    for name in ("a.csv", "b.csv", "c.csv"):
        (tmp_path / name).write_text("x")
    calls = []
    monkeypatch.setattr(file_lifecycle.time, "sleep", calls.append)

    found = file_lifecycle.discover_stable_files(tmp_path, (".csv",), 10)

    assert len(found) == 3
    assert calls == [10]


def test_discover_skips_file_deleted_during_window(tmp_path, monkeypatch):
    vanishing = tmp_path / "gone.csv"
    vanishing.write_text("x")
    monkeypatch.setattr(file_lifecycle.time, "sleep", lambda s: vanishing.unlink())

    assert file_lifecycle.discover_stable_files(tmp_path, (".csv",), 1) == []


def test_move_to_processing_adds_unique_suffix(tmp_path):
    inbox, processing = tmp_path / "inbox", tmp_path / "processing"
    inbox.mkdir()
    source = inbox / "stmt.sta"
    source.write_text("content")

    claimed = file_lifecycle.move_to_processing(source, processing)

    assert not source.exists()
    assert claimed.parent == processing
    assert claimed.name.startswith("stmt.sta_")
    assert len(claimed.name) == len("stmt.sta_") + 36
    assert claimed.read_text() == "content"


def test_move_missing_file_raises(tmp_path):
    with pytest.raises(FileLifecycleError):
        file_lifecycle.move_to_processing(tmp_path / "missing.sta", tmp_path / "processing")


def test_compute_content_hash_matches_sha256(tmp_path):
    data = b"x" * 20000  # spans several read chunks
    path = tmp_path / "f.bin"
    path.write_bytes(data)

    assert file_lifecycle.compute_content_hash(path) == hashlib.sha256(data).hexdigest()


def test_compute_content_hash_of_missing_file_raises(tmp_path):
    with pytest.raises(FileLifecycleError):
        file_lifecycle.compute_content_hash(tmp_path / "missing")


def test_move_to_archive_uses_date_partition(tmp_path):
    source = tmp_path / "stmt.sta_abc"
    source.write_text("x")

    destination = file_lifecycle.move_to_archive(source, tmp_path / "archive", today=date(2024, 3, 7))

    assert destination == tmp_path / "archive" / "2024" / "03" / "07" / "stmt.sta_abc"
    assert destination.exists()


def test_move_to_quarantine_writes_reason_sidecar(tmp_path):
    source = tmp_path / "bad.csv_abc"
    source.write_text("x")

    destination = file_lifecycle.move_to_quarantine(source, tmp_path / "quarantine", "too big")

    assert destination.exists()
    note = destination.with_name("bad.csv_abc.reason")
    assert note.read_text(encoding="utf-8").strip() == "too big"
