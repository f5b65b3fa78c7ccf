"""
Tests for ledger persistence — load, atomic save, corruption handling.
"""

import json
import os
from pathlib import Path

import pytest

from gitmetrics.core.models.commit import CommitState, Ledger
from gitmetrics.core.persistence.ledger_file import LedgerError, load_ledger, save_ledger
from tests.helpers import make_commit


class TestLoadLedger:
    def test_load_missing_returns_empty(self, tmp_path: Path):
        ledger = load_ledger(tmp_path / "nonexistent.json")
        assert ledger.commits == []

    def test_load_corrupt_is_fatal(self, ledger_path: Path):
        """A corrupt ledger is an error, never silently replaced."""
        ledger_path.write_text("not json at all {{{")
        with pytest.raises(LedgerError, match="Corrupt ledger"):
            load_ledger(ledger_path)

    def test_load_non_array_is_fatal(self, ledger_path: Path):
        ledger_path.write_text('{"commits": []}')
        with pytest.raises(LedgerError, match="JSON array"):
            load_ledger(ledger_path)

    def test_load_invalid_record_is_fatal(self, ledger_path: Path):
        ledger_path.write_text('[{"id": "a", "timestamp": "yesterday"}]')
        with pytest.raises(LedgerError, match="Invalid ledger"):
            load_ledger(ledger_path)

    def test_load_duplicate_ids_is_fatal(self, ledger_path: Path):
        ledger_path.write_text(json.dumps([
            {"id": "a", "timestamp": 1, "description": "x"},
            {"id": "a", "timestamp": 2, "description": "y"},
        ]))
        with pytest.raises(LedgerError, match="duplicate"):
            load_ledger(ledger_path)

    def test_load_empty_array(self, ledger_path: Path):
        ledger_path.write_text("[]")
        assert load_ledger(ledger_path).commits == []

    def test_load_older_field_names(self, ledger_path: Path):
        """Ledgers written with commit/date/desc/data/broken still load."""
        ledger_path.write_text(json.dumps([
            {"commit": "a", "date": 300, "desc": "third", "data": {"size": 7}},
            {"commit": "b", "date": 200, "desc": "second", "broken": True},
            {"commit": "c", "date": 100, "desc": "first"},
        ]))
        ledger = load_ledger(ledger_path)

        assert [r.id for r in ledger.commits] == ["a", "b", "c"]
        assert [r.state for r in ledger.commits] == [
            CommitState.MEASURED, CommitState.BROKEN, CommitState.PENDING,
        ]
        assert ledger.commits[0].size == 7.0
        assert ledger.commits[1].timestamp == 200
        assert ledger.commits[2].description == "first"

    def test_older_layout_is_rewritten_on_save(self, ledger_path: Path):
        ledger_path.write_text(json.dumps([
            {"commit": "b", "date": 200, "desc": "x", "broken": True},
        ]))
        save_ledger(load_ledger(ledger_path), ledger_path)

        data = json.loads(ledger_path.read_text())
        assert data == [{"id": "b", "timestamp": 200, "description": "x", "outcome": "broken"}]


class TestSaveLedger:
    def test_save_and_load(self, ledger_path: Path):
        ledger = Ledger(commits=[
            make_commit("a", timestamp=300, size=5.0),
            make_commit("b", timestamp=200, outcome="broken"),
            make_commit("c", timestamp=100),
        ])
        save_ledger(ledger, ledger_path)

        loaded = load_ledger(ledger_path)
        assert [r.id for r in loaded.commits] == ["a", "b", "c"]
        assert loaded.commits[0].measurement == {"size": 5.0}
        assert loaded.commits[1].outcome == "broken"
        assert loaded.commits[2].measurement is None

    def test_save_is_readable_json_array(self, ledger_path: Path):
        save_ledger(Ledger(commits=[make_commit("a", timestamp=1, description="first")]), ledger_path)

        raw = ledger_path.read_text()
        assert raw.endswith("\n")
        assert "\n  {" in raw  # indented
        data = json.loads(raw)
        assert data == [{"id": "a", "timestamp": 1, "description": "first"}]

    def test_save_creates_directories(self, tmp_path: Path):
        path = tmp_path / "deep" / "nested" / "db.json"
        save_ledger(Ledger(), path)
        assert path.is_file()

    def test_save_leaves_no_temp_files(self, ledger_path: Path):
        save_ledger(Ledger(commits=[make_commit("a")]), ledger_path)
        save_ledger(Ledger(commits=[make_commit("b")]), ledger_path)
        assert sorted(p.name for p in ledger_path.parent.iterdir()) == ["db.json"]

    def test_failed_save_leaves_previous_file_intact(self, ledger_path: Path, monkeypatch):
        save_ledger(Ledger(commits=[make_commit("a", size=1.0)]), ledger_path)
        before = ledger_path.read_bytes()

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", broken_replace)
        with pytest.raises(OSError, match="disk full"):
            save_ledger(Ledger(commits=[make_commit("b")]), ledger_path)

        assert ledger_path.read_bytes() == before
        assert sorted(p.name for p in ledger_path.parent.iterdir()) == ["db.json"]

    def test_failed_write_leaves_previous_file_intact(self, ledger_path: Path, monkeypatch):
        save_ledger(Ledger(commits=[make_commit("a", size=1.0)]), ledger_path)
        before = ledger_path.read_bytes()

        def broken_fsync(fd):
            raise OSError("I/O error")

        monkeypatch.setattr(os, "fsync", broken_fsync)
        with pytest.raises(OSError, match="I/O error"):
            save_ledger(Ledger(commits=[make_commit("b")]), ledger_path)

        assert ledger_path.read_bytes() == before
        assert sorted(p.name for p in ledger_path.parent.iterdir()) == ["db.json"]

    def test_sequential_saves(self, ledger_path: Path):
        ledger = Ledger(commits=[make_commit("a"), make_commit("b")])
        save_ledger(ledger, ledger_path)

        ledger.commits[0].record_measurement(42.0)
        save_ledger(ledger, ledger_path)

        loaded = load_ledger(ledger_path)
        assert loaded.commits[0].size == 42.0
        assert loaded.commits[1].size is None
