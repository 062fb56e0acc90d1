"""Tests for the snapshot file layer (neura_server.ledger.persistence).

Covers first-run initialisation, atomic replace, the fail-open quarantine of
corrupt files, fail-closed reads, and save failures.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from neura_server.ledger.errors import PersistenceError, SnapshotReadError
from neura_server.ledger.persistence import PersistentStore
from neura_server.ledger.schema import default_snapshot


@pytest.fixture
def snapshot_file(tmp_path: Path) -> Path:
    return tmp_path / "nested" / "database.json"


@pytest.mark.unit
class TestInitialize:
    def test_creates_file_and_parent(self, snapshot_file: Path):
        store = PersistentStore(snapshot_file)

        assert store.initialize() is True
        assert json.loads(snapshot_file.read_text()) == default_snapshot()

    def test_leaves_existing_file_alone(self, snapshot_file: Path):
        snapshot_file.parent.mkdir(parents=True)
        snapshot_file.write_text('{"sessions": {"a": {}}}')
        store = PersistentStore(snapshot_file)

        assert store.initialize() is False
        assert json.loads(snapshot_file.read_text()) == {"sessions": {"a": {}}}


@pytest.mark.unit
class TestLoad:
    def test_missing_file_returns_none(self, snapshot_file: Path):
        assert PersistentStore(snapshot_file).load() is None

    def test_round_trips_saved_snapshot(self, snapshot_file: Path):
        store = PersistentStore(snapshot_file)
        snap = default_snapshot()
        snap["sessions"]["s"] = {"minedTokens": 1.25}

        store.save(snap)

        assert store.load() == snap

    def test_corrupt_file_is_quarantined(self, snapshot_file: Path, caplog):
        snapshot_file.parent.mkdir(parents=True)
        snapshot_file.write_text("{not json")
        store = PersistentStore(snapshot_file, fail_open=True)

        with caplog.at_level(logging.CRITICAL, logger="neura_server.ledger.persistence"):
            assert store.load() is None

        assert not snapshot_file.exists()
        quarantined = list(snapshot_file.parent.glob("database.json.corrupt-*"))
        assert len(quarantined) == 1
        assert quarantined[0].read_text() == "{not json"
        assert any(r.levelno == logging.CRITICAL for r in caplog.records)

    def test_non_object_root_is_corrupt(self, snapshot_file: Path):
        snapshot_file.parent.mkdir(parents=True)
        snapshot_file.write_text("[1, 2, 3]")

        assert PersistentStore(snapshot_file).load() is None
        assert list(snapshot_file.parent.glob("database.json.corrupt-*"))

    def test_fail_closed_raises_and_keeps_file(self, snapshot_file: Path):
        snapshot_file.parent.mkdir(parents=True)
        snapshot_file.write_text("{not json")
        store = PersistentStore(snapshot_file, fail_open=False)

        with pytest.raises(SnapshotReadError) as exc_info:
            store.load()

        assert exc_info.value.context.operation == "store.load"
        assert snapshot_file.read_text() == "{not json"


@pytest.mark.unit
class TestSave:
    def test_leaves_no_temp_files(self, snapshot_file: Path):
        store = PersistentStore(snapshot_file)

        store.save(default_snapshot())
        store.save(default_snapshot())

        assert sorted(p.name for p in snapshot_file.parent.iterdir()) == ["database.json"]

    def test_unserialisable_snapshot_raises(self, snapshot_file: Path):
        store = PersistentStore(snapshot_file)
        store.initialize()
        before = snapshot_file.read_text()

        with pytest.raises(PersistenceError):
            store.save({"bad": float("nan")})

        assert snapshot_file.read_text() == before

    def test_failed_replace_keeps_previous_file(self, snapshot_file: Path):
        store = PersistentStore(snapshot_file)
        store.initialize()
        before = snapshot_file.read_text()

        with patch("neura_server.ledger.persistence.os.replace", side_effect=OSError("disk")):
            with pytest.raises(PersistenceError) as exc_info:
                store.save({"sessions": {"x": {}}})

        assert isinstance(exc_info.value.cause, OSError)
        assert snapshot_file.read_text() == before
        assert [p.name for p in snapshot_file.parent.iterdir() if p.suffix == ".tmp"] == []


@pytest.mark.unit
def test_lock_creates_sidecar_file(snapshot_file: Path):
    store = PersistentStore(snapshot_file)

    with store.lock():
        assert store.lock_path.exists()

    assert store.lock_path.name == "database.json.lock"
