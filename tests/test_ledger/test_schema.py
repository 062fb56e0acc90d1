"""Tests for snapshot reshaping (neura_server.ledger.schema)."""

import pytest

from neura_server.ledger.schema import (
    SCHEMA_VERSION,
    SESSION_DEFAULTS,
    STATS_DEFAULTS,
    default_snapshot,
    reshape,
)


@pytest.mark.unit
class TestDefaultSnapshot:
    def test_has_every_container(self):
        snap = default_snapshot()

        assert snap["schemaVersion"] == SCHEMA_VERSION
        assert snap["users"] == {}
        assert snap["sessions"] == {}
        assert snap["withdrawals"] == {}
        assert snap["boosts"] == []
        assert snap["activities"] == []
        assert snap["stats"] == STATS_DEFAULTS

    def test_returns_independent_copies(self):
        first = default_snapshot()
        first["stats"]["totalUsers"] = 99

        assert default_snapshot()["stats"]["totalUsers"] == 0


@pytest.mark.unit
class TestReshape:
    @pytest.mark.parametrize("raw", [None, [], "text", 3])
    def test_non_object_yields_default(self, raw):
        assert reshape(raw) == default_snapshot()

    def test_legacy_file_is_backfilled(self):
        """An unversioned file with sparse records gains every declared field."""
        raw = {
            "sessions": {"abc": {"minedTokens": 4.5, "miningSpeed": 31}},
            "withdrawals": {"w1": {"sessionId": "abc", "amount": 1}},
            "boosts": [{"id": "b1", "sessionId": "abc", "boostAmount": 11}],
            "stats": {"totalUsers": 1},
        }

        snap = reshape(raw)

        session = snap["sessions"]["abc"]
        assert session["id"] == "abc"
        assert session["minedTokens"] == 4.5
        assert session["miningSpeed"] == 31
        assert session["dailyMined"] == 0
        assert session["lastResetDate"] is None
        assert session["completedTasks"] == []
        assert set(SESSION_DEFAULTS) <= set(session)

        withdrawal = snap["withdrawals"]["w1"]
        assert withdrawal["id"] == "w1"
        assert withdrawal["status"] == "pending"
        assert withdrawal["network"] == "bsc"

        assert snap["boosts"][0]["verified"] is False
        assert snap["stats"]["totalUsers"] == 1
        assert snap["stats"]["totalBoostCount"] == 0
        assert snap["schemaVersion"] == SCHEMA_VERSION
        assert snap["activities"] == []

    def test_does_not_mutate_input(self):
        raw = {"sessions": {"abc": {}}}

        reshape(raw)

        assert raw == {"sessions": {"abc": {}}}

    def test_is_idempotent(self):
        raw = {
            "sessions": {"abc": {"completedTasks": ["boost-1"]}},
            "boosts": [{"id": "1"}, "junk"],
            "activities": [{"type": "click"}, 5],
            "schemaVersion": 1,
        }

        once = reshape(raw)

        assert reshape(once) == once

    def test_drops_malformed_records(self):
        raw = {
            "sessions": {"good": {}, "bad": "not a record"},
            "boosts": [{"id": "b"}, None],
            "activities": [{"type": "x"}, "y"],
        }

        snap = reshape(raw)

        assert list(snap["sessions"]) == ["good"]
        assert len(snap["boosts"]) == 1
        assert snap["activities"] == [{"type": "x"}]

    def test_wrong_container_types_are_replaced(self):
        snap = reshape({"sessions": [], "boosts": {}, "stats": None})

        assert snap["sessions"] == {}
        assert snap["boosts"] == []
        assert snap["stats"] == STATS_DEFAULTS

    def test_newer_schema_version_is_kept(self):
        newer = SCHEMA_VERSION + 1

        assert reshape({"schemaVersion": newer})["schemaVersion"] == newer

    def test_unknown_fields_survive(self):
        snap = reshape({"sessions": {"a": {"referrer": "x"}}, "extra": True})

        assert snap["sessions"]["a"]["referrer"] == "x"
        assert snap["extra"] is True

    def test_legacy_numbers_are_normalized(self):
        """Older clients stored numbers as strings; unusable values get the default."""
        raw = {
            "sessions": {
                "old": {
                    "minedTokens": "10",
                    "miningSpeed": "abc",
                    "dailyMined": -1,
                    "totalMiningTime": 10**400,
                }
            },
            "withdrawals": {"w1": {"amount": "2.5"}},
            "boosts": [{"id": "b1", "boostAmount": "12"}],
        }

        snap = reshape(raw)

        session = snap["sessions"]["old"]
        assert session["minedTokens"] == 10.0
        assert session["miningSpeed"] == SESSION_DEFAULTS["miningSpeed"]
        assert session["dailyMined"] == 0
        assert session["totalMiningTime"] == 0
        assert snap["withdrawals"]["w1"]["amount"] == 2.5
        assert snap["boosts"][0]["boostAmount"] == 12.0
        assert reshape(snap) == snap

    def test_non_string_completed_tasks_are_dropped(self):
        raw = {
            "sessions": {
                "a": {"completedTasks": [7, "tutorial", None, "boost-1"]},
                "b": {"completedTasks": "tutorial", "withdrawals": None},
            }
        }

        snap = reshape(raw)

        assert snap["sessions"]["a"]["completedTasks"] == ["tutorial", "boost-1"]
        assert snap["sessions"]["b"]["completedTasks"] == []
        assert snap["sessions"]["b"]["withdrawals"] == []
