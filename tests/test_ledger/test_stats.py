"""Tests for derived statistics (neura_server.ledger.stats)."""

from datetime import UTC, datetime, timedelta

import pytest

from neura_server.ledger.schema import reshape
from neura_server.ledger.stats import StatsAggregator, as_number

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _snapshot():
    return reshape(
        {
            "sessions": {
                "fresh": {"minedTokens": 5, "lastActive": (NOW - timedelta(minutes=5)).isoformat()},
                "stale": {"minedTokens": 2.5, "lastActive": (NOW - timedelta(hours=3)).isoformat()},
                "junk": {"minedTokens": "lots"},
            },
            "withdrawals": {
                "w1": {"amount": 1, "status": "pending", "createdAt": "2026-03-01T10:00:00Z"},
                "w2": {"amount": 2, "status": "completed", "createdAt": "2026-03-01T11:00:00Z"},
            },
            "boosts": [{"id": "b1", "verified": True}, {"id": "b2"}],
            "activities": [{"type": f"a{i}"} for i in range(12)],
        }
    )


@pytest.mark.unit
class TestRecompute:
    def test_counters(self):
        stats = StatsAggregator(active_window=timedelta(minutes=60)).recompute(_snapshot(), NOW)

        assert stats == {
            "totalUsers": 3,
            "totalMined": 7.5,
            "totalWithdrawals": 3,
            "activeSessions": 1,
            "totalBoostCount": 2,
            "totalWithdrawalCount": 2,
        }

    def test_no_window_counts_every_session(self):
        stats = StatsAggregator(active_window=None).recompute(_snapshot(), NOW)

        assert stats["activeSessions"] == 3

    def test_empty_snapshot(self):
        stats = StatsAggregator().recompute(reshape({}), NOW)

        assert stats["totalUsers"] == 0
        assert stats["totalMined"] == 0


@pytest.mark.unit
class TestSummarize:
    def test_partitions_and_recent_items(self):
        summary = StatsAggregator(active_window=timedelta(minutes=60)).summarize(_snapshot(), NOW)

        assert summary["totalSessions"] == 3
        assert summary["totalBoosts"] == 2
        assert summary["verifiedBoosts"] == 1
        assert summary["totalActivities"] == 12
        assert summary["pendingWithdrawals"] == 1
        assert summary["completedWithdrawals"] == 1
        assert [a["type"] for a in summary["recentActivities"]] == [f"a{i}" for i in range(2, 12)]
        assert [w["id"] for w in summary["recentWithdrawals"]] == ["w2", "w1"]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [(3, 3), (1.5, 1.5), ("3", 0), (None, 0), (True, 0), (float("nan"), 0), (10**400, 0)],
)
def test_as_number(value, expected):
    assert as_number(value) == expected
