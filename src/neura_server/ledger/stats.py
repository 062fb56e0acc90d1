"""Derived aggregate counters.

Stats are never written directly by an operation.  The store recomputes the
persisted ``stats`` object from the ledgers immediately before every save, and
``summarize`` builds the richer dashboard view on demand.  Both are pure
functions of the snapshot and the supplied ``now``.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any

from neura_server.ledger.timestamps import parse_iso


def as_number(value: Any) -> float:
    """Return ``value`` as a finite number, or 0 for anything else."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    try:
        finite = math.isfinite(float(value))
    except OverflowError:
        return 0
    return value if finite else 0


class StatsAggregator:
    """Computes persisted stats and the ``getStats`` view.

    Args:
        active_window: Sessions whose ``lastActive`` falls within this window
            count as active.  ``None`` counts every stored session.
        recent_limit: How many activities/withdrawals the dashboard view lists.
    """

    def __init__(self, active_window: timedelta | None = None, recent_limit: int = 10) -> None:
        self.active_window = active_window
        self.recent_limit = recent_limit

    def _active_sessions(self, sessions: dict[str, Any], now: datetime) -> int:
        if self.active_window is None:
            return len(sessions)
        cutoff = now - self.active_window
        count = 0
        for session in sessions.values():
            last_active = parse_iso(session.get("lastActive")) or parse_iso(
                session.get("startedAt")
            )
            if last_active is not None and last_active >= cutoff:
                count += 1
        return count

    def recompute(self, snapshot: dict[str, Any], now: datetime) -> dict[str, Any]:
        """Return the persisted ``stats`` object for ``snapshot``."""
        sessions = snapshot["sessions"]
        withdrawals = snapshot["withdrawals"]
        return {
            "totalUsers": len(sessions),
            "totalMined": sum(as_number(s.get("minedTokens")) for s in sessions.values()),
            "totalWithdrawals": sum(as_number(w.get("amount")) for w in withdrawals.values()),
            "activeSessions": self._active_sessions(sessions, now),
            "totalBoostCount": len(snapshot["boosts"]),
            "totalWithdrawalCount": len(withdrawals),
        }

    def summarize(self, snapshot: dict[str, Any], now: datetime) -> dict[str, Any]:
        """Return the dashboard view: persisted stats plus partitions and recent items."""
        withdrawals = list(snapshot["withdrawals"].values())
        pending = sum(1 for w in withdrawals if w.get("status") == "pending")
        completed = sum(1 for w in withdrawals if w.get("status") == "completed")

        newest_first = sorted(
            withdrawals,
            key=lambda w: parse_iso(w.get("createdAt")) or datetime.min.replace(tzinfo=now.tzinfo),
            reverse=True,
        )

        return {
            **self.recompute(snapshot, now),
            "totalSessions": len(snapshot["sessions"]),
            "totalBoosts": len(snapshot["boosts"]),
            "verifiedBoosts": sum(1 for b in snapshot["boosts"] if b.get("verified")),
            "totalActivities": len(snapshot["activities"]),
            "pendingWithdrawals": pending,
            "completedWithdrawals": completed,
            "recentActivities": snapshot["activities"][-self.recent_limit :],
            "recentWithdrawals": newest_first[: self.recent_limit],
        }
