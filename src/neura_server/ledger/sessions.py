"""Session ledger: creation, state reads and partial state updates.

A session is an anonymous mining client.  Its record holds the mined balance,
the mining speed, a daily counter with the date it was last reset, the
completed-task set (which doubles as the boost dedup store) and the ids of
the boosts and withdrawals it owns.

Daily reset is lazy: nothing runs at midnight.  The first read or write of a
session on a new UTC date zeroes ``dailyMined`` and stamps ``lastResetDate``.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from neura_server.ledger.errors import NotFoundError
from neura_server.ledger.schema import (
    DAILY_LIMIT,
    DEFAULT_MINING_SPEED,
    SESSION_NUMERIC_FIELDS,
    coerce_number,
)
from neura_server.ledger.timestamps import parse_iso, to_date_string, to_iso

if TYPE_CHECKING:
    from neura_server.ledger.store import LedgerStore

BOOST_TASK_PREFIX = "boost-"


def _merge_completed_tasks(reported: Any, existing: list[str]) -> list[str]:
    """Accept the client's task list but never drop a boost dedup key."""
    if not isinstance(reported, list):
        return existing
    merged: list[str] = []
    for task in reported:
        if isinstance(task, str) and task not in merged:
            merged.append(task)
    for task in existing:
        if isinstance(task, str) and task.startswith(BOOST_TASK_PREFIX) and task not in merged:
            merged.append(task)
    return merged


class SessionLedger:
    """Creates sessions and reads/updates their mining state.

    Args:
        store: Supplies the clock.
        default_mining_speed: Speed assigned to new sessions.
        daily_limit: Reported to clients alongside the daily counter.
    """

    def __init__(
        self,
        store: "LedgerStore",
        *,
        default_mining_speed: float = DEFAULT_MINING_SPEED,
        daily_limit: float = DAILY_LIMIT,
    ) -> None:
        self._store = store
        self.default_mining_speed = default_mining_speed
        self.daily_limit = daily_limit

    def create(
        self,
        snapshot: dict[str, Any],
        user_agent: str | None = None,
        started_at: str | None = None,
    ) -> dict[str, Any]:
        """Allocate a new session with a zero balance and the default speed."""
        now = self._store.now()
        started = parse_iso(started_at)
        session_id = uuid.uuid4().hex
        session = {
            "id": session_id,
            "userAgent": user_agent or "Unknown",
            "startedAt": to_iso(started or now),
            "lastActive": to_iso(now),
            "minedTokens": 0,
            "miningSpeed": self.default_mining_speed,
            "dailyMined": 0,
            "lastResetDate": to_date_string(now),
            "completedTasks": [],
            "totalMiningTime": 0,
            "boosts": [],
            "withdrawals": [],
        }
        snapshot["sessions"][session_id] = session
        return session

    def get(self, snapshot: dict[str, Any], session_id: str) -> dict[str, Any]:
        session = snapshot["sessions"].get(session_id)
        if session is None:
            raise NotFoundError("Session not found")
        return session

    def apply_daily_reset(self, session: dict[str, Any]) -> bool:
        """Zero the daily counter if the session was last reset on another date."""
        today = to_date_string(self._store.now())
        if session.get("lastResetDate") == today:
            return False
        session["dailyMined"] = 0
        session["lastResetDate"] = today
        return True

    def touch(self, session: dict[str, Any]) -> None:
        session["lastActive"] = to_iso(self._store.now())

    def state_view(self, session: dict[str, Any]) -> dict[str, Any]:
        return {
            "minedTokens": session["minedTokens"],
            "dailyMined": session["dailyMined"],
            "miningSpeed": session["miningSpeed"],
            "completedTasks": list(session["completedTasks"]),
            "totalMiningTime": session["totalMiningTime"],
            "dailyLimit": self.daily_limit,
        }

    def get_state(self, snapshot: dict[str, Any], session_id: str) -> dict[str, Any]:
        """Return the session's mining state, applying the lazy daily reset."""
        session = self.get(snapshot, session_id)
        self.apply_daily_reset(session)
        self.touch(session)
        return self.state_view(session)

    def set_state(
        self, snapshot: dict[str, Any], session_id: str, partial: dict[str, Any]
    ) -> dict[str, Any]:
        """Apply the fields present in ``partial``; absent fields keep their value.

        Numeric values that are not finite, negative, or otherwise unusable
        leave the stored value unchanged (``miningSpeed`` must also be
        positive).  ``completedTasks`` is merged so boost dedup keys survive.
        """
        session = self.get(snapshot, session_id)
        self.apply_daily_reset(session)

        for field, allow_zero in SESSION_NUMERIC_FIELDS.items():
            if field in partial:
                session[field] = coerce_number(
                    partial[field], session[field], allow_zero=allow_zero
                )

        if "completedTasks" in partial:
            session["completedTasks"] = _merge_completed_tasks(
                partial["completedTasks"], session["completedTasks"]
            )

        self.touch(session)
        return {
            "success": True,
            "dailyMined": session["dailyMined"],
            "dailyLimit": self.daily_limit,
        }
