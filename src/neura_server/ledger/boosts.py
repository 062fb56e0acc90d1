"""Boost ledger.

A boost is granted when a client starts an offer-wall task and is verified
once the task completes.  Verification adds ``boostAmount`` to the owning
session's mining speed, at most once: the session's completed-task set holds
a ``boost-<boostId>`` dedup key, and a boost whose key is already present is
marked verified again but never re-applied.
"""

from __future__ import annotations

import random
import uuid
from typing import TYPE_CHECKING, Any

from neura_server.ledger.errors import NotFoundError, UnauthorizedError
from neura_server.ledger.sessions import BOOST_TASK_PREFIX
from neura_server.ledger.stats import as_number
from neura_server.ledger.timestamps import parse_iso, to_iso

if TYPE_CHECKING:
    from neura_server.ledger.store import LedgerStore

BOOST_MIN = 10
BOOST_MAX = 25  # exclusive


def dedup_key(boost_id: str) -> str:
    return f"{BOOST_TASK_PREFIX}{boost_id}"


class BoostLedger:
    def __init__(self, store: "LedgerStore", *, rng: random.Random | None = None) -> None:
        self._store = store
        self._rng = rng or random.Random()

    def find(self, snapshot: dict[str, Any], boost_id: str) -> dict[str, Any] | None:
        for boost in snapshot["boosts"]:
            if boost.get("id") == boost_id:
                return boost
        return None

    def create(
        self,
        snapshot: dict[str, Any],
        session_id: str,
        requested_at: str | None = None,
        task_type: str | None = None,
    ) -> dict[str, Any]:
        """Grant an unverified boost of 10-24 speed units to the session."""
        session = snapshot["sessions"].get(session_id)
        if session is None:
            raise NotFoundError("Session not found")

        requested = parse_iso(requested_at)
        boost = {
            "id": uuid.uuid4().hex,
            "sessionId": session_id,
            "boostAmount": self._rng.randrange(BOOST_MIN, BOOST_MAX),
            "createdAt": to_iso(requested or self._store.now()),
            "verified": False,
            "verifiedAt": None,
            "taskType": task_type,
        }
        snapshot["boosts"].append(boost)
        session["boosts"].append(boost["id"])
        return boost

    def verify(self, snapshot: dict[str, Any], boost_id: str, session_id: str) -> dict[str, Any]:
        """Mark the boost verified and apply it to the session once.

        Returns:
            ``{"boostAmount", "newSpeed", "applied"}``; ``applied`` is False
            when the boost was already verified or the session already
            carried its dedup key.

        Raises:
            NotFoundError: Unknown boost, or its session no longer exists.
            UnauthorizedError: ``session_id`` does not own the boost.
        """
        boost = self.find(snapshot, boost_id)
        if boost is None:
            raise NotFoundError("Boost not found")
        if boost["sessionId"] != session_id:
            raise UnauthorizedError("Unauthorized")

        session = snapshot["sessions"].get(session_id)
        if session is None:
            raise NotFoundError("Session not found")

        already_verified = boost.get("verified") is True
        boost["verified"] = True
        if not boost.get("verifiedAt"):
            boost["verifiedAt"] = to_iso(self._store.now())

        # Older files recorded the bare boost id instead of the prefixed key.
        key = dedup_key(boost_id)
        tasks = session["completedTasks"]
        applied = not already_verified and key not in tasks and boost_id not in tasks
        if applied:
            session["miningSpeed"] = as_number(session["miningSpeed"]) + boost["boostAmount"]
            session["completedTasks"].append(key)

        return {
            "boostAmount": boost["boostAmount"],
            "newSpeed": session["miningSpeed"],
            "applied": applied,
        }
