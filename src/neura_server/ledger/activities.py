"""Bounded activity log.

Activities are free-form records: client analytics posted to
``/api/activity`` and the system events the ledgers emit (``session.created``,
``boost.verified``, ...).  Only the most recent ``cap`` entries are kept.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from neura_server.ledger.schema import ACTIVITY_CAP
from neura_server.ledger.timestamps import to_iso

if TYPE_CHECKING:
    from neura_server.ledger.store import LedgerStore


class ActivityLog:
    def __init__(self, store: "LedgerStore", *, cap: int = ACTIVITY_CAP) -> None:
        self._store = store
        self.cap = cap

    def record(self, snapshot: dict[str, Any], payload: dict[str, Any]) -> dict[str, Any]:
        """Append a client activity.  ``id`` and ``timestamp`` are always server-assigned."""
        entry = {"type": "client", **payload}
        entry["id"] = uuid.uuid4().hex
        entry["timestamp"] = to_iso(self._store.now())

        activities = snapshot["activities"]
        activities.append(entry)
        if len(activities) > self.cap:
            del activities[: len(activities) - self.cap]
        return entry

    def event(self, snapshot: dict[str, Any], event_type: str, **data: Any) -> dict[str, Any]:
        """Append a system event, e.g. ``event(snap, "boost.verified", boostId=...)``."""
        return self.record(snapshot, {**data, "type": event_type})
