"""Inactive-session sweeping.

A session is expired when its ``lastActive`` (or ``startedAt`` when
``lastActive`` is missing) is strictly older than ``now - max_age``.  Boosts
and withdrawals are append-only ledgers keyed by id and are never touched, so
their lookups keep working after their session is gone.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from neura_server.ledger.timestamps import parse_iso

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(hours=24)


class RetentionSweeper:
    def __init__(self, max_age: timedelta = DEFAULT_MAX_AGE) -> None:
        self.max_age = max_age

    def is_expired(self, session: dict[str, Any], cutoff: datetime) -> bool:
        seen = parse_iso(session.get("lastActive")) or parse_iso(session.get("startedAt"))
        if seen is None:
            logger.warning(
                "retention: session %s has no usable timestamp, keeping it", session.get("id")
            )
            return False
        return seen < cutoff

    def sweep(self, snapshot: dict[str, Any], now: datetime) -> list[str]:
        """Remove expired sessions from ``snapshot`` in place.

        Returns:
            The ids of the removed sessions.
        """
        cutoff = now - self.max_age
        sessions = snapshot["sessions"]
        expired = [sid for sid, session in sessions.items() if self.is_expired(session, cutoff)]
        for sid in expired:
            del sessions[sid]
        return expired
