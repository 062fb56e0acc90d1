"""Snapshot schema: declared defaults and the ``reshape`` back-fill.

The snapshot is one JSON object.  Older files (including those written before
``schemaVersion`` existed) are brought up to the current shape the first time
they are loaded: every missing field receives its declared default.  Numeric
session fields and the amounts of withdrawals and boosts written as strings by
older clients are converted to numbers.  Values that are not usable numbers
fall back to the default, and non-string entries are dropped from
``completedTasks``.  Every other existing value is kept.  There is no separate
migration step.

Layout::

    {
      "schemaVersion": 2,
      "users":       {},
      "sessions":    {"<sessionId>": SessionRecord, ...},
      "withdrawals": {"<withdrawalId>": WithdrawalRecord, ...},
      "boosts":      [BoostRecord, ...],
      "activities":  [ActivityRecord, ...],
      "stats":       {"totalUsers": 0, "totalMined": 0, ...}
    }

``reshape`` is idempotent: ``reshape(reshape(x)) == reshape(x)``.
"""

from __future__ import annotations

import copy
import logging
import math
from typing import Any

logger = logging.getLogger(__name__)

# Version 1 is the unversioned layout without daily counters or extended stats.
SCHEMA_VERSION = 2

DEFAULT_MINING_SPEED = 20
DAILY_LIMIT = 20
MIN_WITHDRAWAL = 0.001
DEFAULT_NETWORK = "bsc"
ACTIVITY_CAP = 1000

STATS_DEFAULTS: dict[str, Any] = {
    "totalUsers": 0,
    "totalMined": 0,
    "totalWithdrawals": 0,
    "activeSessions": 0,
    "totalBoostCount": 0,
    "totalWithdrawalCount": 0,
}

SESSION_DEFAULTS: dict[str, Any] = {
    "userAgent": "Unknown",
    "startedAt": None,
    "lastActive": None,
    "minedTokens": 0,
    "miningSpeed": DEFAULT_MINING_SPEED,
    "dailyMined": 0,
    "lastResetDate": None,
    "completedTasks": [],
    "totalMiningTime": 0,
    "boosts": [],
    "withdrawals": [],
}

BOOST_DEFAULTS: dict[str, Any] = {
    "sessionId": None,
    "boostAmount": 0,
    "createdAt": None,
    "verified": False,
    "verifiedAt": None,
    "taskType": None,
}

WITHDRAWAL_DEFAULTS: dict[str, Any] = {
    "sessionId": None,
    "walletAddress": "",
    "amount": 0,
    "network": DEFAULT_NETWORK,
    "status": "pending",
    "createdAt": None,
    "completedAt": None,
    "ogadsVerified": False,
}

# Numeric session fields and whether zero is acceptable.
SESSION_NUMERIC_FIELDS = {
    "minedTokens": True,
    "dailyMined": True,
    "totalMiningTime": True,
    "miningSpeed": False,
}

_SESSION_LISTS = ("completedTasks", "boosts", "withdrawals")

# Top-level containers and the type each must have.
_CONTAINERS: dict[str, type] = {
    "users": dict,
    "sessions": dict,
    "withdrawals": dict,
    "boosts": list,
    "activities": list,
    "stats": dict,
}


def default_snapshot() -> dict[str, Any]:
    """Return a fresh, fully shaped, empty snapshot."""
    return {
        "schemaVersion": SCHEMA_VERSION,
        "users": {},
        "sessions": {},
        "withdrawals": {},
        "boosts": [],
        "activities": [],
        "stats": copy.deepcopy(STATS_DEFAULTS),
    }


def coerce_number(value: Any, previous: Any, *, allow_zero: bool) -> Any:
    """Return ``value`` as a usable non-negative number or fall back to ``previous``.

    Numeric strings are accepted.  Bools, other types, values too large for a
    float, non-finite and negative values (and zero unless ``allow_zero``)
    yield ``previous``.
    """
    if isinstance(value, bool):
        return previous
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return previous
    if not isinstance(value, int | float):
        return previous
    try:
        finite = math.isfinite(float(value))
    except OverflowError:
        return previous
    if not finite or value < 0 or (value == 0 and not allow_zero):
        return previous
    return value


def _normalize_session(session: dict[str, Any]) -> None:
    for field, allow_zero in SESSION_NUMERIC_FIELDS.items():
        session[field] = coerce_number(
            session[field], SESSION_DEFAULTS[field], allow_zero=allow_zero
        )
    for field in _SESSION_LISTS:
        if not isinstance(session[field], list):
            session[field] = []
    session["completedTasks"] = [t for t in session["completedTasks"] if isinstance(t, str)]


def _backfill(record: dict[str, Any], defaults: dict[str, Any]) -> None:
    for key, value in defaults.items():
        if key not in record:
            record[key] = copy.deepcopy(value)


def _reshape_keyed(records: dict[str, Any], defaults: dict[str, Any], kind: str) -> dict:
    shaped: dict[str, Any] = {}
    for record_id, record in records.items():
        if not isinstance(record, dict):
            logger.warning("schema: dropping non-object %s record %r", kind, record_id)
            continue
        record.setdefault("id", record_id)
        _backfill(record, defaults)
        shaped[record_id] = record
    return shaped


def reshape(raw: Any) -> dict[str, Any]:
    """Produce a fully shaped snapshot from a raw, possibly partial, one.

    Args:
        raw: Whatever was decoded from the snapshot file.  Anything that is
            not a JSON object yields :func:`default_snapshot`.

    Returns:
        A new snapshot dict.  ``raw`` itself is not mutated.
    """
    if not isinstance(raw, dict):
        return default_snapshot()

    snapshot = copy.deepcopy(raw)

    for key, container in _CONTAINERS.items():
        if not isinstance(snapshot.get(key), container):
            snapshot[key] = container()

    _backfill(snapshot["stats"], STATS_DEFAULTS)
    snapshot["sessions"] = _reshape_keyed(snapshot["sessions"], SESSION_DEFAULTS, "session")
    for session in snapshot["sessions"].values():
        _normalize_session(session)
    snapshot["withdrawals"] = _reshape_keyed(
        snapshot["withdrawals"], WITHDRAWAL_DEFAULTS, "withdrawal"
    )
    for withdrawal in snapshot["withdrawals"].values():
        withdrawal["amount"] = coerce_number(withdrawal["amount"], 0, allow_zero=True)

    boosts = []
    for boost in snapshot["boosts"]:
        if not isinstance(boost, dict):
            logger.warning("schema: dropping non-object boost record")
            continue
        _backfill(boost, BOOST_DEFAULTS)
        boost["boostAmount"] = coerce_number(boost["boostAmount"], 0, allow_zero=True)
        boosts.append(boost)
    snapshot["boosts"] = boosts

    # Activities are free-form client payloads; only non-objects are dropped.
    snapshot["activities"] = [a for a in snapshot["activities"] if isinstance(a, dict)]

    version = snapshot.get("schemaVersion")
    if not isinstance(version, int) or isinstance(version, bool) or version < SCHEMA_VERSION:
        snapshot["schemaVersion"] = SCHEMA_VERSION

    return snapshot
