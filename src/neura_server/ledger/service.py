"""Operation contract of the ledger store.

:class:`LedgerService` is what the HTTP layer and the CLI call.  Every method
is one unit of work on the injected :class:`LedgerStore`::

    lock → load → reshape → mutate via a ledger → recompute stats → save

Domain outcomes surface as :class:`~neura_server.ledger.errors.LedgerError`
subclasses; store failures as :class:`~neura_server.ledger.errors.StoreError`
subclasses.  Either one aborts the unit before anything is saved.
"""

from __future__ import annotations

import logging
import random
from datetime import timedelta
from typing import Any

from neura_server.ledger.activities import ActivityLog
from neura_server.ledger.boosts import BoostLedger
from neura_server.ledger.errors import InvalidInputError
from neura_server.ledger.retention import RetentionSweeper
from neura_server.ledger.schema import DEFAULT_NETWORK
from neura_server.ledger.sessions import SessionLedger
from neura_server.ledger.stats import StatsAggregator
from neura_server.ledger.store import LedgerStore
from neura_server.ledger.withdrawals import WithdrawalLedger

logger = logging.getLogger(__name__)


class LedgerService:
    """Sessions, boosts, withdrawals, activities and stats over one store.

    Args:
        store: The owned snapshot store.  ``open()`` is called by
            :meth:`open` / the context manager, not by the constructor.
        default_mining_speed: Speed of newly created sessions.
        daily_limit: Daily limit reported to clients.
        retention: Session inactivity window used by :meth:`sweep_expired_sessions`.
        rng: Random source for boost amounts.
    """

    def __init__(
        self,
        store: LedgerStore,
        *,
        default_mining_speed: float = 20,
        daily_limit: float = 20,
        retention: timedelta = timedelta(hours=24),
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.sessions = SessionLedger(
            store, default_mining_speed=default_mining_speed, daily_limit=daily_limit
        )
        self.boosts = BoostLedger(store, rng=rng)
        self.withdrawals = WithdrawalLedger(store)
        self.activities = ActivityLog(store)
        self.sweeper = RetentionSweeper(retention)

    @classmethod
    def from_config(cls, cfg=None, **kwargs: Any) -> "LedgerService":
        """Build a service from the ``config`` singleton (or ``cfg``)."""
        from neura_server.config import config as default_config

        cfg = cfg or default_config
        window = cfg.session.active_window_minutes
        store = LedgerStore(
            cfg.store.absolute_path,
            fail_open=cfg.store.fail_open,
            stats=StatsAggregator(active_window=timedelta(minutes=window) if window > 0 else None),
            **kwargs,
        )
        return cls(
            store,
            default_mining_speed=cfg.session.default_mining_speed,
            daily_limit=cfg.session.daily_limit,
            retention=timedelta(hours=cfg.retention.max_age_hours),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> "LedgerService":
        self.store.open()
        return self

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "LedgerService":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(
        self, user_agent: str | None = None, started_at: str | None = None
    ) -> dict[str, Any]:
        with self.store.transaction("sessions.create") as snapshot:
            session = self.sessions.create(snapshot, user_agent, started_at)
            self.activities.event(snapshot, "session.created", sessionId=session["id"])
        logger.debug("session %s created", session["id"])
        return {
            "sessionId": session["id"],
            "miningSpeed": session["miningSpeed"],
            "dailyLimit": self.sessions.daily_limit,
        }

    def get_session_state(self, session_id: str) -> dict[str, Any]:
        with self.store.transaction("sessions.get_state") as snapshot:
            return self.sessions.get_state(snapshot, session_id)

    def set_session_state(self, session_id: str, partial: dict[str, Any]) -> dict[str, Any]:
        with self.store.transaction("sessions.set_state") as snapshot:
            return self.sessions.set_state(snapshot, session_id, partial)

    # ------------------------------------------------------------------
    # Boosts
    # ------------------------------------------------------------------

    def create_boost(
        self,
        session_id: str,
        requested_at: str | None = None,
        task_type: str | None = None,
    ) -> dict[str, Any]:
        with self.store.transaction("boosts.create") as snapshot:
            boost = self.boosts.create(snapshot, session_id, requested_at, task_type)
            self.activities.event(
                snapshot, "boost.created", sessionId=session_id, boostId=boost["id"]
            )
        return {"boostId": boost["id"], "boostAmount": boost["boostAmount"]}

    def verify_boost(self, boost_id: str, session_id: str) -> dict[str, Any]:
        with self.store.transaction("boosts.verify") as snapshot:
            result = self.boosts.verify(snapshot, boost_id, session_id)
            if result["applied"]:
                self.activities.event(
                    snapshot,
                    "boost.verified",
                    sessionId=session_id,
                    boostId=boost_id,
                    boostAmount=result["boostAmount"],
                )
        if not result["applied"]:
            logger.info("boost %s already applied to session %s", boost_id, session_id)
        return result

    # ------------------------------------------------------------------
    # Withdrawals
    # ------------------------------------------------------------------

    def create_withdrawal(
        self,
        session_id: str,
        wallet_address: str | None,
        amount: Any,
        network: str | None = DEFAULT_NETWORK,
    ) -> dict[str, Any]:
        with self.store.transaction("withdrawals.create") as snapshot:
            result = self.withdrawals.create(
                snapshot, session_id, wallet_address, amount, network
            )
            self.activities.event(
                snapshot,
                "withdrawal.created",
                sessionId=session_id,
                withdrawalId=result["withdrawalId"],
            )
        return result

    def complete_withdrawal(self, withdrawal_id: str, session_id: str) -> dict[str, Any]:
        with self.store.transaction("withdrawals.complete") as snapshot:
            withdrawal = self.withdrawals.complete(snapshot, withdrawal_id, session_id)
            self.activities.event(
                snapshot,
                "withdrawal.completed",
                sessionId=session_id,
                withdrawalId=withdrawal_id,
            )
        return {"withdrawal": withdrawal}

    # ------------------------------------------------------------------
    # Activities, stats, export
    # ------------------------------------------------------------------

    def track_activity(self, payload: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(payload, dict):
            raise InvalidInputError("Activity must be a JSON object")
        with self.store.transaction("activities.record") as snapshot:
            self.activities.record(snapshot, payload)
        return {"success": True}

    def get_stats(self) -> dict[str, Any]:
        with self.store.read() as snapshot:
            return self.store.stats.summarize(snapshot, self.store.now())

    def export_snapshot(self) -> dict[str, Any]:
        """Return the whole snapshot with freshly computed stats."""
        with self.store.read() as snapshot:
            snapshot["stats"] = self.store.stats.recompute(snapshot, self.store.now())
            return snapshot

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def sweep_expired_sessions(self) -> dict[str, Any]:
        with self.store.transaction("retention.sweep") as snapshot:
            removed = self.sweeper.sweep(snapshot, self.store.now())
            if removed:
                self.activities.event(snapshot, "retention.swept", removed=len(removed))
        if removed:
            logger.info("retention: removed %d inactive session(s)", len(removed))
        return {"removed": removed}
