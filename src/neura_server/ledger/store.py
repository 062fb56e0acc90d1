"""The owned ledger store and its unit of work.

:class:`LedgerStore` wraps a :class:`~neura_server.ledger.persistence.PersistentStore`
with an explicit ``open``/``close`` lifecycle and the mutual-exclusion
boundary every operation runs inside::

    with store.transaction("withdrawals.create") as snapshot:
        ...mutate snapshot...
    # stats recomputed, snapshot saved, lock released

The boundary is a process-wide ``threading.Lock`` plus the exclusive
``fcntl`` sidecar lock, held from ``load`` through ``save``.  Concurrent
operations therefore run one after another and cannot overwrite each
other's changes.

If the body raises, nothing is saved: the in-memory mutation is simply
dropped and the exception propagates.  Transactions do not nest.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from neura_server.ledger.errors import PersistenceError, StoreError
from neura_server.ledger.persistence import PersistentStore
from neura_server.ledger.schema import reshape
from neura_server.ledger.stats import StatsAggregator
from neura_server.ledger.timestamps import utc_now

logger = logging.getLogger(__name__)


class LedgerStore:
    """Owns the snapshot file for the lifetime of the service.

    Args:
        path: Snapshot file location.
        fail_open: Forwarded to :class:`PersistentStore`.
        clock: Returns the current time as an aware ``datetime``.  Every
            timestamp the ledgers write comes from here.
        stats: Aggregator used to recompute ``stats`` before each save.
    """

    def __init__(
        self,
        path: Path | str,
        *,
        fail_open: bool = True,
        clock: Callable[[], datetime] = utc_now,
        stats: StatsAggregator | None = None,
    ) -> None:
        self.persistence = PersistentStore(path, fail_open=fail_open)
        self.clock = clock
        self.stats = stats or StatsAggregator(active_window=timedelta(minutes=60))
        self._mutex = threading.Lock()
        self._local = threading.local()
        self._open = False

    @property
    def path(self) -> Path:
        return self.persistence.path

    @property
    def is_open(self) -> bool:
        return self._open

    def now(self) -> datetime:
        return self.clock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> "LedgerStore":
        """Create the snapshot file if needed and accept operations."""
        if not self._open:
            with self._mutex, self.persistence.lock():
                self.persistence.initialize()
            self._open = True
            logger.info("store: opened %s", self.path)
        return self

    def close(self) -> None:
        if self._open:
            self._open = False
            logger.info("store: closed %s", self.path)

    def __enter__(self) -> "LedgerStore":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Units of work
    # ------------------------------------------------------------------

    def _check_usable(self) -> None:
        if not self._open:
            raise StoreError(f"store at {self.path} is not open")
        if getattr(self._local, "active", False):
            raise StoreError("store transactions do not nest")

    def _load(self) -> dict[str, Any]:
        return reshape(self.persistence.load())

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        self._check_usable()
        with self._mutex, self.persistence.lock():
            self._local.active = True
            try:
                yield
            finally:
                self._local.active = False

    @contextmanager
    def transaction(self, operation: str) -> Iterator[dict[str, Any]]:
        """Run one ``load → mutate → recompute stats → save`` unit.

        Args:
            operation: Stable operation name used in log lines.

        Yields:
            The freshly loaded, reshaped snapshot to mutate in place.

        Raises:
            PersistenceError: The save failed; the mutation is discarded.
        """
        with self._exclusive():
            snapshot = self._load()
            yield snapshot
            snapshot["stats"] = self.stats.recompute(snapshot, self.now())
            try:
                self.persistence.save(snapshot)
            except PersistenceError:
                logger.warning("store: %s not persisted", operation, exc_info=True)
                raise
            logger.debug("store: committed %s", operation)

    @contextmanager
    def read(self) -> Iterator[dict[str, Any]]:
        """Yield a consistent snapshot for read-only use.  Nothing is saved."""
        with self._exclusive():
            yield self._load()
