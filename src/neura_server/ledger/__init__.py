"""Ledger package: the persistent ledger store.

The store owns every session, boost, withdrawal and activity record and
persists them as one JSON snapshot, replaced atomically on each write.

Public surface
--------------
- :class:`LedgerService`: the operation contract used by the API and CLI.
- :class:`LedgerStore`: owned snapshot store with ``open``/``close`` and
  the locked ``transaction`` unit of work.
- :func:`reshape`: back-fill a raw snapshot to the current schema.
- :exc:`LedgerError` and subclasses: domain outcomes.
- :exc:`StoreError` and subclasses: snapshot read/write failures.

Usage example
-------------
::

    from neura_server.ledger import LedgerService, NotFoundError

    with LedgerService.from_config() as service:
        session = service.create_session("Mozilla/5.0")
        try:
            service.get_session_state("missing")
        except NotFoundError:
            ...
"""

from neura_server.ledger.errors import (
    AlreadyCompletedError,
    InsufficientBalanceError,
    InvalidInputError,
    LedgerError,
    NotFoundError,
    PersistenceError,
    SnapshotReadError,
    StoreError,
    UnauthorizedError,
)
from neura_server.ledger.schema import SCHEMA_VERSION, default_snapshot, reshape
from neura_server.ledger.service import LedgerService
from neura_server.ledger.store import LedgerStore

__all__ = [
    "AlreadyCompletedError",
    "InsufficientBalanceError",
    "InvalidInputError",
    "LedgerError",
    "LedgerService",
    "LedgerStore",
    "NotFoundError",
    "PersistenceError",
    "SCHEMA_VERSION",
    "SnapshotReadError",
    "StoreError",
    "UnauthorizedError",
    "default_snapshot",
    "reshape",
]
