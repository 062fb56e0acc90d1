"""Single-file snapshot persistence with atomic replace.

Storage
-------
The whole store lives in one JSON file (``data/database.json`` by default).
Every save rewrites it completely:

1. Serialise the snapshot (``indent=2, sort_keys=True``).
2. Write it to a ``tempfile.mkstemp`` file in the same directory, flush and
   ``fsync``.
3. ``os.replace`` the temporary file over the live file.
4. Best-effort ``fsync`` of the directory so the rename itself is durable.

Because ``os.replace`` is atomic on a single filesystem, a reader never sees a
partially written snapshot; a crash mid-save leaves the previous file intact.

Locking
-------
:meth:`PersistentStore.lock` takes ``fcntl.flock(LOCK_EX)`` on a sidecar
``<name>.lock`` file.  The lock file is never replaced, so the lock stays
valid across saves.  ``fcntl`` is POSIX-only (Darwin + Linux).

Read failures
-------------
A missing file is not an error: :meth:`load` returns ``None`` and the caller
substitutes the default snapshot.  A file that exists but cannot be decoded is
either quarantined (``fail_open=True``) or reported as
:exc:`~neura_server.ledger.errors.SnapshotReadError`.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from neura_server.ledger.errors import (
    PersistenceError,
    SnapshotReadError,
    StoreOperationContext,
)
from neura_server.ledger.schema import default_snapshot

logger = logging.getLogger(__name__)


def _fsync_dir(dir_path: Path) -> None:
    try:
        fd = os.open(str(dir_path), os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


class PersistentStore:
    """Owns the on-disk snapshot file.

    Args:
        path: Location of the snapshot file.  The parent directory is created
            on the first write.
        fail_open: When True, a corrupt file is moved aside and ``load``
            reports "no snapshot"; when False, ``load`` raises.
    """

    def __init__(self, path: Path | str, *, fail_open: bool = True) -> None:
        self.path = Path(path)
        self.fail_open = fail_open

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    def exists(self) -> bool:
        return self.path.exists()

    def initialize(self) -> bool:
        """Write an empty snapshot if none exists.  Returns True if one was written."""
        if self.path.exists():
            return False
        self.save(default_snapshot())
        logger.info("store: initialised empty snapshot at %s", self.path)
        return True

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self) -> dict[str, Any] | None:
        """Read and decode the snapshot file.

        Returns:
            The decoded JSON object, or ``None`` when the file is absent or
            was corrupt and has been quarantined (fail-open).

        Raises:
            SnapshotReadError: The file is unreadable and ``fail_open`` is
                False.
        """
        if not self.path.exists():
            return None

        try:
            raw = self.path.read_bytes()
            data = json.loads(raw.decode("utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            return self._handle_corrupt(f"{type(exc).__name__}: {exc}", exc)

        if not isinstance(data, dict):
            return self._handle_corrupt(
                f"root is {type(data).__name__}, expected object", None
            )
        return data

    def _handle_corrupt(self, reason: str, exc: Exception | None) -> None:
        if not self.fail_open:
            raise SnapshotReadError(
                context=StoreOperationContext(
                    operation="store.load", details=f"path={self.path}, {reason}"
                ),
                cause=exc,
            ) from exc

        quarantine = self._quarantine()
        logger.critical(
            "store: snapshot %s is unreadable (%s); continuing with an empty "
            "snapshot, corrupt file kept at %s",
            self.path,
            reason,
            quarantine,
        )
        return None

    def _quarantine(self) -> Path | None:
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S%fZ")
        target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            os.replace(self.path, target)
        except OSError:
            logger.error("store: could not move corrupt snapshot aside", exc_info=True)
            return None
        return target

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self, snapshot: dict[str, Any]) -> None:
        """Atomically replace the snapshot file.

        Raises:
            PersistenceError: Serialisation, the temporary write, or the
                rename failed.  The live file is left untouched.
        """
        try:
            data = json.dumps(snapshot, indent=2, sort_keys=True, allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise PersistenceError(
                context=StoreOperationContext(
                    operation="store.save", details=f"snapshot is not serialisable: {exc}"
                ),
                cause=exc,
            ) from exc

        try:
            self._atomic_write(data)
        except OSError as exc:
            raise PersistenceError(
                context=StoreOperationContext(operation="store.save", details=f"path={self.path}"),
                cause=exc,
            ) from exc

        logger.debug("store: wrote %d bytes to %s", len(data), self.path.name)

    def _atomic_write(self, data: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=self.path.name + ".", suffix=".tmp", dir=str(self.path.parent)
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
            _fsync_dir(self.path.parent)
        finally:
            # Only present if the replace did not happen.
            if tmp_path.exists():
                tmp_path.unlink()

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Hold an exclusive advisory lock on the sidecar lock file.

        Raises:
            PersistenceError: The lock file could not be created or opened.
        """
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            fh = self.lock_path.open("a")
        except OSError as exc:
            raise PersistenceError(
                context=StoreOperationContext(
                    operation="store.lock", details=f"path={self.lock_path}"
                ),
                cause=exc,
            ) from exc

        with fh:
            fcntl.flock(fh, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(fh, fcntl.LOCK_UN)
