"""Filesystem adapter for lock records.

One JSON file per resource key lives in the data root's lock folder.
Writes go through a sibling temp file and ``os.replace`` so readers on a
network share never see a half-written record. A missing or corrupt record
reads as ``None`` so corruption cannot deadlock the protocol. A read that
runs past the io timeout raises ``TimeoutError`` instead: a slow share says
nothing about whether the resource is held.
"""

import contextlib
import logging
import os
import tempfile
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TypeVar

from ..constants import LOCK_FILE_PREFIX, LOCK_FILE_SUFFIX, TEMP_FILE_SUFFIX
from ..models import LockRecord
from .archive import ensure_lock_dir, get_locks_dir
from .keys import lock_filename

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Shared by all stores; only used when an io timeout is configured
_io_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="softlock-io")


class LockStore:
    """Read, write and delete lock records under one data root."""

    def __init__(self, root: Path, io_timeout_seconds: float | None = None) -> None:
        self.root = root
        self.io_timeout_seconds = io_timeout_seconds

    @property
    def locks_dir(self) -> Path:
        return get_locks_dir(self.root)

    def path_for(self, resource_key: str) -> Path:
        """Get the record path for a resource key."""
        return self.locks_dir / lock_filename(resource_key)

    def read(self, resource_key: str) -> LockRecord | None:
        """Read the record for a resource key.

        Returns:
            The record, or None if it is missing, unreadable, corrupt, or
            belongs to a different key

        Raises:
            TimeoutError: If the io timeout expires before the read completes
        """
        path = self.path_for(resource_key)
        try:
            content = self._run(path.read_bytes)
        except FileNotFoundError:
            return None
        except TimeoutError:
            raise
        except OSError as e:
            logger.debug(f"Unreadable lock record {path}: {e}")
            return None

        record = self._parse(path, content)
        if record is not None and record.resource_key != resource_key:
            logger.debug(f"Lock record {path} names '{record.resource_key}', ignoring")
            return None
        return record

    def write(self, resource_key: str, record: LockRecord) -> None:
        """Atomically write (overwrite) the record for a resource key.

        Raises:
            OSError: If the lock folder or the record cannot be written
        """
        self._run(self._write_atomic, self.path_for(resource_key), record)

    def delete(self, resource_key: str) -> None:
        """Delete the record for a resource key. A missing record is success.

        Raises:
            OSError: If an existing record cannot be removed
        """
        self._run(self.path_for(resource_key).unlink, missing_ok=True)

    def list_records(self) -> list[LockRecord]:
        """Read every parsable record in the lock folder."""
        try:
            paths = self._run(self._scan)
        except OSError as e:
            logger.debug(f"Cannot list lock folder {self.locks_dir}: {e}")
            return []

        records = []
        for path in paths:
            try:
                content = self._run(path.read_bytes)
            except OSError as e:
                logger.debug(f"Skipping unreadable lock record {path}: {e}")
                continue
            record = self._parse(path, content)
            if record is not None:
                records.append(record)
        return records

    def _scan(self) -> list[Path]:
        if not self.locks_dir.is_dir():
            return []
        return sorted(
            p
            for p in self.locks_dir.iterdir()
            if p.name.startswith(LOCK_FILE_PREFIX) and p.name.endswith(LOCK_FILE_SUFFIX)
        )

    @staticmethod
    def _parse(path: Path, content: bytes) -> LockRecord | None:
        # ValidationError and UnicodeDecodeError are both ValueErrors
        try:
            return LockRecord.model_validate_json(content)
        except ValueError:
            logger.debug(f"Corrupt lock record {path}, treating as unclaimed")
            return None

    def _write_atomic(self, path: Path, record: LockRecord) -> None:
        ensure_lock_dir(self.root)
        payload = record.model_dump_json(indent=2).encode("utf-8")
        fd, tmp = tempfile.mkstemp(
            dir=str(path.parent), prefix=f".{path.stem}.", suffix=TEMP_FILE_SUFFIX
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise

    def _run(self, fn: Callable[..., T], *args: object, **kwargs: object) -> T:
        """Call fn, bounded by the io timeout when one is configured.

        A timeout surfaces as TimeoutError (an OSError). The worker thread is
        left to finish on its own.
        """
        if self.io_timeout_seconds is None:
            return fn(*args, **kwargs)
        future = _io_executor.submit(fn, *args, **kwargs)
        return future.result(timeout=self.io_timeout_seconds)
