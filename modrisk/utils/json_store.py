"""Shared helpers for the file-based JSON stores.

Every store keeps one or more JSON documents (a list of dicts) under its
``base_dir``.  Writes go through a temp file and ``os.replace`` so a reader
never sees a half-written document, and all read-modify-write cycles on the
same file are serialized through a process-wide lock keyed by the file's
resolved path.  Two store objects pointed at the same directory therefore
share the lock.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from modrisk.errors import StorageError

_locks: dict[str, threading.RLock] = {}
_locks_guard = threading.Lock()


def lock_for(path: Path) -> threading.RLock:
    """Return the lock guarding *path*, creating it on first use."""
    key = str(path.resolve())
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = threading.RLock()
            _locks[key] = lock
        return lock


def read_json_list(path: Path) -> list[dict]:
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8") or "[]")
    except json.JSONDecodeError as exc:
        raise StorageError(f"Cannot decode {path}: {exc}") from exc
    if not isinstance(data, list):
        raise StorageError(f"Expected a JSON list in {path}")
    return data


def write_json_list(path: Path, data: list[dict]) -> None:
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, default=str)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class JsonCollection:
    """A single JSON list document with locked read-modify-write access."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = lock_for(path)

    def load(self) -> list[dict]:
        with self._lock:
            return read_json_list(self.path)

    def save(self, data: list[dict]) -> None:
        with self._lock:
            write_json_list(self.path, data)

    @contextmanager
    def transaction(self) -> Iterator[list[dict]]:
        """Yield the current records; persist them if the block succeeds.

        The lock is held for the whole block, so checks made on the yielded
        list stay valid until the write.
        """
        with self._lock:
            records = read_json_list(self.path)
            yield records
            write_json_list(self.path, records)
