"""Shared file helpers for the JSON-backed repositories.

Each repository keeps one JSON array per file.  ``JsonFile.lock`` makes a
read-modify-write of that file atomic for every writer sharing the data
directory: threads of one process share a re-entrant lock per path, and the
outermost holder also takes an exclusive ``flock`` on a sidecar
``<file>.lock``, which other processes block on.  That is the per-document
atomicity the stock ledger's compare-and-set relies on.
"""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
import threading
from pathlib import Path

_LOCKS: dict[Path, FileLock] = {}
_LOCKS_GUARD = threading.Lock()


class FileLock:
    """Re-entrant lock on a path that also excludes other processes."""

    def __init__(self, lock_path: Path) -> None:
        self._lock_path = lock_path
        self._thread_lock = threading.RLock()
        self._depth = 0
        self._fd: int | None = None

    def __enter__(self) -> FileLock:
        self._thread_lock.acquire()
        if self._depth == 0:
            try:
                self._fd = self._lock_file()
            except OSError:
                self._thread_lock.release()
                raise
        self._depth += 1
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._depth -= 1
        try:
            if self._depth == 0 and self._fd is not None:
                fd, self._fd = self._fd, None
                try:
                    fcntl.flock(fd, fcntl.LOCK_UN)
                finally:
                    os.close(fd)
        finally:
            self._thread_lock.release()

    def _lock_file(self) -> int:
        # A descriptor per acquisition; a forked child never inherits a held lock.
        fd = os.open(self._lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
        except OSError:
            os.close(fd)
            raise
        return fd


def _lock_for(path: Path) -> FileLock:
    with _LOCKS_GUARD:
        lock = _LOCKS.get(path)
        if lock is None:
            lock = _LOCKS[path] = FileLock(path.with_name(path.name + ".lock"))
        return lock


class JsonFile:

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path.resolve()
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self.lock = _lock_for(self._file_path)
        self._ensure_file()

    @property
    def path(self) -> Path:
        return self._file_path

    def load(self) -> list[dict]:
        with self.lock:
            return json.loads(self._file_path.read_text(encoding="utf-8"))

    def persist(self, records: list[dict]) -> None:
        # Readers never see a half-written document.
        with self.lock:
            self._write_atomically(json.dumps(records, indent=2) + "\n")

    def _write_atomically(self, text: str) -> None:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self._file_path.parent,
            prefix=self._file_path.name + ".",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        try:
            os.replace(tmp.name, self._file_path)
        except OSError:
            os.unlink(tmp.name)
            raise

    def _ensure_file(self) -> None:
        with self.lock:
            if not self._file_path.exists():
                self._write_atomically("[]")
