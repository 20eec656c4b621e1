"""CacheIt Read/Write Lock - Single-Writer, Multi-Reader Lock.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Optional


class ReadWriteLock:
    """Single-writer, multi-reader lock.

    Readers share the lock; a writer excludes readers and other writers.
    Waiting writers block new readers so a steady stream of fetches cannot
    starve creates.

    The writer side is reentrant for the thread that holds it, and that
    thread may also take the read side. This lets expiry run from inside
    a create without dropping the lock in between.

    Example:
        lock = ReadWriteLock()
        with lock.read():
            value = mapping.get(key)
        with lock.write():
            mapping[key] = value
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writers_waiting = 0
        self._writer: Optional[int] = None
        self._write_depth = 0

    def acquire_read(self) -> None:
        """Acquire shared access."""
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._write_depth += 1
                return
            while self._writer is not None or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        """Release shared access."""
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._release_write_locked()
                return
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        """Acquire exclusive access."""
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._write_depth += 1
                return
            self._writers_waiting += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = me
            self._write_depth = 1

    def release_write(self) -> None:
        """Release exclusive access."""
        with self._cond:
            if self._writer != threading.get_ident():
                raise RuntimeError("release_write() called by a thread that does not hold the lock")
            self._release_write_locked()

    def _release_write_locked(self) -> None:
        self._write_depth -= 1
        if self._write_depth == 0:
            self._writer = None
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        """Context manager for shared access."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Context manager for exclusive access."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    @property
    def is_write_locked(self) -> bool:
        """Check if a writer currently holds the lock."""
        return self._writer is not None

    def __repr__(self) -> str:
        return f"ReadWriteLock(readers={self._readers}, writer={self._writer is not None})"


__all__ = ["ReadWriteLock"]
