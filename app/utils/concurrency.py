"""
Concurrency utilities.

Provides a `synchronized` decorator that acquires an instance `_lock` if present,
and `KeyedLock`, which serializes callers sharing a key (a device id) while
letting different keys proceed in parallel.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from functools import wraps
from typing import Callable, Hashable, Iterator


def synchronized(func: Callable) -> Callable:
    """Decorator that acquires `self._lock` if present on the instance.

    If no `_lock` attribute exists on `self`, the function is executed
    without locking.
    """

    @wraps(func)
    def _wrapped(*args, **kwargs):
        self = args[0] if args else None
        lock = getattr(self, "_lock", None)
        if lock is None:
            return func(*args, **kwargs)
        with lock:
            return func(*args, **kwargs)

    return _wrapped


class _Entry:
    __slots__ = ("lock", "waiters")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.waiters = 0


class KeyedLock:
    """One mutex per key, created on demand and discarded when unused."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[Hashable, _Entry] = {}

    @synchronized
    def _acquire_entry(self, key: Hashable) -> _Entry:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _Entry()
        entry.waiters += 1
        return entry

    @synchronized
    def _release_entry(self, key: Hashable, entry: _Entry) -> None:
        entry.waiters -= 1
        if entry.waiters == 0:
            del self._entries[key]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        entry = self._acquire_entry(key)
        try:
            with entry.lock:
                yield
        finally:
            self._release_entry(key, entry)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
