"""Keyed in-process locks.

A ``KeyedLocks`` registry hands out one re-entrant lock per key so that work on
different orders (or products) proceeds in parallel while work on the same
key is serialized.

Entries are reference counted: a key's lock exists only while some thread
holds it or waits for it, so ids that are looked up once (including ids that
turn out not to exist) leave nothing behind.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.holders = 0


class KeyedLocks:
    def __init__(self, name: str) -> None:
        self.name = name
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    @contextmanager
    def hold(self, key) -> Iterator[None]:
        key = str(key)
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[key]


# Serializes every mutation of an order and the payments attached to it.
# Always taken before any catalog product lock, never after.
order_locks = KeyedLocks("order")
