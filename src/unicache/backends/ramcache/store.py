"""
unicache — ramcache Store

Thread-safe key -> Item mapping used by the in-memory driver.

The Store is a plain map: it never interprets expiry on reads. Expiry policy
lives in the driver (lazy expiry on read) and in the Evictor (background
sweep), both of which rely on ``snapshot_sorted_by_expiry``.
"""

import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import NamedTuple


@dataclass(frozen=True, slots=True)
class Item:
    """
    A stored value and its expiry.

    Attributes:
        value: Opaque payload
        expires_at: Absolute ``time.monotonic()`` instant, or None for no expiry
    """

    value: bytes
    expires_at: float | None = None

    @classmethod
    def create(cls, value: bytes, ttl_seconds: float = 0.0, now: float | None = None) -> "Item":
        """Build an item expiring ``ttl_seconds`` from now (0 = never)."""
        if ttl_seconds <= 0:
            return cls(value=value, expires_at=None)
        if now is None:
            now = time.monotonic()
        return cls(value=value, expires_at=now + ttl_seconds)

    def is_expired(self, now: float | None = None) -> bool:
        """True iff the item has an expiry and ``now`` is strictly past it."""
        if self.expires_at is None:
            return False
        if now is None:
            now = time.monotonic()
        return now > self.expires_at


class KeyItem(NamedTuple):
    key: str
    item: Item


class ReadWriteLock:
    """
    Many readers or one writer. Writers take priority over new readers.

    Not reentrant: a thread holding either side must not acquire again.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


def _expiry_sort_key(entry: KeyItem) -> tuple[bool, float]:
    # no-expiry entries sort after every concrete expiry
    expires_at = entry.item.expires_at
    if expires_at is None:
        return (True, 0.0)
    return (False, expires_at)


class Store:
    """Concurrency-safe mapping from key to Item. No operation raises."""

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._items: dict[str, Item] = {}

    def get(self, key: str) -> Item | None:
        with self._lock.read_locked():
            return self._items.get(key)

    def set(self, key: str, item: Item) -> None:
        with self._lock.write_locked():
            self._items[key] = item

    def delete(self, key: str) -> bool:
        """Remove a key if present. Returns True if something was removed."""
        with self._lock.write_locked():
            return self._items.pop(key, None) is not None

    def delete_if(self, key: str, item: Item) -> bool:
        """Remove a key only if it still maps to ``item`` (not a newer write)."""
        with self._lock.write_locked():
            if self._items.get(key) is item:
                del self._items[key]
                return True
            return False

    def clear(self) -> None:
        with self._lock.write_locked():
            self._items = {}

    def snapshot_sorted_by_expiry(self) -> list[KeyItem]:
        """All entries, soonest expiry first, no-expiry entries last."""
        with self._lock.read_locked():
            entries = [KeyItem(key, item) for key, item in self._items.items()]
        entries.sort(key=_expiry_sort_key)
        return entries

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._items)

    def __contains__(self, key: object) -> bool:
        with self._lock.read_locked():
            return key in self._items
