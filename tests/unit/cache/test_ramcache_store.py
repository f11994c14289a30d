"""
unicache — ramcache Store Tests

Tests for Item expiry, the thread-safe Store and its readers/writer lock.
"""

import threading
import time

import pytest

from unicache.backends.ramcache import Item, KeyItem, ReadWriteLock, Store


class TestItem:
    """Test suite for Item."""

    def test_no_expiry(self) -> None:
        item = Item.create(b"v", 0)
        assert item.expires_at is None
        assert item.is_expired(now=time.monotonic() + 10**9) is False

    def test_expiry_is_strict(self) -> None:
        item = Item.create(b"v", 10, now=100.0)

        assert item.expires_at == 110.0
        assert item.is_expired(now=109.999) is False
        assert item.is_expired(now=110.0) is False
        assert item.is_expired(now=110.001) is True

    def test_immutable(self) -> None:
        item = Item(b"v")
        with pytest.raises(AttributeError):
            item.value = b"other"  # type: ignore[misc]


class TestStore:
    """Test suite for Store."""

    @pytest.fixture
    def store(self) -> Store:
        return Store()

    def test_set_get(self, store: Store) -> None:
        item = Item(b"v")
        store.set("k", item)

        assert store.get("k") is item
        assert store.get("missing") is None
        assert len(store) == 1
        assert "k" in store

    def test_store_does_not_interpret_expiry(self, store: Store) -> None:
        stale = Item(b"v", expires_at=time.monotonic() - 100)
        store.set("k", stale)
        assert store.get("k") is stale

    def test_delete_is_idempotent(self, store: Store) -> None:
        store.set("k", Item(b"v"))

        assert store.delete("k") is True
        assert store.delete("k") is False
        assert store.delete("never") is False

    def test_delete_if_same_item(self, store: Store) -> None:
        old = Item(b"old")
        new = Item(b"new")
        store.set("k", old)
        store.set("k", new)

        # a stale reference must not remove the newer write
        assert store.delete_if("k", old) is False
        assert store.get("k") is new

        assert store.delete_if("k", new) is True
        assert "k" not in store

    def test_clear(self, store: Store) -> None:
        for i in range(10):
            store.set(f"k{i}", Item(b"v"))
        store.clear()
        assert len(store) == 0

    def test_snapshot_sorted_by_expiry(self, store: Store) -> None:
        store.set("never1", Item(b"v"))
        store.set("late", Item(b"v", expires_at=300.0))
        store.set("never2", Item(b"v"))
        store.set("early", Item(b"v", expires_at=100.0))
        store.set("middle", Item(b"v", expires_at=200.0))

        snapshot = store.snapshot_sorted_by_expiry()

        assert all(isinstance(entry, KeyItem) for entry in snapshot)
        assert [entry.key for entry in snapshot[:3]] == ["early", "middle", "late"]
        assert {entry.key for entry in snapshot[3:]} == {"never1", "never2"}

    def test_snapshot_is_a_copy(self, store: Store) -> None:
        store.set("k", Item(b"v"))
        snapshot = store.snapshot_sorted_by_expiry()

        store.delete("k")

        assert [entry.key for entry in snapshot] == ["k"]

    def test_concurrent_writers(self, store: Store) -> None:
        def writer(prefix: str) -> None:
            for i in range(200):
                store.set(f"{prefix}{i}", Item(b"v"))
                store.get(f"{prefix}{i}")

        threads = [threading.Thread(target=writer, args=(f"t{n}:",)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 8 * 200


class TestReadWriteLock:
    """Test suite for ReadWriteLock."""

    def test_readers_share(self) -> None:
        lock = ReadWriteLock()
        inside = threading.Barrier(2, timeout=2)

        def reader() -> None:
            with lock.read_locked():
                # both readers must be inside at once to pass the barrier
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=3)

        assert not inside.broken

    def test_writer_excludes_readers(self) -> None:
        lock = ReadWriteLock()
        events: list[str] = []
        writer_in = threading.Event()

        def writer() -> None:
            with lock.write_locked():
                writer_in.set()
                time.sleep(0.1)
                events.append("writer-done")

        def reader() -> None:
            writer_in.wait()
            with lock.read_locked():
                events.append("reader")

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=3)

        assert events == ["writer-done", "reader"]
