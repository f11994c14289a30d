"""
unicache — ramcache Eviction Loop

Background sweeper that removes expired items from a Store.

Each tick takes the Store's expiry-sorted snapshot and walks it from the
front, deleting expired entries. The walk stops at the first live entry:
the snapshot is sorted, so every later entry expires later or never.

An entry that expires between the snapshot and the check is simply picked up
on the next tick (or by lazy expiry on read).

Lifecycle:
    created --start()--> running --stop()--> stopped   (no restart)
"""

import logging
import threading
import time
from datetime import timedelta

from .store import Store

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = timedelta(minutes=5)


class Evictor:
    """
    Periodic expired-entry sweeper running on a daemon thread.

    The sweeper never raises: failures on a single entry or a whole tick
    are logged and the loop carries on.
    """

    def __init__(self, store: Store, interval: timedelta | float = DEFAULT_SWEEP_INTERVAL):
        """
        Initialize the evictor (does not start it).

        Args:
            store: Store to sweep
            interval: Time between sweeps; non-positive falls back to 5 minutes
        """
        seconds = interval.total_seconds() if isinstance(interval, timedelta) else float(interval)
        if seconds <= 0:
            seconds = DEFAULT_SWEEP_INTERVAL.total_seconds()

        self.interval = seconds
        self._store = store
        self._stop_event = threading.Event()
        self._state_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._stopped = False

        # Stats
        self.sweeps = 0
        self.evictions = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stopped(self) -> bool:
        return self._stopped

    def start(self) -> None:
        """Start the sweeper thread. Calling it while running is a no-op."""
        with self._state_lock:
            if self._stopped:
                raise RuntimeError("Evictor cannot be restarted after stop()")
            if self._thread is not None:
                return
            self._thread = threading.Thread(
                target=self._run,
                name="unicache-ramcache-evictor",
                daemon=True,
            )
            self._thread.start()
        logger.debug("Evictor started (interval=%.3fs)", self.interval, extra={"interval": self.interval})

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Signal the sweeper to stop and wait for the thread to exit.

        Safe to call any number of times.
        """
        with self._state_lock:
            if self._stopped:
                return
            self._stopped = True
            self._stop_event.set()
            thread = self._thread

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.debug(
            "Evictor stopped after %d sweep(s), %d eviction(s)",
            self.sweeps,
            self.evictions,
            extra={"sweeps": self.sweeps, "evictions": self.evictions},
        )

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Unexpected error during cache sweep: {e}", extra={"error": str(e)}, exc_info=True)

    def sweep(self) -> int:
        """
        Run one sweep over the store.

        Returns:
            Number of expired entries removed
        """
        removed = 0
        now = time.monotonic()

        for key, item in self._store.snapshot_sorted_by_expiry():
            try:
                if not item.is_expired(now):
                    break
                # a concurrent set may have replaced the item since the snapshot
                if self._store.delete_if(key, item):
                    removed += 1
            except Exception as e:
                logger.error(
                    f"Failed to evict key '{key}': {e}",
                    extra={"key": key, "error": str(e)},
                    exc_info=True,
                )
                continue

        self.sweeps += 1
        self.evictions += removed
        if removed:
            logger.debug("Swept %d expired entries", removed, extra={"removed": removed})
        return removed
