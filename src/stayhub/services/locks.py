"""Per-property mutual exclusion for calendar writes.

Two writers on the same property run one after the other; writers on
different properties never wait for each other. Reads do not take a lock.
"""

import threading
import weakref
from collections.abc import Iterator
from contextlib import contextmanager

from stayhub.utils.logging import get_logger

logger = get_logger(__name__)


class PropertyLockRegistry:
    """Map of property ID to a lock, created on first use.

    Entries are held weakly: a lock lives only while some writer holds a
    reference to it, so the registry does not grow with every property
    ever written.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, property_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(property_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[property_id] = lock
            return lock

    @contextmanager
    def hold(self, property_id: str) -> Iterator[None]:
        """Hold the property's lock for the duration of the block."""
        lock = self._lock_for(property_id)
        lock.acquire()
        logger.debug("Acquired calendar lock for property %s", property_id)
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
