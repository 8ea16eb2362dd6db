import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

from stockroom.models import normalize_sku


class SkuLockRegistry:
    """Per-SKU mutexes so read-validate-write sequences on one SKU never interleave.

    Locks are process-local. Keys are normalized SKUs, so "FLT-OIL-300" and
    " flt-oil-300" share a lock. An entry lives only while some thread holds
    or waits on it, so the registry stays as small as the current contention.
    """

    def __init__(self) -> None:
        # key -> [lock, holders]; holders counts threads holding or waiting
        self._locks: Dict[str, List] = {}
        self._registry_lock = threading.Lock()

    def _checkout(self, key: str) -> threading.Lock:
        with self._registry_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: str) -> None:
        with self._registry_lock:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, sku: str) -> Iterator[None]:
        key = normalize_sku(sku)
        lock = self._checkout(key)
        try:
            with lock:
                yield
        finally:
            self._checkin(key)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)
