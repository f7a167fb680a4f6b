"""
Thread-safe cache of observed credential balances.

Bounded LRU keyed by canonical address. Entries never expire by time; a
stale balance is an accepted tradeoff in exchange for fewer ledger reads.
"""
import logging
import threading
from typing import Tuple

from cachetools import LRUCache

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100


class BalanceCache:
    """Address -> balance cache shared by every request of the process."""

    def __init__(self, maxsize: int = DEFAULT_CAPACITY):
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self.maxsize = maxsize
        self._cache: LRUCache = LRUCache(maxsize=maxsize)
        self._lock = threading.RLock()

    def get(self, address: str) -> Tuple[int, bool]:
        """
        Look up a cached balance without touching the ledger.

        Args:
            address: Canonical (checksummed) address

        Returns:
            (balance, True) on a hit, (0, False) on a miss
        """
        with self._lock:
            try:
                return self._cache[address], True
            except KeyError:
                return 0, False

    def put(self, address: str, balance: int) -> None:
        """
        Insert or overwrite a balance, evicting the least recently used
        entry when the cache is full.
        """
        if balance < 0:
            raise ValueError("balance must be non-negative")
        with self._lock:
            self._cache[address] = balance
        logger.debug(f"Cached balance {balance} for {address}")

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __contains__(self, address: object) -> bool:
        # LRUCache.__contains__ does not update recency
        with self._lock:
            return address in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
