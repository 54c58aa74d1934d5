"""Get-or-create store for contract bindings shared across jobs.

Entries are immutable once created and creation is idempotent, so concurrent
jobs may use the cache without locking. A duplicate creation racing another
only wastes the work of building the binding.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class BindingCache(Generic[K, V]):
    """Keyed memoization of bindings (e.g., contracts by address)."""

    def __init__(self) -> None:
        self._entries: dict[K, V] = {}

    def get_or_create(self, key: K, factory: Callable[[K], V]) -> V:
        """Return the cached binding for ``key``, creating it on first use.

        :param key: Cache key, already normalized by the caller.
        :param factory: Callable building the binding from the key.
        :returns: Cached or newly created binding.
        """
        entry = self._entries.get(key)
        if entry is None:
            entry = factory(key)
            self._entries.setdefault(key, entry)
            logger.debug(f"Created binding for {key}")
        return self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
