"""TTL cache of parsed records keyed by entity type and query scope."""

import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Optional, Union

from ..config.defaults import CacheParams
from ..logging import get_logger
from ..models import EntityType, Record


@dataclass(frozen=True)
class CacheKey:
    """Entity type plus an optional canonical filter string."""
    entity_type: EntityType
    scope: Optional[str] = None

    @classmethod
    def of(cls, entity_type: Union[EntityType, str], scope: Optional[str] = None) -> "CacheKey":
        return cls(EntityType(entity_type), scope)


@dataclass(frozen=True)
class CacheEntry:
    """Records captured at a monotonic timestamp."""
    records: tuple[Record, ...]
    captured_at: float


class EntityCache:
    """
    In-memory cache of list results.

    Entries are stored with the time the fetch completed; a lookup is a
    hit while now - captured_at < ttl. Failed fetches are never stored.
    Concurrent misses on one key share a single fetch.
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = ttl_seconds
        self.enabled = enabled
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._pending: dict[CacheKey, Future] = {}
        self._lock = threading.Lock()
        self.logger = get_logger(__name__)

    @classmethod
    def from_params(cls, params: CacheParams, clock: Callable[[], float] = time.monotonic) -> "EntityCache":
        """Create a cache from configuration parameters."""
        return cls(ttl_seconds=params.ttl_seconds, enabled=params.enabled, clock=clock)

    def get_or_fetch(
        self,
        key: CacheKey,
        fetch_fn: Callable[[], list[Record]],
        ttl: Optional[float] = None
    ) -> list[Record]:
        """
        Return cached records for a key, fetching on miss or expiry.

        Args:
            key: Entity type and scope
            fetch_fn: Produces fresh records; its exceptions propagate
            ttl: Per-call TTL in seconds, the cache default if None

        Returns:
            A new list of records for the key
        """
        if not self.enabled:
            return list(fetch_fn())

        ttl = self.ttl_seconds if ttl is None else ttl

        with self._lock:
            entry = self._entries.get(key)
            now = self._clock()
            fresh = entry is not None and now - entry.captured_at < ttl
            pending = None if fresh else self._pending.get(key)
            owner = not fresh and pending is None
            if owner:
                pending = Future()
                self._pending[key] = pending

        if fresh:
            self.logger.debug(
                "Cache hit",
                entity_type=key.entity_type.value,
                scope=key.scope,
                age_seconds=round(now - entry.captured_at, 3)
            )
            return list(entry.records)

        if not owner:
            # Another caller is already fetching this key
            self.logger.debug("Waiting for in-flight fetch", entity_type=key.entity_type.value, scope=key.scope)
            return list(pending.result())

        self.logger.debug(
            "Cache miss",
            entity_type=key.entity_type.value,
            scope=key.scope,
            expired=entry is not None
        )

        try:
            records = tuple(fetch_fn())
        except BaseException as e:
            with self._lock:
                if self._pending.get(key) is pending:
                    del self._pending[key]
            pending.set_exception(e)
            raise

        with self._lock:
            # A refresh while fetching drops the pending marker; the result is then not stored
            if self._pending.get(key) is pending:
                del self._pending[key]
                self._entries[key] = CacheEntry(records=records, captured_at=self._clock())

        pending.set_result(records)
        return list(records)

    def peek(self, key: CacheKey) -> Optional[CacheEntry]:
        """Get the stored entry for a key regardless of age."""
        with self._lock:
            return self._entries.get(key)

    def refresh(
        self,
        entity_type: Optional[Union[EntityType, str]] = None,
        scope: Optional[str] = None
    ) -> int:
        """
        Invalidate entries so the next read fetches.

        With no arguments everything is dropped; with an entity type every
        scope of that type is dropped unless a scope is also given.

        Returns:
            Number of entries removed
        """
        with self._lock:
            if entity_type is None:
                removed = len(self._entries)
                self._entries.clear()
                self._pending.clear()
            else:
                entity_type = EntityType(entity_type)

                def matches(key: CacheKey) -> bool:
                    return key.entity_type is entity_type and (scope is None or key.scope == scope)

                doomed = [key for key in self._entries if matches(key)]
                for key in doomed:
                    del self._entries[key]
                for key in [key for key in self._pending if matches(key)]:
                    del self._pending[key]
                removed = len(doomed)

        self.logger.debug(
            "Cache invalidated",
            entity_type=entity_type.value if entity_type is not None else None,
            scope=scope,
            removed=removed
        )
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
