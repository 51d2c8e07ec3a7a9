"""Tests for the TTL entity cache."""

import threading

import pytest

from ung_bridge.cache import CacheKey, EntityCache
from ung_bridge.config.defaults import CacheParams
from ung_bridge.errors import NetworkError
from ung_bridge.models import Client, EntityType


class CountingFetch:
    """Fetch function that records how often it ran."""

    def __init__(self, records=None, error=None):
        self.records = records if records is not None else [Client(1, "Acme")]
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)


@pytest.fixture
def cache(fake_clock):
    return EntityCache(ttl_seconds=60.0, clock=fake_clock)


class TestExpiry:
    """Test TTL handling against a controlled clock."""

    def test_hit_within_ttl(self, cache, fake_clock):
        """Should serve from cache while younger than the TTL."""
        fetch = CountingFetch()
        key = CacheKey.of("client")

        first = cache.get_or_fetch(key, fetch)
        fake_clock.advance(59.9)
        second = cache.get_or_fetch(key, fetch)

        assert fetch.calls == 1
        assert first == second == [Client(1, "Acme")]

    def test_miss_at_ttl(self, cache, fake_clock):
        """Should refetch once the entry is exactly TTL old."""
        fetch = CountingFetch()
        key = CacheKey.of("client")

        cache.get_or_fetch(key, fetch)
        fake_clock.advance(60.0)
        cache.get_or_fetch(key, fetch)

        assert fetch.calls == 2

    def test_per_call_ttl(self, cache, fake_clock):
        fetch = CountingFetch()
        key = CacheKey.of("client")

        cache.get_or_fetch(key, fetch)
        fake_clock.advance(10)
        cache.get_or_fetch(key, fetch, ttl=5)

        assert fetch.calls == 2

    def test_timestamp_taken_after_fetch(self, cache, fake_clock):
        """Should age an entry from when its fetch completed."""
        key = CacheKey.of("client")

        def slow_fetch():
            fake_clock.advance(30)
            return [Client(1, "Acme")]

        cache.get_or_fetch(key, slow_fetch)
        assert cache.peek(key).captured_at == fake_clock.now

    def test_returns_copies(self, cache):
        """Should not let callers mutate the cached list."""
        key = CacheKey.of("client")
        records = cache.get_or_fetch(key, CountingFetch())
        records.clear()

        assert cache.get_or_fetch(key, CountingFetch()) == [Client(1, "Acme")]


class TestFailures:
    """Test that failures are never cached."""

    def test_error_propagates_and_is_not_stored(self, cache):
        key = CacheKey.of("invoice")
        failing = CountingFetch(error=NetworkError("connection refused"))

        with pytest.raises(NetworkError):
            cache.get_or_fetch(key, failing)

        assert cache.peek(key) is None
        assert len(cache) == 0

    def test_stale_entry_survives_failed_refetch(self, cache, fake_clock):
        key = CacheKey.of("invoice")
        cache.get_or_fetch(key, CountingFetch())
        fake_clock.advance(120)

        with pytest.raises(NetworkError):
            cache.get_or_fetch(key, CountingFetch(error=NetworkError("down")))

        assert cache.peek(key) is not None


class TestRefresh:
    """Test invalidation granularity."""

    def fill(self, cache):
        for key in (
            CacheKey.of("invoice"),
            CacheKey.of("invoice", "status=paid"),
            CacheKey.of("client"),
            CacheKey.of("dashboard"),
        ):
            cache.get_or_fetch(key, CountingFetch())

    def test_refresh_scope(self, cache):
        self.fill(cache)
        assert cache.refresh(EntityType.INVOICE, "status=paid") == 1
        assert cache.peek(CacheKey.of("invoice")) is not None

    def test_refresh_type_drops_all_scopes(self, cache):
        self.fill(cache)
        assert cache.refresh("invoice") == 2
        assert len(cache) == 2

    def test_refresh_all(self, cache):
        self.fill(cache)
        assert cache.refresh() == 4
        assert len(cache) == 0

    def test_next_read_fetches(self, cache):
        key = CacheKey.of("client")
        fetch = CountingFetch()
        cache.get_or_fetch(key, fetch)
        cache.refresh(EntityType.CLIENT)
        cache.get_or_fetch(key, fetch)
        assert fetch.calls == 2


class TestDisabled:
    """Test pass-through mode."""

    def test_always_fetches(self, fake_clock):
        cache = EntityCache.from_params(CacheParams(enabled=False), clock=fake_clock)
        fetch = CountingFetch()
        key = CacheKey.of("client")

        cache.get_or_fetch(key, fetch)
        cache.get_or_fetch(key, fetch)

        assert fetch.calls == 2
        assert len(cache) == 0


class TestConcurrentMisses:
    """Test that simultaneous readers of one key share a fetch."""

    def test_concurrent_readers_fetch_once(self, cache):
        """Should invoke the tool once when several panels load together."""
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_fetch():
            calls.append(1)
            started.set()
            release.wait(5)
            return [Client(1, "Acme")]

        key = CacheKey.of("invoice")
        results = []

        def reader():
            results.append(cache.get_or_fetch(key, slow_fetch))

        first = threading.Thread(target=reader)
        first.start()
        assert started.wait(5)

        others = [threading.Thread(target=reader) for _ in range(2)]
        for thread in others:
            thread.start()
        release.set()
        for thread in [first, *others]:
            thread.join(5)

        assert len(calls) == 1
        assert results == [[Client(1, "Acme")]] * 3

    def test_failed_fetch_clears_in_flight_marker(self, cache):
        """Should let the next reader fetch again after a failure."""
        key = CacheKey.of("invoice")

        with pytest.raises(NetworkError):
            cache.get_or_fetch(key, CountingFetch(error=NetworkError("down")))

        fetch = CountingFetch()
        assert cache.get_or_fetch(key, fetch) == [Client(1, "Acme")]
        assert fetch.calls == 1

    def test_refresh_during_fetch_discards_result(self, cache):
        """Should not store records fetched before an invalidation."""
        key = CacheKey.of("invoice")

        def fetch_then_invalidate():
            cache.refresh(EntityType.INVOICE)
            return [Client(1, "Acme")]

        assert cache.get_or_fetch(key, fetch_then_invalidate) == [Client(1, "Acme")]
        assert cache.peek(key) is None
