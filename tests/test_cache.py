"""Unit tests for the shared TtlCache."""
from data.cache import GLOBAL_LAST_WRITE, CacheEntry, CacheKey, TtlCache


class TestFreshness:
    def test_fresh_value_is_served(self, cache):
        """A value set just now is returned."""
        cache.set(CacheKey.COMPANY_LIST, ["acme"])
        assert cache.get(CacheKey.COMPANY_LIST) == ["acme"]

    def test_value_expires_at_duration(self, cache, clock):
        """Freshness is now - timestamp < duration, so the boundary itself is stale."""
        cache.set(CacheKey.COMPANY_LIST, ["acme"])
        clock.advance(299.9)
        assert cache.get(CacheKey.COMPANY_LIST) == ["acme"]
        clock.advance(0.1)
        assert cache.get(CacheKey.COMPANY_LIST) is None

    def test_is_fresh_with_explicit_now(self, cache):
        """is_fresh accepts an explicit clock reading."""
        entry = CacheEntry(data=[], timestamp=100.0)
        assert cache.is_fresh(entry, now=399.0)
        assert not cache.is_fresh(entry, now=400.0)

    def test_missing_key_returns_none(self, cache):
        """An unset key reads as None."""
        assert cache.get(CacheKey.USERS) is None

    def test_peek_ignores_age(self, cache, clock):
        """peek returns an expired value that get refuses."""
        cache.set(CacheKey.INTERACTIONS, ["old"])
        clock.advance(10_000)
        assert cache.get(CacheKey.INTERACTIONS) is None
        assert cache.peek(CacheKey.INTERACTIONS) == ["old"]

    def test_empty_list_is_a_cached_value(self, cache):
        """An empty result is cached, not treated as a miss."""
        cache.set(CacheKey.OPPORTUNITIES, [])
        assert cache.get(CacheKey.OPPORTUNITIES) == []


class TestInvalidation:
    def test_invalidate_single_key(self, cache):
        """Invalidating one key leaves the others alone."""
        cache.set(CacheKey.COMPANY_LIST, ["acme"])
        cache.set(CacheKey.CONTACTS, ["amy"])
        cache.invalidate(CacheKey.COMPANY_LIST)
        assert cache.get(CacheKey.COMPANY_LIST) is None
        assert cache.get(CacheKey.CONTACTS) == ["amy"]

    def test_invalidate_all_keeps_last_write_stamp(self, cache, clock):
        """Clearing everything keeps the last-write stamp."""
        cache.set(CacheKey.COMPANY_LIST, ["acme"])
        cache.mark_write()
        cache.invalidate(None)
        assert cache.get(CacheKey.COMPANY_LIST) is None
        assert cache.last_write_at == clock.now

    def test_invalidate_many(self, cache):
        """invalidate_many drops only the keys it is given."""
        cache.set(CacheKey.CONTACTS, [1])
        cache.set(CacheKey.CONTACT_LIST, [2])
        cache.set(CacheKey.USERS, [3])
        cache.invalidate_many([CacheKey.CONTACTS, CacheKey.CONTACT_LIST])
        assert cache.get(CacheKey.CONTACTS) is None
        assert cache.get(CacheKey.CONTACT_LIST) is None
        assert cache.get(CacheKey.USERS) == [3]

    def test_invalidate_unknown_key_is_noop(self, cache):
        """Invalidating an unset key does nothing."""
        cache.invalidate(CacheKey.MARKET_PRODUCTS)
        assert cache.get(CacheKey.MARKET_PRODUCTS) is None


class TestLastWrite:
    def test_zero_before_any_write(self, cache):
        """last_write_at starts at zero."""
        assert cache.last_write_at == 0

    def test_mark_write_records_clock(self, cache, clock):
        """mark_write stores the current clock reading."""
        clock.advance(42)
        cache.mark_write()
        assert cache.last_write_at == clock.now

    def test_reserved_key_name(self):
        """The last-write stamp lives under its reserved key."""
        cache = TtlCache(duration=1.0, clock=lambda: 5.0)
        cache.mark_write()
        assert GLOBAL_LAST_WRITE in cache._entries
