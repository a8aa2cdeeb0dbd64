"""TTL cache expiry semantics."""
from market_data.cache import TTLCache

from tests.conftest import FakeClock


def test_hit_within_ttl():
    clock = FakeClock(1000.0)
    cache = TTLCache(ttl=15, clock=clock)
    cache.set("tickers", [1, 2, 3])

    clock.advance(14.9)
    assert cache.get("tickers") == [1, 2, 3]


def test_expires_exactly_at_ttl():
    clock = FakeClock(1000.0)
    cache = TTLCache(ttl=15, clock=clock)
    cache.set("tickers", "snapshot")

    clock.advance(15)
    assert cache.get("tickers") is None


def test_overwrite_resets_age():
    clock = FakeClock(0.0)
    cache = TTLCache(ttl=10, clock=clock)
    cache.set("k", "old")
    clock.advance(8)
    cache.set("k", "new")
    clock.advance(8)

    assert cache.get("k") == "new"


def test_missing_key_and_invalidate():
    cache = TTLCache(ttl=60, clock=FakeClock())
    assert cache.get("nope") is None

    cache.set("a", 1)
    cache.set("b", 2)
    cache.invalidate("a")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.invalidate()
    assert cache.get("b") is None
