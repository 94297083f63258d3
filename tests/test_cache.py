import pytest
from utils.cache import TTLCache, CacheKeys, create_cache_key


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ttl_cache(clock):
    return TTLCache(default_ttl=300, clock=clock)


def test_get_within_ttl(ttl_cache, clock):
    ttl_cache.set("stores", ["a"])
    clock.now += 300
    assert ttl_cache.get("stores") == ["a"]


def test_get_after_ttl_expires(ttl_cache, clock):
    ttl_cache.set("stores", ["a"])
    clock.now += 300.5
    assert ttl_cache.get("stores") is None
    assert len(ttl_cache) == 0


def test_per_entry_ttl(ttl_cache, clock):
    ttl_cache.set("short", 1, ttl=10)
    ttl_cache.set("long", 2)
    clock.now += 11
    assert ttl_cache.has("short") is False
    assert ttl_cache.has("long") is True


def test_cached_empty_list_is_a_hit(ttl_cache):
    ttl_cache.set("menus:1", [])
    assert ttl_cache.get("menus:1", "missing") == []


def test_delete_pattern(ttl_cache):
    ttl_cache.set("stores", 1)
    ttl_cache.set("user_stores:1", 2)
    ttl_cache.set("user_stores:2", 3)
    ttl_cache.set("menus:1", 4)

    removed = ttl_cache.delete_pattern(r"^user_stores:")

    assert removed == 2
    assert ttl_cache.has("stores")
    assert ttl_cache.has("menus:1")
    assert not ttl_cache.has("user_stores:1")


def test_purge_expired(ttl_cache, clock):
    ttl_cache.set("a", 1, ttl=5)
    ttl_cache.set("b", 2, ttl=50)
    clock.now += 10
    assert ttl_cache.purge_expired() == 1
    assert len(ttl_cache) == 1


def test_clear(ttl_cache):
    ttl_cache.set("a", 1)
    ttl_cache.clear()
    assert len(ttl_cache) == 0


def test_cache_keys():
    assert CacheKeys.STORES == "stores"
    assert CacheKeys.user_stores(42) == "user_stores:42"
    assert CacheKeys.menus(7) == "menus:7"
    assert create_cache_key("delivery_areas", 7) == CacheKeys.delivery_areas(7)
