"""
Test cache keys and the TTL/LRU profile cache.
"""

from recommendation.logic.cache import ProfileCache, cache_key, canonical_profile
from recommendation.logic.profile_parser import parse_profile
from recommendation.tests.factories import FakeClock


def _profile(locations):
    return parse_profile({
        "interests": {"fieldOfStudy": "Engineering"},
        "preferences": {"locations": locations, "budget": 250000},
    })


def test_location_variants_share_a_cache_key():
    profile = _profile(["India", "india", " India "])

    assert canonical_profile(profile)["preferences"]["locations"] == ["india"]
    assert cache_key("u1", profile) == cache_key("u1", _profile(["INDIA"]))


def test_location_order_does_not_change_key():
    assert cache_key("u1", _profile(["Germany", "India"])) == cache_key("u1", _profile(["india", "germany"]))


def test_key_is_scoped_per_user():
    profile = _profile(["India"])
    key = cache_key("u1", profile)

    assert key.startswith("recommend:u1:")
    assert key != cache_key("u2", profile)


def test_entry_expires_at_ttl():
    clock = FakeClock()
    cache = ProfileCache(ttl_minutes=1, clock=clock)
    cache.set("k", {"aiCounsellorNote": "hi"})

    clock.advance(59)
    assert cache.get("k")["aiCounsellorNote"] == "hi"

    clock.advance(1)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_least_recently_used_entry_is_evicted():
    cache = ProfileCache(max_entries=2, clock=FakeClock())
    cache.set("a", {"v": 1})
    cache.set("b", {"v": 2})
    cache.get("a")
    cache.set("c", {"v": 3})

    assert cache.get("b") is None
    assert cache.get("a")["v"] == 1
    assert cache.get("c")["v"] == 3


def test_stored_value_is_a_snapshot():
    cache = ProfileCache(clock=FakeClock())
    value = {"recommendedUniversities": [{"name": "A"}]}
    cache.set("k", value)
    value["recommendedUniversities"].append({"name": "B"})

    entry = cache.get("k")
    entry["recommendedUniversities"].clear()

    assert cache.get("k")["recommendedUniversities"] == [{"name": "A"}]


def test_malformed_entry_is_treated_as_absent():
    cache = ProfileCache(clock=FakeClock())
    cache._entries["k"] = {"aiCounsellorNote": "no timestamp"}
    assert cache.get("k") is None
