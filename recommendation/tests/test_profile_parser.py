"""
Test profile parsing and the field/location taxonomy.
"""

import pytest

from recommendation.logic.profile_parser import ProfileValidationError, parse_profile
from recommendation.logic.taxonomy import (
    country_like_tokens,
    is_country_like,
    map_field,
    normalize_locations,
)


def test_map_field_known_and_passthrough():
    assert map_field("computer science") == "Engineering"
    assert map_field(" Business ") == "Commerce"
    assert map_field("astronomy") == "Astronomy"
    assert map_field("") is None
    assert map_field(None) is None


def test_sentinel_location_overrides_everything():
    assert normalize_locations(["India", "anywhere", "Germany"]) == []
    assert normalize_locations(["Global"]) == []


def test_normalize_locations_aliases_and_dedupe():
    assert normalize_locations(["usa", "U.S.", "new delhi", "", None]) == ["United States", "New Delhi"]


def test_country_like_heuristic():
    assert is_country_like("India")
    assert is_country_like("United Kingdom")
    assert not is_country_like("UK")
    assert not is_country_like("Zone 7")
    assert country_like_tokens(["India", "NY"]) == ["India"]


def test_flat_profile_is_mapped_to_canonical():
    profile = parse_profile({
        "field": "cs",
        "location": "India",
        "budget": "250000",
        "priorities": "Placements",
        "gpa": 91,
    })

    assert profile.interests.field_of_study == "Engineering"
    assert profile.preferences.locations == ["India"]
    assert profile.preferences.budget == 250000
    assert profile.preferences.priorities == ["Placements"]
    assert profile.academics.grade12_score == 91


def test_nested_profile_keeps_shape():
    profile = parse_profile({
        "academics": {"board": "CBSE", "grade12Score": 88},
        "interests": {"fieldOfStudy": "medical", "courses": ["MBBS"]},
        "preferences": {"locations": ["Delhi"], "budget": 0, "priorities": []},
    })

    assert profile.academics.board == "CBSE"
    assert profile.interests.field_of_study == "Medicine"
    assert profile.interests.courses == ["MBBS"]
    # Zero budget means "no budget"
    assert profile.preferences.budget is None


def test_missing_keys_default_to_empty():
    profile = parse_profile({})
    assert profile.interests.field_of_study is None
    assert profile.preferences.locations == []
    assert profile.preferences.budget is None


@pytest.mark.parametrize("raw", [
    "not a profile",
    {"budget": "lots"},
    {"priorities": 5},
    {"interests": {}, "preferences": {"locations": 12}},
    {"gpa": 140},
])
def test_malformed_profiles_raise(raw):
    with pytest.raises(ProfileValidationError):
        parse_profile(raw)
