"""
Test the filter and relaxation engine.
"""

from unittest.mock import AsyncMock

import httpx

from recommendation.ingest.ingestor import IngestResult
from recommendation.logic.candidate_generator import CandidateGenerator, prune_to_requested_countries
from recommendation.logic.contracts import University
from recommendation.logic.profile_parser import parse_profile
from recommendation.logic.taxonomy import normalize_locations
from recommendation.models import MemoryUniversityStore, UniversityFilter
from recommendation.tests.factories import make_university


def _profile(field=None, locations=None, budget=None):
    profile = parse_profile({
        "interests": {"fieldOfStudy": field},
        "preferences": {"locations": locations or [], "budget": budget},
    })
    profile.preferences.locations = normalize_locations(profile.preferences.locations)
    return profile


def _mixed_store():
    docs = [make_university(f"German {i}", country="Germany") for i in range(3)]
    docs += [make_university(f"Indian {i}", country="India") for i in range(6)]
    return MemoryUniversityStore(docs)


def test_filter_renders_mongo_query():
    query = UniversityFilter(field_of_study="Engineering", locations=["India"], max_fee=1000).to_query()

    assert query["courses.field"] == "Engineering"
    assert query["courses.annualFee"] == {"$lte": 1000}
    assert {"location.country": {"$in": ["India"]}} in query["$or"]


async def test_enough_results_need_no_relaxation(seeded_store):
    result = await CandidateGenerator(seeded_store).generate(
        _profile("Engineering", ["India"], 250000)
    )

    assert result.relaxation_steps == []
    assert len(result.universities) == 5


async def test_single_country_never_widens_to_other_countries():
    result = await CandidateGenerator(_mixed_store()).generate(
        _profile("Engineering", ["Germany"])
    )

    assert len(result.universities) == 3
    assert {u.location.country for u in result.universities} == {"Germany"}
    assert "dropLocation" not in result.relaxation_steps
    assert "fallbackAny" not in result.relaxation_steps
    assert result.relaxation_steps[-1] == "keptLocation(strictCountry)"


async def test_city_location_is_dropped_then_falls_back_to_any():
    store = MemoryUniversityStore([make_university("Only", country="India", city="Pune", field="Arts")])
    result = await CandidateGenerator(store).generate(_profile("Law", ["NY"], 1000))

    assert result.relaxation_steps == ["budget+10%", "dropField", "dropLocation", "fallbackAny"]
    assert [u.name for u in result.universities] == ["Only"]


async def test_strict_country_with_no_matches_returns_empty():
    result = await CandidateGenerator(_mixed_store()).generate(_profile("Engineering", ["Canada"]))

    assert result.strict_empty is True
    assert result.universities == []


async def test_mixed_countries_are_pruned_to_requested_ones():
    store = _mixed_store()
    await store.upsert_by_key(
        "Georgia Tech", "United States",
        make_university("Georgia Tech", country="United States", state="Georgia"),
    )
    result = await CandidateGenerator(store).generate(
        _profile("Engineering", ["Georgia", "Germany"])
    )

    # "Georgia" matched a state, so the US record is pruned afterwards
    assert "prunedNonRequestedCountries(4->3)" in result.relaxation_steps
    assert {u.location.country for u in result.universities} == {"Germany"}


def test_pruning_never_empties_a_non_empty_set():
    universities = [University.model_validate(make_university("A", country="India"))]
    assert prune_to_requested_countries(universities, ["Germany"]) == universities


async def test_ingestion_failures_are_recorded_and_pipeline_continues(seeded_store):
    ingestor = AsyncMock()
    ingestor.ingest.side_effect = httpx.ConnectError("unreachable")

    result = await CandidateGenerator(seeded_store, ingestor=ingestor).generate(
        _profile("Engineering", ["India"], 250000)
    )

    assert [f.country for f in result.ingestion_failures] == ["India"]
    assert "unreachable" in result.ingestion_failures[0].error
    assert len(result.universities) == 5


async def test_sparse_field_triggers_enrichment_and_requery():
    store = MemoryUniversityStore(
        [make_university(f"Arts {i}", country="India", field="Arts") for i in range(4)]
        + [make_university("Science 0", country="India", field="Science")]
    )

    async def fake_ingest(country, budget=None, field=None, force=False):
        if force and field == "Science":
            for i in range(1, 5):
                await store.upsert_by_key(
                    f"Science {i}", country, make_university(f"Science {i}", country, field=field)
                )
        return IngestResult(ingested=4)

    ingestor = AsyncMock()
    ingestor.ingest.side_effect = fake_ingest

    result = await CandidateGenerator(store, ingestor=ingestor, enrich_on_request=False).generate(
        _profile("Science", ["India"])
    )

    assert result.relaxation_steps == ["fieldEnrichment(Science)"]
    assert len(result.universities) == 5
    ingestor.ingest.assert_awaited_once_with("India", budget=None, field="Science", force=True)


def _budget_store(extra_fee):
    docs = [make_university(f"In Budget {i}", country="India", fee=100000) for i in range(4)]
    docs.append(make_university("Slightly Over", country="India", fee=extra_fee))
    return MemoryUniversityStore(docs)


async def test_budget_stretch_admits_record_within_ten_percent():
    result = await CandidateGenerator(_budget_store(108000)).generate(
        _profile("Engineering", ["India"], 100000)
    )

    assert result.relaxation_steps == ["budget+10%"]
    assert "Slightly Over" in [u.name for u in result.universities]
    assert result.applied_filter.max_fee == 100000 * 1.1


async def test_budget_stretch_still_excludes_record_beyond_ten_percent():
    result = await CandidateGenerator(_budget_store(112000)).generate(
        _profile("Engineering", ["India"], 100000)
    )

    assert result.relaxation_steps == ["budget+10%", "dropField", "keptLocation(strictCountry)"]
    assert "Slightly Over" not in [u.name for u in result.universities]
    assert len(result.universities) == 4
