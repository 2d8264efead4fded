"""
Shared fixtures: seeded in-memory store, a deterministic cache clock and a
fully wired RecommendationService with the mock counsellor note.
"""

import pytest

from recommendation.ai.explainer import AIExplainer
from recommendation.data.seed_universities import SEED_UNIVERSITIES
from recommendation.logic.cache import ProfileCache
from recommendation.logic.engine import RecommendationService
from recommendation.models import MemoryRecommendationLog, MemoryUniversityStore
from recommendation.tests.factories import FakeClock


@pytest.fixture
def seeded_store():
    return MemoryUniversityStore(SEED_UNIVERSITIES)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recommendation_log():
    return MemoryRecommendationLog()


@pytest.fixture
def service(seeded_store, recommendation_log, clock):
    return RecommendationService(
        store=seeded_store,
        cache=ProfileCache(ttl_minutes=60, max_entries=10, clock=clock),
        explainer=AIExplainer(),
        recommendation_log=recommendation_log,
    )


@pytest.fixture
def engineering_india_profile():
    return {
        "interests": {"fieldOfStudy": "Engineering"},
        "preferences": {
            "locations": ["India"],
            "budget": 250000,
            "priorities": ["Placements"],
        },
    }
