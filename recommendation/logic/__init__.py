"""
Recommendation Logic Module

Deterministic pipeline for university recommendations: profile parsing,
filtering with relaxation, normalisation, weighted scoring and ranking.

The orchestrator lives in `recommendation.logic.engine`; it is not
re-exported here because it depends on the store and AI packages.
"""

from .contracts import (
    StudentProfile,
    University,
    ScoredCandidate,
    RecommendedUniversity,
    RecommendationOutput,
    RecommendationRequest,
    PreviewOutput,
)
from .profile_parser import parse_profile, ProfileValidationError
from .taxonomy import map_field, normalize_locations, is_country_like

__all__ = [
    # Contracts
    "StudentProfile",
    "University",
    "ScoredCandidate",
    "RecommendedUniversity",
    "RecommendationOutput",
    "RecommendationRequest",
    "PreviewOutput",

    # Parsing
    "parse_profile",
    "ProfileValidationError",
    "map_field",
    "normalize_locations",
    "is_country_like",
]
