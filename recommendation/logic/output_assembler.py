"""
Output Assembler

Transforms ranked candidates and pipeline diagnostics into the final
RecommendationOutput contract.
"""

import math
from typing import List

from .contracts import (
    Diagnostics,
    IngestionFailure,
    Location,
    ModelMeta,
    RecommendationOutput,
    RecommendedUniversity,
    ScoredCandidate,
)
from .constants import TAG_COUNT


def format_location(location: Location) -> str:
    parts = [p for p in (location.city, location.state, location.country) if p]
    return ", ".join(parts)


def match_score(score: float) -> int:
    """Composite score x100, halves rounded up (12.5 -> 13, not 12)."""
    return math.floor(score * 100 + 0.5)


def to_recommended_university(scored: ScoredCandidate) -> RecommendedUniversity:
    """
    Convert a ScoredCandidate into the response item.

    `matchScore` is the composite score x100, rounded. It can exceed 100
    because weights are not renormalised and the location boost multiplies.
    """
    uni = scored.university
    return RecommendedUniversity(
        id=uni.id,
        name=uni.name,
        location=format_location(uni.location) or None,
        match_score=match_score(scored.score),
        placement_rate=uni.benchmarks.placement_percentage,
        avg_salary=uni.benchmarks.average_salary,
        annual_fee=uni.average_annual_fee,
        ranking=uni.benchmarks.ranking,
        tags=uni.key_features[:TAG_COUNT],
        key_features=list(uni.key_features),
        debug_meta=scored.debug_meta,
    )


def country_match_count(recommended: List[RecommendedUniversity], country_like: List[str]) -> int:
    """Items whose location string mentions a requested country token."""
    tokens = [c.lower() for c in country_like]
    return sum(
        1 for item in recommended
        if any(t in (item.location or "").lower() for t in tokens)
    )


def build_data_source_note(
    filtered: int,
    relaxation_steps: List[str],
    scored: int,
    returned: int,
    requested_locations: List[str],
    country_matches: int,
    ingestion_failures: List[IngestionFailure],
) -> str:
    return (
        f"Filtered {filtered} universities after relaxations "
        f"({' > '.join(relaxation_steps) or 'none'}) -> scored {scored} -> returned {returned}. "
        f"Requested locations: {', '.join(requested_locations) or 'none'}; "
        f"country matches in top: {country_matches}. "
        f"IngestionFailures: {len(ingestion_failures)}"
    )


def assemble_strict_country_output(
    country: str,
    relaxation_steps: List[str],
    requested_locations: List[str],
    country_like: List[str],
    ingestion_failures: List[IngestionFailure],
    provider: str,
    model: str,
) -> RecommendationOutput:
    """Explicit empty response when a single requested country has no matches."""
    return RecommendationOutput(
        ai_counsellor_note=(
            f"No universities for {country} matching the current field and budget yet. "
            "Try broadening budget slightly or a related field; data will auto-enrich soon."
        ),
        recommended_universities=[],
        model_meta=ModelMeta(provider=provider, model=model, strict_country=True),
        is_fallback=False,
        data_source_note=(
            f"0 results for country={country} after enrichment steps: {'>'.join(relaxation_steps)}"
        ),
        diagnostics=Diagnostics(
            relaxation_steps=list(relaxation_steps),
            requested_locations=list(requested_locations),
            country_like=list(country_like),
            country_match_count=0,
            ingestion_failures=list(ingestion_failures),
            strict_no_cross_country=True,
        ),
    )
