"""
Score Aggregator

Maps user priorities to canonical labels, derives priority-adjusted weights
and combines the normalised sub-scores into one composite score.

Weights are nudged additively and deliberately NOT renormalised, so the
composite is a weighted sum rather than a convex combination.
"""

from typing import Dict, List

from .contracts import DebugMeta, ScoredCandidate
from .constants import (
    BASE_WEIGHTS,
    PRIORITY_NUDGE,
    PRIORITY_SYNONYMS,
    PRIORITY_WEIGHT_ADJUSTMENTS,
)


def map_priorities(raw_priorities: List[str]) -> List[str]:
    """Map free-text priorities to canonical labels; unknown ones pass through."""
    mapped = []
    for p in raw_priorities or []:
        text = (p or "").strip()
        if text:
            mapped.append(PRIORITY_SYNONYMS.get(text.lower(), text))
    return mapped


def adjusted_weights(priorities: List[str]) -> Dict[str, float]:
    """Base weights nudged by +/-0.05 per matched canonical label."""
    weights = dict(BASE_WEIGHTS)
    for label, directions in PRIORITY_WEIGHT_ADJUSTMENTS.items():
        if label not in priorities:
            continue
        for key, sign in directions.items():
            weights[key] = round(weights[key] + sign * PRIORITY_NUDGE, 10)
    return weights


def priority_matches(priorities: List[str], key_features: List[str]) -> List[str]:
    """Priorities found (case-insensitive substring) in any key feature."""
    features = [f.lower() for f in key_features or []]
    return [p for p in priorities if any(p.lower() in f for f in features)]


def aggregate_score(scored: ScoredCandidate, priorities: List[str],
                    weights: Dict[str, float]) -> ScoredCandidate:
    norm = scored.normalized
    matches = priority_matches(priorities, scored.university.key_features)
    feature_match_score = len(matches) / len(priorities) if priorities else 0.0

    score = (
        weights["placement"] * norm.placement_norm
        + weights["salary"] * norm.salary_norm
        + weights["ranking"] * norm.ranking_norm
        + weights["feeEfficiency"] * norm.fee_efficiency_scaled
        + weights["featureMatch"] * feature_match_score
    )

    return scored.model_copy(update={
        "score": score,
        "debug_meta": DebugMeta(
            weights=dict(weights),
            feature_match_score=feature_match_score,
            priority_matches=matches,
        ),
    })


def batch_aggregate(scored_candidates: List[ScoredCandidate],
                    raw_priorities: List[str]) -> List[ScoredCandidate]:
    """
    Score every normalised candidate for one profile.

    Args:
        scored_candidates: Output of `normalize_batch`
        raw_priorities: The profile's free-text priorities

    Returns:
        Candidates with composite `score` and `debug_meta`, input order kept
    """
    priorities = map_priorities(raw_priorities)
    weights = adjusted_weights(priorities)
    return [aggregate_score(s, priorities, weights) for s in scored_candidates]
