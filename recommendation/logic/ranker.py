"""
Ranker

Orders scored candidates, applies the requested-country boost and cuts the
final shortlist.
"""

from typing import List

from .contracts import ScoredCandidate
from .constants import LOCATION_BOOST, TOP_N


def rank_candidates(scored_candidates: List[ScoredCandidate]) -> List[ScoredCandidate]:
    """
    Rank candidates by composite score (descending).

    Equal scores are ordered by university name, then id, so results are
    reproducible regardless of store order.
    """
    return sorted(
        scored_candidates,
        key=lambda s: (-s.score, s.university.name.lower(), s.university.id or ""),
    )


def apply_location_boost(
    ranked: List[ScoredCandidate],
    country_like: List[str],
    boost: float = LOCATION_BOOST,
) -> List[ScoredCandidate]:
    """
    Multiply the score of candidates located in a requested country by
    `boost` and re-rank. No-op without country-like tokens.
    """
    if not country_like:
        return ranked
    requested = {c.lower() for c in country_like}
    boosted = []
    for scored in ranked:
        country = (scored.university.location.country or "").lower()
        if country and country in requested:
            meta = scored.debug_meta.model_copy(update={"location_boost": True})
            scored = scored.model_copy(update={"score": scored.score * boost, "debug_meta": meta})
        boosted.append(scored)
    return rank_candidates(boosted)


def select_top(ranked: List[ScoredCandidate], limit: int = TOP_N) -> List[ScoredCandidate]:
    return ranked[:limit]
