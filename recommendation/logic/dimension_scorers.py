"""
Dimension Scorers

Per-batch min-max normalisation of the benchmark dimensions. Recomputed on
every call: the same university can score differently in another batch.
Each sub-score lies in [0, 1]; salary falls back to exactly 0.5 when every
candidate in the batch has the same salary.
"""

from typing import List, Tuple

from .contracts import University, NormalizedScores, ScoredCandidate
from .constants import DIVISION_FLOOR, DEFAULT_MAX_RANKING


def fee_efficiency(university: University) -> float:
    """Placement percentage per unit of average annual fee."""
    placement = university.benchmarks.placement_percentage or 0
    avg_fee = max(university.average_annual_fee, DIVISION_FLOOR)
    return placement / avg_fee


def batch_bounds(universities: List[University]) -> Tuple[float, float, int, float]:
    """Return (max_salary, min_salary, max_ranking, best_fee_efficiency)."""
    salaries = [u.benchmarks.average_salary or 0 for u in universities]
    rankings = [u.benchmarks.ranking or DEFAULT_MAX_RANKING for u in universities]
    efficiencies = [fee_efficiency(u) for u in universities]
    return (
        max(salaries),
        min(salaries),
        max(rankings),
        max(efficiencies + [DIVISION_FLOOR]),
    )


def normalize_university(
    university: University,
    max_salary: float,
    min_salary: float,
    max_ranking: int,
    best_fee_efficiency: float,
) -> NormalizedScores:
    bench = university.benchmarks

    placement_norm = (bench.placement_percentage or 0) / 100

    if max_salary == min_salary:
        salary_norm = 0.5
    else:
        salary_norm = ((bench.average_salary or 0) - min_salary) / (max_salary - min_salary)

    if not bench.ranking:
        ranking_norm = 0.0
    elif max_ranking <= 1:
        # Every ranked candidate is rank 1
        ranking_norm = 1.0
    else:
        ranking_norm = 1 - (bench.ranking - 1) / (max_ranking - 1)
    ranking_norm = min(max(ranking_norm, 0.0), 1.0)

    efficiency = fee_efficiency(university)
    fee_efficiency_scaled = min(efficiency / best_fee_efficiency, 1.0)

    return NormalizedScores(
        placement_norm=placement_norm,
        salary_norm=salary_norm,
        ranking_norm=ranking_norm,
        fee_efficiency_scaled=fee_efficiency_scaled,
        fee_efficiency=efficiency,
    )


def normalize_batch(universities: List[University]) -> List[ScoredCandidate]:
    """
    Attach normalised sub-scores to every university in the batch.

    Args:
        universities: Candidate batch from the filter engine

    Returns:
        ScoredCandidate list (score still 0) in input order
    """
    if not universities:
        return []
    max_salary, min_salary, max_ranking, best = batch_bounds(universities)
    return [
        ScoredCandidate(
            university=u,
            normalized=normalize_university(u, max_salary, min_salary, max_ranking, best),
        )
        for u in universities
    ]
