"""
Candidate Generator

Builds the store filter from the canonical profile, executes it and, while
the result set is below MIN_RESULTS, relaxes constraints in a fixed order:

    base -> field enrichment -> budget +10% -> drop field
         -> drop location (only without a country-like token) -> fallback any

Every applied step is recorded in `relaxation_steps`. A single explicit
country never silently widens to other countries.
"""

import logging
from typing import List

from pydantic import BaseModel, Field

from .constants import (
    MIN_RESULTS,
    BUDGET_STRETCH_FACTOR,
    FIELD_ENRICHMENT_THRESHOLD,
    STEP_BUDGET_STRETCH,
    STEP_DROP_FIELD,
    STEP_DROP_LOCATION,
    STEP_FALLBACK_ANY,
    STEP_KEPT_LOCATION,
    STEP_FIELD_ENRICHMENT_FAILED,
)
from .contracts import StudentProfile, University, IngestionFailure
from .taxonomy import country_like_tokens
from ..models.base import UniversityFilter, UniversityStore

logger = logging.getLogger(__name__)


class CandidateSet(BaseModel):
    """Outcome of filtering and relaxation, plus its diagnostics."""
    universities: List[University] = Field(default_factory=list)
    # Count after relaxation, before country pruning
    total_found: int = 0
    applied_filter: UniversityFilter = Field(default_factory=UniversityFilter)
    relaxation_steps: List[str] = Field(default_factory=list)
    requested_locations: List[str] = Field(default_factory=list)
    country_like: List[str] = Field(default_factory=list)
    ingestion_failures: List[IngestionFailure] = Field(default_factory=list)
    strict_empty: bool = False


def build_base_filter(profile: StudentProfile) -> UniversityFilter:
    prefs = profile.preferences
    return UniversityFilter(
        field_of_study=profile.interests.field_of_study or None,
        locations=[loc for loc in prefs.locations if loc],
        max_fee=prefs.budget if prefs.budget else None,
    )


def prune_to_requested_countries(
    universities: List[University],
    country_like: List[str],
) -> List[University]:
    """
    Keep only universities whose country matches a requested token
    (case-insensitive). Never prunes a non-empty set down to zero.
    """
    if not country_like:
        return universities
    requested = {c.lower() for c in country_like}
    matches = [
        u for u in universities
        if u.location.country and u.location.country.lower() in requested
    ]
    return matches if matches else universities


class CandidateGenerator:
    """Filter & relaxation engine over a UniversityStore."""

    def __init__(self, store: UniversityStore, ingestor=None,
                 enrich_on_request: bool = True, min_results: int = MIN_RESULTS):
        self.store = store
        self.ingestor = ingestor
        self.enrich_on_request = enrich_on_request
        self.min_results = min_results

    async def _query(self, filt: UniversityFilter) -> List[University]:
        found = await self.store.find(filt)
        return list(found or [])

    async def _ingest(self, result: CandidateSet, country: str, **kwargs) -> bool:
        try:
            await self.ingestor.ingest(country, **kwargs)
            return True
        except Exception as e:
            logger.warning(f"⚠️ Country ingestion failed for {country}: {e}")
            result.ingestion_failures.append(IngestionFailure(country=country, error=str(e)))
            return False

    async def _enrich_field_if_sparse(self, result: CandidateSet, profile: StudentProfile) -> bool:
        """Step 2: top up a known country that lacks the requested field."""
        field = profile.interests.field_of_study
        if self.ingestor is None or len(result.country_like) != 1 or not field:
            return False
        country = result.country_like[0]
        country_total = await self.store.count(UniversityFilter(country=country))
        field_count = await self.store.count(UniversityFilter(country=country, field_of_study=field))
        if country_total == 0 or field_count >= FIELD_ENRICHMENT_THRESHOLD:
            return False
        ok = await self._ingest(
            result, country,
            budget=profile.preferences.budget, field=field, force=True,
        )
        result.relaxation_steps.append(
            f"fieldEnrichment({field})" if ok else STEP_FIELD_ENRICHMENT_FAILED
        )
        return ok

    async def generate(self, profile: StudentProfile, force_ingest: bool = False) -> CandidateSet:
        """
        Run the filter/relaxation state machine for a canonical profile
        whose locations have already been canonicalised.
        """
        prefs = profile.preferences
        result = CandidateSet(requested_locations=[loc for loc in prefs.locations if loc])
        result.country_like = country_like_tokens(result.requested_locations)

        # Light ingestion per country-like token; the ingestor de-dupes
        if self.ingestor is not None and (self.enrich_on_request or force_ingest):
            for country in result.country_like:
                await self._ingest(
                    result, country,
                    budget=prefs.budget, field=profile.interests.field_of_study,
                    force=force_ingest,
                )

        filt = build_base_filter(profile)
        universities = await self._query(filt)
        logger.info(f"🔎 Base filter matched {len(universities)} universities")

        if await self._enrich_field_if_sparse(result, profile):
            universities = await self._query(filt)

        if len(universities) < self.min_results and prefs.budget:
            filt.max_fee = prefs.budget * BUDGET_STRETCH_FACTOR
            universities = await self._query(filt)
            result.relaxation_steps.append(STEP_BUDGET_STRETCH)

        if len(universities) < self.min_results and filt.field_of_study:
            filt.field_of_study = None
            universities = await self._query(filt)
            result.relaxation_steps.append(STEP_DROP_FIELD)

        if len(universities) < self.min_results and filt.locations:
            if not result.country_like:
                filt.locations = []
                universities = await self._query(filt)
                result.relaxation_steps.append(STEP_DROP_LOCATION)
                if len(universities) < self.min_results:
                    universities = list(await self.store.find(UniversityFilter(), limit=self.min_results))
                    result.relaxation_steps.append(STEP_FALLBACK_ANY)
            else:
                result.relaxation_steps.append(STEP_KEPT_LOCATION)

        result.applied_filter = filt
        result.total_found = len(universities)
        logger.info(
            f"📦 Candidates after relaxation: {len(universities)} "
            f"(steps: {' > '.join(result.relaxation_steps) or 'none'})"
        )

        if len(result.country_like) == 1 and not universities:
            logger.warning(f"⚠️ Strict country mode: no universities for {result.country_like[0]}")
            result.strict_empty = True
            return result

        pruned = prune_to_requested_countries(universities, result.country_like)
        if len(pruned) < len(universities):
            result.relaxation_steps.append(
                f"prunedNonRequestedCountries({len(universities)}->{len(pruned)})"
            )
        result.universities = pruned
        return result
