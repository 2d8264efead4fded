"""
University Ingestor

On-demand enrichment of the university store for a country (and field):
fetches public university listings for the country and upserts them with
placeholder benchmarks so the scoring engine has something to work with.
Placeholder benchmarks are randomised within fixed bands and are NOT
authoritative data.

Countries that are already well populated skip the fetch; instead the
requested field is back-filled onto existing records that lack it.
"""

import logging
import random
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

from ..logic.constants import (
    POPULATED_COUNTRY_THRESHOLD,
    FIELD_ENRICHMENT_THRESHOLD,
    INGEST_MAX_RESULTS,
    DEFAULT_BASE_FEE,
    MIN_SYNTHETIC_FEE,
    DEFAULT_INGEST_FIELD,
    INGESTED_KEY_FEATURES,
)
from ..logic.taxonomy import map_field
from ..models.base import UniversityFilter, UniversityStore

logger = logging.getLogger(__name__)


class IngestionError(ValueError):
    """Raised for unusable ingestion input (e.g. blank country)."""


class IngestResult(BaseModel):
    ingested: int = 0
    skipped: bool = False
    enriched: Optional[int] = None


class UniversityIngestor:

    def __init__(
        self,
        store: UniversityStore,
        source_url: str = "http://universities.hipolabs.com/search",
        timeout_s: float = 8.0,
        client: Optional[httpx.AsyncClient] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.source_url = source_url
        self.timeout_s = timeout_s
        self.client = client
        self.rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Fee / benchmark synthesis
    # ------------------------------------------------------------------

    def _base_fee(self, budget: Optional[float]) -> float:
        if budget:
            return min(budget * 0.8, budget)
        return DEFAULT_BASE_FEE

    def _synthetic_fee(self, budget: Optional[float]) -> int:
        # 75%-115% of base, never below the floor
        return max(MIN_SYNTHETIC_FEE, round(self._base_fee(budget) * self.rng.uniform(0.75, 1.15)))

    def _placeholder_benchmarks(self) -> Dict[str, Any]:
        return {
            "placementPercentage": 70 + round(self.rng.random() * 20),
            "averageSalary": 600000 + round(self.rng.random() * 300000),
            "ranking": 40 + round(self.rng.random() * 120),
        }

    def _build_document(self, listing: Dict[str, Any], country: str, field: str,
                        budget: Optional[float]) -> Dict[str, Any]:
        region = listing.get("state-province") or ""
        return {
            "name": listing["name"].strip(),
            "location": {"city": region, "state": region, "country": country},
            "courses": [{"name": field, "field": field, "annualFee": self._synthetic_fee(budget)}],
            "benchmarks": self._placeholder_benchmarks(),
            "type": "academics-focused",
            "keyFeatures": list(INGESTED_KEY_FEATURES),
        }

    # ------------------------------------------------------------------
    # External listing fetch
    # ------------------------------------------------------------------

    async def fetch_listings(self, country: str) -> List[Dict[str, Any]]:
        params = {"country": country}
        if self.client is not None:
            resp = await self.client.get(self.source_url, params=params, timeout=self.timeout_s)
        else:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                resp = await client.get(self.source_url, params=params)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, list):
            return []
        return [u for u in data[:INGEST_MAX_RESULTS] if isinstance(u, dict) and u.get("name")]

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def backfill_field(self, country: str, field: str, budget: Optional[float]) -> int:
        """Append a course in `field` to existing records until 5 carry it."""
        field_count = await self.store.count(UniversityFilter(country=country, field_of_study=field))
        if field_count >= FIELD_ENRICHMENT_THRESHOLD:
            return 0
        need = FIELD_ENRICHMENT_THRESHOLD - field_count
        carriers = [
            u for u in await self.store.find(UniversityFilter(country=country))
            if u.id and not any(c.field == field for c in u.courses)
        ][:need]
        for uni in carriers:
            course = {"name": field, "field": field, "annualFee": self._synthetic_fee(budget)}
            await self.store.append_course(uni.id, course)
        if carriers:
            logger.info(f"🧩 Field enrichment added {field} to {len(carriers)} universities in {country}")
        return len(carriers)

    async def ingest(
        self,
        country: str,
        budget: Optional[float] = None,
        field: Optional[str] = None,
        force: bool = False,
    ) -> IngestResult:
        """
        Ingest universities for `country`.

        Returns IngestResult(ingested=0) when the source has no listings;
        transport errors from the listing fetch propagate to the caller.

        Raises:
            IngestionError: country is blank
        """
        country = (country or "").strip()
        if not country:
            raise IngestionError("country required")
        budget = budget if isinstance(budget, (int, float)) and budget > 0 else None
        canonical_field = map_field(field) or DEFAULT_INGEST_FIELD

        existing_count = await self.store.count(UniversityFilter(country=country))
        if existing_count > POPULATED_COUNTRY_THRESHOLD:
            enriched = await self.backfill_field(country, canonical_field, budget)
            logger.info(
                f"⏭️ Skipping primary ingestion for {country} "
                f"(existing={existing_count}, enriched={enriched}, force={force})"
            )
            return IngestResult(ingested=0, skipped=True, enriched=enriched)

        listings = await self.fetch_listings(country)
        ingested = 0
        for listing in listings:
            doc = self._build_document(listing, country, canonical_field, budget)
            existing = await self.store.find_by_key(doc["name"], country)
            if existing is None:
                if await self.store.upsert_by_key(doc["name"], country, doc):
                    ingested += 1
            elif budget and existing.id and existing.average_annual_fee > budget * 1.2:
                # Pull overly expensive fees back to ~85%-110% of budget
                courses = [
                    {**c.to_wire(), "annualFee": round(budget * self.rng.uniform(0.85, 1.10))}
                    for c in existing.courses
                ]
                await self.store.set_courses(existing.id, courses)

        logger.info(f"📥 Ingestion complete for {country}: {ingested} new universities")
        return IngestResult(ingested=ingested, skipped=False)
