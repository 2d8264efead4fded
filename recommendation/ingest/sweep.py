"""
Background enrichment sweep.

Runs independently of foreground requests; it only adds or upserts data,
so in-flight reads at worst see slightly fresher results.
"""

import asyncio
import logging
from typing import List, Optional

from ..logic.constants import SWEEP_FIELDS, FIELD_ENRICHMENT_THRESHOLD
from ..models.base import UniversityFilter
from .ingestor import UniversityIngestor

logger = logging.getLogger(__name__)


async def run_enrichment_sweep(
    ingestor: UniversityIngestor,
    max_countries: int = 10,
    fields: Optional[List[str]] = None,
) -> int:
    """
    Enrich every (country, field) pair with fewer than 5 records.

    Returns the number of ingestion calls made. Failures are logged and
    the sweep moves on to the next pair.
    """
    store = ingestor.store
    countries = (await store.distinct_countries())[:max_countries]
    calls = 0
    for country in countries:
        for field in fields or SWEEP_FIELDS:
            count = await store.count(UniversityFilter(country=country, field_of_study=field))
            if count >= FIELD_ENRICHMENT_THRESHOLD:
                continue
            try:
                await ingestor.ingest(country, field=field, force=True)
                calls += 1
                logger.info(f"🔄 Background enrichment: {country} / {field}")
            except Exception as e:
                logger.warning(f"⚠️ Background enrichment failed for {country} / {field}: {e}")
    return calls


async def enrichment_loop(ingestor: UniversityIngestor, interval_hours: float, max_countries: int = 10):
    """Run the sweep every `interval_hours` until cancelled."""
    interval_s = max(interval_hours, 0.0) * 3600
    while True:
        await asyncio.sleep(interval_s)
        try:
            await run_enrichment_sweep(ingestor, max_countries=max_countries)
        except Exception as e:
            logger.error(f"Background enrichment sweep failed: {e}")
