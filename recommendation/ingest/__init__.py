"""
Ingestion Module

On-demand and periodic enrichment of the university store.
"""

from .ingestor import UniversityIngestor, IngestResult, IngestionError
from .sweep import run_enrichment_sweep, enrichment_loop

__all__ = [
    "UniversityIngestor",
    "IngestResult",
    "IngestionError",
    "run_enrichment_sweep",
    "enrichment_loop",
]
