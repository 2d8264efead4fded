# Store collaborators for the recommendation engine
from .base import (
    UniversityFilter,
    UniversityStore,
    RecommendationLog,
    university_from_document,
)
from .memory_store import MemoryUniversityStore, MemoryRecommendationLog
from .mongo_store import MongoUniversityStore, MongoRecommendationLog

__all__ = [
    "UniversityFilter",
    "UniversityStore",
    "RecommendationLog",
    "university_from_document",
    "MemoryUniversityStore",
    "MemoryRecommendationLog",
    "MongoUniversityStore",
    "MongoRecommendationLog",
]
