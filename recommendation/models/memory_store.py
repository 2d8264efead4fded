"""
In-memory store used in mock mode (USE_MOCK_STORE=1) and by the test suite.
Documents are kept in the same camelCase layout as the Mongo collection.
"""

import copy
import uuid
from typing import Any, Dict, Iterable, List, Optional

from ..logic.contracts import University, RecommendationRecord
from .base import UniversityFilter, university_from_document


class MemoryUniversityStore:

    def __init__(self, documents: Optional[Iterable[Dict[str, Any]]] = None):
        self.documents: List[Dict[str, Any]] = []
        for doc in documents or []:
            self._insert(doc)

    def _insert(self, doc: Dict[str, Any]) -> str:
        stored = copy.deepcopy(doc)
        stored.setdefault("id", uuid.uuid4().hex)
        self.documents.append(stored)
        return stored["id"]

    def _by_id(self, university_id: str) -> Optional[Dict[str, Any]]:
        for doc in self.documents:
            if doc["id"] == university_id:
                return doc
        return None

    async def find(self, filt: UniversityFilter, limit: Optional[int] = None) -> List[University]:
        found = [university_from_document(d) for d in self.documents if filt.matches(d)]
        return found[:limit] if limit else found

    async def count(self, filt: UniversityFilter) -> int:
        return sum(1 for d in self.documents if filt.matches(d))

    async def find_by_key(self, name: str, country: str) -> Optional[University]:
        for doc in self.documents:
            if doc.get("name") == name and (doc.get("location") or {}).get("country") == country:
                return university_from_document(doc)
        return None

    async def upsert_by_key(self, name: str, country: str, document: Dict[str, Any]) -> bool:
        if await self.find_by_key(name, country):
            return False
        self._insert(document)
        return True

    async def append_course(self, university_id: str, course: Dict[str, Any]) -> None:
        doc = self._by_id(university_id)
        if doc is not None:
            doc.setdefault("courses", []).append(dict(course))

    async def set_courses(self, university_id: str, courses: List[Dict[str, Any]]) -> None:
        doc = self._by_id(university_id)
        if doc is not None:
            doc["courses"] = [dict(c) for c in courses]

    async def distinct_countries(self) -> List[str]:
        seen: List[str] = []
        for doc in self.documents:
            country = (doc.get("location") or {}).get("country")
            if country and country not in seen:
                seen.append(country)
        return seen


class MemoryRecommendationLog:

    def __init__(self):
        self.records: List[RecommendationRecord] = []

    async def create(self, record: RecommendationRecord) -> str:
        self.records.append(record)
        return str(len(self.records))
