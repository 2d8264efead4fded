"""
Store contracts shared by the Mongo and in-memory implementations.

`UniversityFilter` is the query expression the filter engine mutates while
relaxing constraints. It renders itself as a MongoDB query and can evaluate
a stored document directly, with the same array semantics Mongo applies to
dotted paths into `courses` (each condition may match a different course).
"""

from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from ..logic.contracts import University, RecommendationRecord


class UniversityFilter(BaseModel):
    field_of_study: Optional[str] = None
    # Disjunction across country/state/city, country first
    locations: List[str] = Field(default_factory=list)
    max_fee: Optional[float] = None
    # Exact country equality, used by count checks and ingestion
    country: Optional[str] = None

    def to_query(self) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if self.field_of_study:
            query["courses.field"] = self.field_of_study
        if self.country:
            query["location.country"] = self.country
        if self.locations:
            query["$or"] = [
                {"location.country": {"$in": list(self.locations)}},
                {"location.state": {"$in": list(self.locations)}},
                {"location.city": {"$in": list(self.locations)}},
            ]
        if self.max_fee is not None:
            query["courses.annualFee"] = {"$lte": self.max_fee}
        return query

    def matches(self, doc: Dict[str, Any]) -> bool:
        location = doc.get("location") or {}
        courses = doc.get("courses") or []
        if self.field_of_study and not any(
            c.get("field") == self.field_of_study for c in courses
        ):
            return False
        if self.country and location.get("country") != self.country:
            return False
        if self.locations and not any(
            location.get(key) in self.locations for key in ("country", "state", "city")
        ):
            return False
        if self.max_fee is not None and not any(
            (c.get("annualFee") is not None and c.get("annualFee") <= self.max_fee)
            for c in courses
        ):
            return False
        return True


def university_from_document(doc: Dict[str, Any]) -> University:
    """Build a University from a stored (camelCase) document."""
    data = dict(doc)
    raw_id = data.pop("_id", None)
    if raw_id is not None and not data.get("id"):
        data["id"] = str(raw_id)
    data["keyFeatures"] = data.get("keyFeatures") or []
    data["courses"] = data.get("courses") or []
    data["benchmarks"] = data.get("benchmarks") or {}
    data["location"] = data.get("location") or {}
    return University.model_validate(data)


class UniversityStore(Protocol):
    async def find(self, filt: UniversityFilter, limit: Optional[int] = None) -> List[University]:
        ...

    async def count(self, filt: UniversityFilter) -> int:
        ...

    async def find_by_key(self, name: str, country: str) -> Optional[University]:
        ...

    async def upsert_by_key(self, name: str, country: str, document: Dict[str, Any]) -> bool:
        """Insert `document` unless (name, country) exists. Returns True if created."""
        ...

    async def append_course(self, university_id: str, course: Dict[str, Any]) -> None:
        ...

    async def set_courses(self, university_id: str, courses: List[Dict[str, Any]]) -> None:
        ...

    async def distinct_countries(self) -> List[str]:
        ...


class RecommendationLog(Protocol):
    async def create(self, record: RecommendationRecord) -> str:
        ...
