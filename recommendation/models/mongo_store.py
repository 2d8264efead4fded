from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection

from ..logic.contracts import University, RecommendationRecord
from .base import UniversityFilter, university_from_document


def _object_id(value: str):
    return ObjectId(value) if ObjectId.is_valid(value) else value


class MongoUniversityStore:
    """University store backed by a motor collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def find(self, filt: UniversityFilter, limit: Optional[int] = None) -> List[University]:
        cursor = self.collection.find(filt.to_query())
        if limit:
            cursor = cursor.limit(limit)
        docs = await cursor.to_list(length=None)
        return [university_from_document(d) for d in docs]

    async def count(self, filt: UniversityFilter) -> int:
        return await self.collection.count_documents(filt.to_query())

    async def find_by_key(self, name: str, country: str) -> Optional[University]:
        doc = await self.collection.find_one({"name": name, "location.country": country})
        return university_from_document(doc) if doc else None

    async def upsert_by_key(self, name: str, country: str, document: Dict[str, Any]) -> bool:
        result = await self.collection.update_one(
            {"name": name, "location.country": country},
            {"$setOnInsert": document},
            upsert=True,
        )
        return result.upserted_id is not None

    async def append_course(self, university_id: str, course: Dict[str, Any]) -> None:
        await self.collection.update_one(
            {"_id": _object_id(university_id)},
            {"$push": {"courses": course}},
        )

    async def set_courses(self, university_id: str, courses: List[Dict[str, Any]]) -> None:
        await self.collection.update_one(
            {"_id": _object_id(university_id)},
            {"$set": {"courses": courses}},
        )

    async def distinct_countries(self) -> List[str]:
        values = await self.collection.distinct("location.country")
        return [v for v in values if v]


class MongoRecommendationLog:
    """Append-only audit trail of non-cached recommendations."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def create(self, record: RecommendationRecord) -> str:
        doc = record.model_dump(by_alias=True)
        doc["universityIds"] = [_object_id(i) for i in record.university_ids]
        result = await self.collection.insert_one(doc)
        return str(result.inserted_id)
