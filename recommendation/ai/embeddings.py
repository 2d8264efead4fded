"""
Optional embedding rerank.

Re-orders the shortlist by cosine similarity between a profile query
vector and one vector per candidate. Any failure keeps the incoming order.
"""

import logging
import math
from typing import List, Optional

import openai

from ..logic.contracts import ScoredCandidate, StudentProfile

logger = logging.getLogger(__name__)


def cosine(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / (norm or 1)


def build_profile_query(profile: StudentProfile) -> str:
    parts = []
    if profile.academics.grade12_score:
        parts.append(f"grade:{profile.academics.grade12_score:g}")
    if profile.interests.field_of_study:
        parts.append(f"field:{profile.interests.field_of_study}")
    if profile.preferences.priorities:
        parts.append(f"priorities:{','.join(profile.preferences.priorities)}")
    if profile.preferences.locations:
        parts.append(f"loc:{','.join(profile.preferences.locations)}")
    return " | ".join(parts)


def candidate_text(scored: ScoredCandidate) -> str:
    uni = scored.university
    return " ".join([uni.name, uni.location.city, uni.location.state, *uni.key_features[:3]])


class EmbeddingReranker:
    def __init__(self, enabled: bool = False, api_key: str = "",
                 model: str = "text-embedding-3-small",
                 client: Optional[openai.AsyncOpenAI] = None):
        self.enabled = enabled
        self.model = model
        self.client = client
        if self.enabled and self.client is None and api_key:
            self.client = openai.AsyncOpenAI(api_key=api_key)

    async def embed(self, texts: List[str]) -> List[List[float]]:
        if not self.enabled or self.client is None:
            return []
        try:
            response = await self.client.embeddings.create(model=self.model, input=texts)
            return [list(item.embedding) for item in response.data]
        except Exception as e:
            # Malformed payloads and client bugs skip the rerank like provider errors
            logger.warning(f"⚠️ Embedding failed: {e}")
            return []

    async def rerank(self, profile: StudentProfile,
                     ranked: List[ScoredCandidate]) -> List[ScoredCandidate]:
        if not self.enabled or len(ranked) < 2:
            return ranked

        texts = [build_profile_query(profile)] + [candidate_text(s) for s in ranked]
        vectors = await self.embed(texts)
        if len(vectors) != len(texts):
            logger.info("Embedding rerank skipped, keeping score order")
            return ranked

        query = vectors[0]
        rescored = []
        for scored, vector in zip(ranked, vectors[1:]):
            meta = scored.debug_meta.model_copy(update={"embed_score": cosine(query, vector)})
            rescored.append(scored.model_copy(update={"debug_meta": meta}))
        # Stable sort keeps score order among equal similarities
        return sorted(rescored, key=lambda s: -(s.debug_meta.embed_score or 0.0))
