"""
Recommendation Engine

Main orchestrator that combines all pipeline components into a single
service. This is the primary entry point for generating recommendations.
"""

import logging
import time
from typing import Any, List, Optional, Tuple

from .aggregator import batch_aggregate
from .cache import Cache, cache_key
from .candidate_generator import CandidateGenerator, CandidateSet
from .constants import EMPTY_SHORTLIST_NOTE, MIN_RESULTS, TOP_N
from .contracts import (
    ChatOutput,
    ChatRequest,
    Diagnostics,
    ModelMeta,
    PreviewOutput,
    RecommendationOutput,
    RecommendationRecord,
    ScoredCandidate,
    StudentProfile,
)
from .dimension_scorers import normalize_batch
from .output_assembler import (
    assemble_strict_country_output,
    build_data_source_note,
    country_match_count,
    to_recommended_university,
)
from .profile_parser import parse_profile
from .ranker import apply_location_boost, rank_candidates, select_top
from .taxonomy import normalize_locations
from ..ai.embeddings import EmbeddingReranker
from ..ai.explainer import AIExplainer
from ..ai.prompt_builder import (
    build_chat_prompt,
    build_recommendation_prompt,
    sanitize_universities_for_prompt,
    sanitize_user_input,
)
from ..ai.safety_rules import strip_unlisted_universities
from ..models.base import RecommendationLog, UniversityStore

logger = logging.getLogger(__name__)


class RecommendationService:
    """
    Orchestrates the recommendation pipeline.

    Pipeline flow:
    1. Profile parsing and cache lookup
    2. Location canonicalisation
    3. Candidate generation with relaxation (and optional enrichment)
    4. Normalisation and weighted scoring
    5. Ranking, location boost, optional embedding rerank, top-N cut
    6. Counsellor note with safety filter
    7. Audit record, cache write and output assembly

    Collaborators are injected once per process; nothing here is global.
    """

    def __init__(
        self,
        store: UniversityStore,
        cache: Cache,
        explainer: AIExplainer,
        recommendation_log: RecommendationLog,
        ingestor=None,
        reranker: Optional[EmbeddingReranker] = None,
        enrich_on_request: bool = True,
        prompt_version: str = "recommendation.v1",
        min_results: int = MIN_RESULTS,
        top_n: int = TOP_N,
    ):
        self.store = store
        self.cache = cache
        self.explainer = explainer
        self.recommendation_log = recommendation_log
        self.reranker = reranker or EmbeddingReranker(enabled=False)
        self.prompt_version = prompt_version
        self.top_n = top_n
        self.candidate_generator = CandidateGenerator(
            store,
            ingestor=ingestor,
            enrich_on_request=enrich_on_request,
            min_results=min_results,
        )
        # Preview only reads the store; it never fetches or writes listings
        self.preview_generator = CandidateGenerator(store, min_results=min_results)

    @staticmethod
    def _with_canonical_locations(profile: StudentProfile) -> StudentProfile:
        prefs = profile.preferences.model_copy(
            update={"locations": normalize_locations(profile.preferences.locations)}
        )
        return profile.model_copy(update={"preferences": prefs})

    def _cached(self, key: str) -> Optional[RecommendationOutput]:
        entry = self.cache.get(key)
        if entry is None:
            return None
        try:
            output = RecommendationOutput.model_validate(entry)
        except ValueError:
            logger.warning(f"⚠️ Ignoring malformed cache entry {key}")
            return None
        output.from_cache = True
        return output

    async def _score_and_rank(
        self, profile: StudentProfile, candidates: CandidateSet
    ) -> Tuple[List[ScoredCandidate], int]:
        """Steps A-D. Returns the shortlist and the size of the scored batch."""
        normalized = normalize_batch(candidates.universities)
        scored = batch_aggregate(normalized, profile.preferences.priorities)
        ranked = rank_candidates(scored)
        ranked = apply_location_boost(ranked, candidates.country_like)
        try:
            ranked = await self.reranker.rerank(profile, ranked)
        except Exception as e:
            logger.warning(f"⚠️ Embedding rerank failed, keeping score order: {e}")
        return select_top(ranked, self.top_n), len(normalized)

    async def recommend(
        self,
        user_id: str,
        raw_profile: Any,
        no_cache: bool = False,
        force_ingest: bool = False,
    ) -> RecommendationOutput:
        """
        Generate recommendations for one user and profile.

        Args:
            user_id: Opaque caller identity (cache and audit scope)
            raw_profile: Flat or nested profile payload
            no_cache: Skip the cache lookup (the result is still cached)
            force_ingest: Ask the enrichment collaborator to run regardless

        Returns:
            RecommendationOutput

        Raises:
            ProfileValidationError: malformed profile
        """
        start_time = time.perf_counter()
        profile = parse_profile(raw_profile)
        key = cache_key(user_id, profile)

        if not no_cache:
            cached = self._cached(key)
            if cached is not None:
                logger.info(f"⚡ Cache hit for {user_id}")
                return cached
        logger.info(f"🧭 Cache miss for {user_id}, running pipeline")

        profile = self._with_canonical_locations(profile)
        candidates = await self.candidate_generator.generate(profile, force_ingest=force_ingest)

        if candidates.strict_empty:
            return assemble_strict_country_output(
                country=candidates.country_like[0],
                relaxation_steps=candidates.relaxation_steps,
                requested_locations=candidates.requested_locations,
                country_like=candidates.country_like,
                ingestion_failures=candidates.ingestion_failures,
                provider=self.explainer.provider,
                model=self._model_name(),
            )

        top, scored_count = await self._score_and_rank(profile, candidates)
        prompt_universities = sanitize_universities_for_prompt(top, self.top_n)

        if not prompt_universities:
            logger.warning(
                f"⚠️ No universities passed filtering (found {candidates.total_found})"
            )
            note = EMPTY_SHORTLIST_NOTE
            model_meta = ModelMeta(
                provider=self.explainer.provider,
                model=self._model_name(),
                empty_universities=True,
            )
        else:
            prompt = build_recommendation_prompt(profile, prompt_universities)
            note, model_meta = await self.explainer.write_note(prompt)
            note = strip_unlisted_universities(note, [u["name"] for u in prompt_universities])

        await self.recommendation_log.create(RecommendationRecord(
            user_id=user_id,
            profile_snapshot=profile.to_wire(),
            university_ids=[s.university.id for s in top if s.university.id],
            ai_counsellor_note=note,
            prompt_version=self.prompt_version,
            model_meta=model_meta,
        ))

        recommended = [to_recommended_university(s) for s in top]
        matches = country_match_count(recommended, candidates.country_like)
        output = RecommendationOutput(
            ai_counsellor_note=note,
            recommended_universities=recommended,
            from_cache=False,
            model_meta=model_meta,
            is_fallback=model_meta.provider != "openai",
            data_source_note=build_data_source_note(
                filtered=candidates.total_found,
                relaxation_steps=candidates.relaxation_steps,
                scored=scored_count,
                returned=len(recommended),
                requested_locations=candidates.requested_locations,
                country_matches=matches,
                ingestion_failures=candidates.ingestion_failures,
            ),
            diagnostics=Diagnostics(
                relaxation_steps=candidates.relaxation_steps,
                requested_locations=candidates.requested_locations,
                country_like=candidates.country_like,
                country_match_count=matches,
                ingestion_failures=candidates.ingestion_failures,
            ),
        )

        self.cache.set(key, output.to_wire())
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(f"✅ Returned {len(recommended)} recommendations in {elapsed_ms:.0f}ms")
        return output

    async def preview(self, raw_profile: Any) -> PreviewOutput:
        """Scored shortlist only: no counsellor note, cache or audit record."""
        profile = self._with_canonical_locations(parse_profile(raw_profile))
        candidates = await self.preview_generator.generate(profile)
        top: List[ScoredCandidate] = []
        if not candidates.strict_empty:
            top, _ = await self._score_and_rank(profile, candidates)
        recommended = [to_recommended_university(s) for s in top]
        return PreviewOutput(
            recommended_universities=recommended,
            applied_filters=candidates.applied_filter.to_query(),
            diagnostics=Diagnostics(
                relaxation_steps=candidates.relaxation_steps,
                requested_locations=candidates.requested_locations,
                country_like=candidates.country_like,
                country_match_count=country_match_count(recommended, candidates.country_like),
                ingestion_failures=candidates.ingestion_failures,
                strict_no_cross_country=True if candidates.strict_empty else None,
            ),
        )

    async def chat(self, request: ChatRequest) -> ChatOutput:
        """
        Answer a follow-up question about a shortlist the caller already has.
        Uncached and unaudited; bolded names outside the context are removed.
        """
        prompt = build_chat_prompt(request.message, request.context, request.history)
        reply, model_meta = await self.explainer.reply(prompt)
        allowed = [sanitize_user_input(u.name) for u in request.context.recommended_universities]
        return ChatOutput(
            reply=strip_unlisted_universities(reply, allowed),
            model_meta=model_meta,
            is_fallback=model_meta.provider != "openai",
        )

    def _model_name(self) -> str:
        generator = self.explainer.generator
        return generator.model if generator else "mock-model"
