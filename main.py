import asyncio
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from recommendation.ai.embeddings import EmbeddingReranker
from recommendation.ai.explainer import AIExplainer, OpenAITextGenerator, RetryPolicy
from recommendation.data.seed_universities import SEED_UNIVERSITIES
from recommendation.ingest import UniversityIngestor, enrichment_loop
from recommendation.logic.cache import ProfileCache
from recommendation.logic.engine import RecommendationService
from recommendation.models import MemoryRecommendationLog, MemoryUniversityStore
from recommendation.routes import router as recommendation_router

logging.basicConfig(level=logging.INFO)


def build_stores():
    if settings.USE_MOCK_STORE:
        logging.info("Using in-memory university store seeded with sample data")
        return MemoryUniversityStore(SEED_UNIVERSITIES), MemoryRecommendationLog()

    from db_mongo import recommendations_collection, universities_collection
    from recommendation.models import MongoRecommendationLog, MongoUniversityStore

    logging.info(f"Using MongoDB database {settings.MONGO_DATABASE}")
    return (
        MongoUniversityStore(universities_collection),
        MongoRecommendationLog(recommendations_collection),
    )


def build_explainer() -> AIExplainer:
    generator = None
    if settings.uses_real_provider:
        generator = OpenAITextGenerator(settings.OPENAI_API_KEY, model=settings.MODEL_NAME)
    reason = "provider=mock" if settings.AI_PROVIDER != "openai" else "missing_api_key"
    return AIExplainer(
        generator=generator,
        retry_policy=RetryPolicy.from_flag(settings.AI_RETRY),
        timeout_ms=settings.AI_TIMEOUT_MS,
        max_tokens=settings.AI_MAX_REC_TOKENS,
        temperature=settings.AI_TEMPERATURE,
        disabled_reason=reason,
        chat_max_tokens=settings.AI_MAX_CHAT_TOKENS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    store, recommendation_log = build_stores()
    http_client = httpx.AsyncClient(timeout=settings.INGEST_TIMEOUT_S)
    ingestor = UniversityIngestor(
        store,
        source_url=settings.INGEST_SOURCE_URL,
        timeout_s=settings.INGEST_TIMEOUT_S,
        client=http_client,
    )
    app.state.ingestor = ingestor
    app.state.recommendation_service = RecommendationService(
        store=store,
        cache=ProfileCache(settings.CACHE_PROFILE_TTL_MIN, settings.CACHE_MAX_ENTRIES),
        explainer=build_explainer(),
        recommendation_log=recommendation_log,
        ingestor=ingestor,
        reranker=EmbeddingReranker(
            enabled=settings.ENABLE_EMBED_RERANK,
            api_key=settings.OPENAI_API_KEY,
            model=settings.EMBED_MODEL,
        ),
        enrich_on_request=settings.ENRICH_ON_REQUEST,
        prompt_version=settings.PROMPT_VERSION_RECOMMEND,
    )

    sweep = asyncio.create_task(enrichment_loop(
        ingestor, settings.ENRICH_INTERVAL_HOURS, settings.ENRICH_MAX_COUNTRIES,
    ))
    logging.info(f"Background enrichment every {settings.ENRICH_INTERVAL_HOURS}h")
    try:
        yield
    finally:
        sweep.cancel()
        try:
            await sweep
        except asyncio.CancelledError:
            pass
        await http_client.aclose()


app = FastAPI(title="University Recommender", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(recommendation_router)


@app.get("/health", tags=["meta"], summary="Health check")
def health():
    return {"status": "ok"}
