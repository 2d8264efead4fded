"""
Recommendation API Routes

Exposes the recommendation service via REST API.
"""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from utils.auth_utils import get_current_user_id
from .ingest.ingestor import IngestionError, UniversityIngestor
from .logic.contracts import ChatRequest, RecommendationRequest
from .logic.engine import RecommendationService
from .logic.profile_parser import ProfileValidationError
from .models.base import UniversityFilter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["recommendations"])


def get_service(request: Request) -> RecommendationService:
    return request.app.state.recommendation_service


def get_ingestor(request: Request) -> UniversityIngestor:
    return request.app.state.ingestor


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/recommend", summary="Get university recommendations")
async def recommend(
    payload: RecommendationRequest,
    user_id: str = Depends(get_current_user_id),
    service: RecommendationService = Depends(get_service),
):
    """
    Generate a ranked shortlist and counsellor note for the caller.

    **Request Body:**
    - `profile`: flat or nested student profile
    - `noCache`: skip the cached result
    - `forceIngest`: run country enrichment regardless of settings
    """
    try:
        output = await service.recommend(
            user_id,
            payload.profile,
            no_cache=payload.no_cache,
            force_ingest=payload.force_ingest,
        )
    except ProfileValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid student profile: {e}")
    except PyMongoError as e:
        logger.error(f"❌ Store failure during recommendation: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
    return {"success": True, "data": output.to_wire()}


@router.post("/recommend/preview", summary="Preview the scored shortlist")
async def preview(
    payload: RecommendationRequest,
    service: RecommendationService = Depends(get_service),
):
    """Scored and ranked list without counsellor note, cache or audit record."""
    try:
        output = await service.preview(payload.profile)
    except ProfileValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid student profile: {e}")
    except PyMongoError as e:
        logger.error(f"❌ Store failure during preview: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
    return {"success": True, "data": output.to_wire()}


@router.get("/enrich", summary="Ingest universities for one country")
async def enrich(
    country: str = Query(..., description="Country to ingest"),
    field: Optional[str] = Query(default=None),
    budget: Optional[float] = Query(default=None, gt=0),
    ingestor: UniversityIngestor = Depends(get_ingestor),
):
    try:
        result = await ingestor.ingest(country, budget=budget, field=field, force=True)
        store = ingestor.store
        total = await store.count(UniversityFilter(country=country))
        field_count = await store.count(UniversityFilter(country=country, field_of_study=field)) \
            if field else None
    except IngestionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except httpx.HTTPError as e:
        logger.error(f"❌ Enrichment fetch failed for {country}: {e}")
        return JSONResponse(status_code=502, content={"success": False, "error": str(e)})
    except PyMongoError as e:
        logger.error(f"❌ Store failure during enrichment: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    return {
        "success": True,
        "data": {
            "country": country,
            "field": field,
            **result.model_dump(),
            "countryTotal": total,
            "fieldCount": field_count,
        },
    }


@router.post("/chat", summary="Ask the counsellor a follow-up question")
async def chat(
    payload: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    service: RecommendationService = Depends(get_service),
):
    """
    **Request Body:**
    - `message`: the student's question
    - `context.recommendedUniversities`: shortlist the question refers to
    - `history`: earlier `{message, reply}` turns, only the last 3 are used
    """
    if not payload.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")
    logger.info(f"💬 Chat question from {user_id}")
    output = await service.chat(payload)
    return {"success": True, "data": output.to_wire()}


# =============================================================================
# HEALTH CHECK
# =============================================================================

@router.get("/recommend/health", summary="Recommendation engine health check")
def health_check():
    """Check if recommendation engine is operational."""
    return {"status": "ok", "engine": "recommendation"}
