"""
Data Contracts for the Recommendation Engine

Pydantic models for the canonical student profile (input), university
records read from the store, the request-scoped scored candidate, and the
recommendation response (output). Field names are snake_case in Python and
camelCase on the wire.
"""

from datetime import datetime, timezone
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model serialised with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# INPUT CONTRACTS
# =============================================================================

class Academics(WireModel):
    board: Optional[str] = None
    grade12_score: Optional[float] = Field(default=None, ge=0, le=100)


class Interests(WireModel):
    # Canonical taxonomy value or a capitalised pass-through, never ""
    field_of_study: Optional[str] = None
    courses: List[str] = Field(default_factory=list)


class Preferences(WireModel):
    locations: List[str] = Field(default_factory=list)
    budget: Optional[float] = Field(default=None, gt=0)
    priorities: List[str] = Field(default_factory=list)
    university_type: List[str] = Field(default_factory=list)


class StudentProfile(WireModel):
    """
    Canonical profile consumed by every pipeline stage.
    Built once at the boundary by `parse_profile`.
    """
    academics: Academics = Field(default_factory=Academics)
    interests: Interests = Field(default_factory=Interests)
    preferences: Preferences = Field(default_factory=Preferences)


class RecommendationRequest(WireModel):
    """Request body for the recommendation endpoint."""
    profile: Dict[str, Any] = Field(default_factory=dict)
    no_cache: bool = False
    force_ingest: bool = False


# =============================================================================
# STORE RECORDS
# =============================================================================

class Location(WireModel):
    city: str = ""
    state: str = ""
    country: str = ""

    @field_validator("city", "state", "country", mode="before")
    @classmethod
    def _blank_if_missing(cls, value):
        return value or ""


class Course(WireModel):
    name: str
    field: str
    annual_fee: float


class Benchmarks(WireModel):
    placement_percentage: Optional[float] = None
    average_salary: Optional[float] = None
    ranking: Optional[int] = None


class University(WireModel):
    """University record as read from the store."""
    id: Optional[str] = None
    name: str
    location: Location = Field(default_factory=Location)
    courses: List[Course] = Field(default_factory=list)
    benchmarks: Benchmarks = Field(default_factory=Benchmarks)
    key_features: List[str] = Field(default_factory=list)
    type: str = "other"

    @property
    def average_annual_fee(self) -> float:
        if not self.courses:
            return 0.0
        return sum(c.annual_fee for c in self.courses) / len(self.courses)


# =============================================================================
# INTERMEDIATE DATA STRUCTURES
# =============================================================================

class NormalizedScores(WireModel):
    """Per-batch min-max sub-scores of one candidate."""
    placement_norm: float = 0.0
    salary_norm: float = 0.5
    ranking_norm: float = 0.0
    fee_efficiency_scaled: float = 0.0
    fee_efficiency: float = 0.0


class DebugMeta(WireModel):
    weights: Dict[str, float] = Field(default_factory=dict)
    feature_match_score: float = 0.0
    priority_matches: List[str] = Field(default_factory=list)
    location_boost: bool = False
    embed_score: Optional[float] = None


class ScoredCandidate(BaseModel):
    """
    A university with computed scores.
    Created fresh per scoring pass and never persisted.
    """
    university: University
    normalized: NormalizedScores = Field(default_factory=NormalizedScores)
    # Weighted sum; not bounded to [0, 1] after nudges and boosts
    score: float = 0.0
    debug_meta: DebugMeta = Field(default_factory=DebugMeta)


# =============================================================================
# OUTPUT CONTRACTS
# =============================================================================

class RecommendedUniversity(WireModel):
    id: Optional[str] = None
    name: str
    location: Optional[str] = None
    match_score: int
    placement_rate: Optional[float] = None
    avg_salary: Optional[float] = None
    annual_fee: float
    ranking: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    key_features: List[str] = Field(default_factory=list)
    debug_meta: Optional[DebugMeta] = None


class IngestionFailure(WireModel):
    country: str
    error: str


class Diagnostics(WireModel):
    relaxation_steps: List[str] = Field(default_factory=list)
    requested_locations: List[str] = Field(default_factory=list)
    country_like: List[str] = Field(default_factory=list)
    country_match_count: int = 0
    ingestion_failures: List[IngestionFailure] = Field(default_factory=list)
    strict_no_cross_country: Optional[bool] = None


class ModelMeta(WireModel):
    provider: str = "mock"
    model: str = ""
    tokens_in: int = 0
    tokens_out: int = 0
    latency_ms: int = 0
    fallback_reason: Optional[str] = None
    empty_universities: Optional[bool] = None
    strict_country: Optional[bool] = None


class RecommendationOutput(WireModel):
    """
    Output contract for the primary operation.
    Also the value stored in the cache (with `timestamp`).
    """
    ai_counsellor_note: str = ""
    recommended_universities: List[RecommendedUniversity] = Field(default_factory=list)
    from_cache: bool = False
    model_meta: ModelMeta = Field(default_factory=ModelMeta)
    is_fallback: bool = False
    data_source_note: str = ""
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)


class RecommendationRecord(WireModel):
    """Immutable audit record written once per non-cached recommendation."""
    user_id: str
    profile_snapshot: Dict[str, Any]
    university_ids: List[str] = Field(default_factory=list)
    ai_counsellor_note: str
    prompt_version: str = "recommendation.v1"
    model_meta: ModelMeta = Field(default_factory=ModelMeta)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PreviewOutput(WireModel):
    """Scored shortlist without counsellor note, cache or audit record."""
    recommended_universities: List[RecommendedUniversity] = Field(default_factory=list)
    applied_filters: Dict[str, Any] = Field(default_factory=dict)
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)


# =============================================================================
# CHAT CONTRACTS
# =============================================================================

class ChatTurn(WireModel):
    message: str = ""
    reply: str = ""


class ChatContextUniversity(WireModel):
    """A shortlisted university the student is asking about."""
    name: str
    location: Optional[str] = None
    ranking: Optional[int] = None
    key_features: List[str] = Field(default_factory=list)


class ChatContext(WireModel):
    recommended_universities: List[ChatContextUniversity] = Field(default_factory=list)


class ChatRequest(WireModel):
    """Request body for the chat endpoint."""
    message: str = ""
    context: ChatContext = Field(default_factory=ChatContext)
    history: List[ChatTurn] = Field(default_factory=list)


class ChatOutput(WireModel):
    reply: str
    model_meta: ModelMeta = Field(default_factory=ModelMeta)
    is_fallback: bool = False
