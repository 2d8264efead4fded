"""
Recommendation Engine Constants

Thresholds, base weights, synonym tables and relaxation tokens used by the
filter, scoring and ranking stages. All values are deterministic.
"""

from typing import Dict

# =============================================================================
# CANDIDATE FILTERING
# =============================================================================

# A query attempt is accepted once it returns at least this many universities
MIN_RESULTS = 5

# Budget stretch applied by the relaxation step
BUDGET_STRETCH_FACTOR = 1.1

# Field-enrichment check: trigger when fewer records than this carry the field
FIELD_ENRICHMENT_THRESHOLD = 5

# Letter first, then at least 3 more letters/spaces/hyphens/apostrophes
COUNTRY_LIKE_PATTERN = r"^[a-zA-Z][a-zA-Z\s'-]{3,}$"

# Relaxation step tokens recorded in diagnostics
STEP_BUDGET_STRETCH = "budget+10%"
STEP_DROP_FIELD = "dropField"
STEP_DROP_LOCATION = "dropLocation"
STEP_FALLBACK_ANY = "fallbackAny"
STEP_KEPT_LOCATION = "keptLocation(strictCountry)"
STEP_FIELD_ENRICHMENT_FAILED = "fieldEnrichmentFailed"

# =============================================================================
# SCORING
# =============================================================================

BASE_WEIGHTS: Dict[str, float] = {
    "placement": 0.35,
    "salary": 0.25,
    "ranking": 0.20,
    "feeEfficiency": 0.10,
    "featureMatch": 0.10,
}

# Additive nudge per matched priority label (weights are not renormalized)
PRIORITY_NUDGE = 0.05

PRIORITY_WEIGHT_ADJUSTMENTS: Dict[str, Dict[str, int]] = {
    "Placements": {"placement": 1, "salary": 1, "ranking": -1, "feeEfficiency": -1},
    "Affordability": {"feeEfficiency": 1, "salary": -1, "ranking": -1},
    "Reputation": {"ranking": 1, "placement": -1, "feeEfficiency": -1},
}

PRIORITY_SYNONYMS: Dict[str, str] = {
    "academic reputation": "Reputation",
    "reputation": "Reputation",
    "placements": "Placements",
    "career services & job placement": "Placements",
    "career services": "Placements",
    "job placement": "Placements",
    "cost & financial aid": "Affordability",
    "affordability": "Affordability",
    "research opportunities": "Research",
    "research": "Research",
    "diversity & inclusion": "Diversity",
    "diversity": "Diversity",
}

# Floor for fee and fee-efficiency divisions
DIVISION_FLOOR = 0.00001

# Ranking used for the batch maximum when a record has none
DEFAULT_MAX_RANKING = 100

# Multiplicative boost for candidates in a requested country
LOCATION_BOOST = 1.05

# =============================================================================
# OUTPUT
# =============================================================================

TOP_N = 7
TAG_COUNT = 3

EMPTY_SHORTLIST_NOTE = (
    "No strong matches found with current preferences. Try broadening location, "
    "increasing budget, or selecting a different field to see more options."
)

# =============================================================================
# CHAT
# =============================================================================

# Only the most recent turns are replayed into the chat prompt
CHAT_HISTORY_TURNS = 3
CHAT_CONTEXT_FEATURES = 3

# =============================================================================
# ENRICHMENT
# =============================================================================

# Countries above this size skip primary ingestion (field backfill only)
POPULATED_COUNTRY_THRESHOLD = 25
INGEST_MAX_RESULTS = 50
DEFAULT_BASE_FEE = 35000
MIN_SYNTHETIC_FEE = 15000
DEFAULT_INGEST_FIELD = "General Studies"
SWEEP_FIELDS = ["Engineering", "Science", "Medicine", "Commerce", "Arts"]
INGESTED_KEY_FEATURES = [
    "International collaboration",
    "Diverse programs",
    "Global student body",
]
