"""
Profile Parser

Converts the heterogeneous profile shapes sent by clients (flat legacy form
or nested canonical form) into one validated StudentProfile.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .contracts import StudentProfile
from .taxonomy import map_field

logger = logging.getLogger(__name__)


class ProfileValidationError(ValueError):
    """Raised for structurally malformed profile input."""


def _as_list(value: Any, name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value if v is not None]
    raise ProfileValidationError(f"'{name}' must be a list of strings")


def _as_number(value: Any, name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ProfileValidationError(f"'{name}' must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ProfileValidationError(f"'{name}' must be a number")


def is_canonical(raw: Dict[str, Any]) -> bool:
    return "interests" in raw and "preferences" in raw


def _flatten(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Map the flat shape onto the nested canonical layout."""
    academics = raw.get("academics") or {}
    if not isinstance(academics, dict):
        raise ProfileValidationError("'academics' must be an object")

    field = raw.get("field") or raw.get("fieldOfStudy")
    location = raw.get("location")
    budget = _as_number(raw.get("budget"), "budget")

    return {
        "academics": {
            "grade12Score": _as_number(
                academics.get("grade12Score", raw.get("gpa")), "grade12Score"
            ),
            "board": academics.get("board"),
        },
        "interests": {
            "fieldOfStudy": map_field(field),
            "courses": _as_list(raw.get("courses"), "courses"),
        },
        "preferences": {
            "locations": [location] if location else [],
            "budget": budget if budget else None,
            "priorities": _as_list(raw.get("priorities"), "priorities"),
            "universityType": _as_list(raw.get("universityType"), "universityType"),
        },
    }


def _canonicalize_nested(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Apply field mapping and list coercion to an already nested profile."""
    interests = dict(raw.get("interests") or {})
    preferences = dict(raw.get("preferences") or {})
    academics = raw.get("academics") or {}

    interests["fieldOfStudy"] = map_field(
        interests.get("fieldOfStudy", interests.get("field_of_study"))
    )
    interests.pop("field_of_study", None)
    interests["courses"] = _as_list(interests.get("courses"), "courses")

    preferences["locations"] = _as_list(preferences.get("locations"), "locations")
    preferences["priorities"] = _as_list(preferences.get("priorities"), "priorities")
    budget = _as_number(preferences.get("budget"), "budget")
    preferences["budget"] = budget if budget else None

    return {"academics": academics, "interests": interests, "preferences": preferences}


def parse_profile(raw: Any) -> StudentProfile:
    """
    Parse an incoming profile into the canonical StudentProfile.

    Nested input (both `interests` and `preferences` present) keeps its
    shape; anything else is read as the flat form with optional keys
    field/fieldOfStudy, location, budget, priorities, courses,
    academics.grade12Score/gpa and academics.board. Missing optional keys
    map to None or [].

    Raises:
        ProfileValidationError: input is not an object or has wrongly typed values
    """
    if raw is None:
        raw = {}
    if isinstance(raw, StudentProfile):
        return raw
    if not isinstance(raw, dict):
        raise ProfileValidationError("profile must be an object")

    shaped = _canonicalize_nested(raw) if is_canonical(raw) else _flatten(raw)
    try:
        return StudentProfile.model_validate(shaped)
    except ValidationError as e:
        logger.debug(f"Profile validation failed: {e}")
        raise ProfileValidationError(str(e)) from e
