"""
Field and Location Taxonomy

Canonical mapping of free-text field-of-study and location tokens.
Single source for the profile parser, the filter engine and ingestion.
"""

import re
from typing import Dict, List, Optional

from .constants import COUNTRY_LIKE_PATTERN


FIELD_MAP: Dict[str, str] = {
    "computer-science": "Engineering",
    "computer science": "Engineering",
    "cs": "Engineering",
    "software engineering": "Engineering",
    "engineering": "Engineering",
    "it": "Engineering",
    "business": "Commerce",
    "commerce": "Commerce",
    "management": "Commerce",
    "medicine": "Medicine",
    "medical": "Medicine",
    "health sciences": "Medicine",
    "arts": "Arts",
    "humanities": "Arts",
    "natural sciences": "Science",
    "sciences": "Science",
    "science": "Science",
    "law": "Law",
    "legal studies": "Law",
}

# Sentinel for "no location preference"
ANY_LOCATION = "__ANY__"

LOCATION_ALIASES: Dict[str, str] = {
    "uk": "United Kingdom",
    "united kingdom": "United Kingdom",
    "u.k.": "United Kingdom",
    "gb": "United Kingdom",
    "great britain": "United Kingdom",
    "england": "United Kingdom",
    "usa": "United States",
    "us": "United States",
    "u.s.": "United States",
    "united states": "United States",
    "united states of america": "United States",
    "australia": "Australia",
    "canada": "Canada",
    "germany": "Germany",
    "india": "India",
    "anywhere": ANY_LOCATION,
    "global": ANY_LOCATION,
}

_COUNTRY_LIKE_RE = re.compile(COUNTRY_LIKE_PATTERN)


def map_field(raw: Optional[str]) -> Optional[str]:
    """
    Map a free-text field of study to the canonical taxonomy.

    Unrecognised input is passed through with its first letter capitalised.
    Empty or missing input yields None.
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    mapped = FIELD_MAP.get(text.lower())
    if mapped:
        return mapped
    return text[0].upper() + text[1:]


def _capitalize_words(text: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() for w in text.split())


def normalize_locations(raw_locations: Optional[List[str]]) -> List[str]:
    """
    Canonicalise a list of location strings.

    A "no preference" alias anywhere in the list returns [] immediately,
    overriding every other entry. Output is de-duplicated in first-occurrence
    order.
    """
    out: List[str] = []
    for loc in raw_locations or []:
        if loc is None:
            continue
        text = str(loc).strip()
        if not text:
            continue
        mapped = LOCATION_ALIASES.get(text.lower())
        if mapped == ANY_LOCATION:
            return []
        canonical = mapped or _capitalize_words(text)
        if canonical not in out:
            out.append(canonical)
    return out


def is_country_like(token: Optional[str]) -> bool:
    """Heuristic: alphabetic token of 4+ characters reads as a country name."""
    if not token:
        return False
    return bool(_COUNTRY_LIKE_RE.match(token.strip()))


def country_like_tokens(locations: List[str]) -> List[str]:
    return [loc.strip() for loc in locations if is_country_like(loc)]
