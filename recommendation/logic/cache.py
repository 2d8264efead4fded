"""
Recommendation Cache

Memoises the full recommendation payload per (user, canonical profile).
Entries expire on read once their age reaches the TTL; the store is also
bounded (least-recently-used entries are evicted past `max_entries`).
"""

import copy
import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Protocol

from .contracts import StudentProfile

logger = logging.getLogger(__name__)


class Cache(Protocol):
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    def set(self, key: str, value: Dict[str, Any]) -> None:
        ...


def canonical_profile(profile: StudentProfile) -> Dict[str, Any]:
    """
    Deep copy of the profile with `preferences.locations` trimmed,
    lowercased, de-duplicated and sorted.
    """
    data = copy.deepcopy(profile.to_wire())
    prefs = data.get("preferences") or {}
    locations = prefs.get("locations") or []
    prefs["locations"] = sorted({(loc or "").strip().lower() for loc in locations} - {""})
    data["preferences"] = prefs
    return data


def profile_hash(profile: StudentProfile) -> str:
    serialized = json.dumps(canonical_profile(profile), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def cache_key(user_id: str, profile: StudentProfile) -> str:
    return f"recommend:{user_id}:{profile_hash(profile)}"


class ProfileCache:
    """In-process TTL + LRU cache."""

    def __init__(self, ttl_minutes: float = 1440, max_entries: int = 1000,
                 clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_minutes * 60
        self.max_entries = max_entries
        self.clock = clock
        self._entries: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return a fresh entry or None (missing, stale or malformed)."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            timestamp = entry.get("timestamp") if isinstance(entry, dict) else None
            if not isinstance(timestamp, (int, float)):
                self._entries.pop(key, None)
                return None
            if self.clock() - timestamp >= self.ttl_seconds:
                self._entries.pop(key, None)
                return None
            self._entries.move_to_end(key)
            return copy.deepcopy(entry)

    def set(self, key: str, value: Dict[str, Any]) -> None:
        """Overwrite `key` with a snapshot of `value` and a fresh timestamp."""
        entry = copy.deepcopy(value)
        entry["timestamp"] = self.clock()
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache evicted {evicted}")
