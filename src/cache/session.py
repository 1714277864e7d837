"""Per-session cache ownership."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from src.cache.patient_cache import DemographicCache, PatientCache
from src.cache.resource_cache import FetchCache, ResourceCache

logger = logging.getLogger(__name__)


@dataclass
class SessionCache:
    """All cache tiers owned by one session."""

    fetch_cache: FetchCache = field(default_factory=FetchCache)
    resource_cache: ResourceCache = field(default_factory=ResourceCache)
    patient_cache: PatientCache = field(default_factory=PatientCache)
    demographic_cache: DemographicCache = field(default_factory=DemographicCache)


@dataclass
class _SessionEntry:
    cache: SessionCache
    lock: asyncio.Lock
    last_seen: float


class SessionCacheRegistry:
    """
    Holds one SessionCache per session id.

    A session's cache is dropped after ``ttl`` seconds without access. The
    per-session lock serializes commands so the in-flight markers of two
    requests from one session never interleave.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, _SessionEntry] = {}

    def _evict_expired(self, now: float) -> None:
        expired = [
            session_id
            for session_id, entry in self._entries.items()
            if now - entry.last_seen > self.ttl and not entry.lock.locked()
        ]
        for session_id in expired:
            logger.debug("Dropping expired session cache %s", session_id)
            del self._entries[session_id]

    def _touch(self, session_id: str) -> _SessionEntry:
        now = self._clock()
        self._evict_expired(now)
        entry = self._entries.get(session_id)
        if entry is None:
            entry = _SessionEntry(cache=SessionCache(), lock=asyncio.Lock(), last_seen=now)
            self._entries[session_id] = entry
        entry.last_seen = now
        return entry

    def get(self, session_id: str) -> SessionCache:
        """Get (or create) the cache for a session."""
        return self._touch(session_id).cache

    def lock(self, session_id: str) -> asyncio.Lock:
        """Get the command lock for a session."""
        return self._touch(session_id).lock

    def discard(self, session_id: str) -> None:
        self._entries.pop(session_id, None)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
