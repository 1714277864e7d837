"""
Session-scoped caches for resolved FHIR resources.

This module provides:
- Working-set tiers (by-UUID, by-query, in-flight) wiped after every command
- The patient index and demographics cache, kept for the session lifetime
- The registry that owns one SessionCache per session
"""

from src.cache.patient_cache import DemographicCache, PatientCache
from src.cache.resource_cache import (
    ByQueryCache,
    ByUuidCache,
    CachedResource,
    FetchCache,
    ResourceCache,
)
from src.cache.session import SessionCache, SessionCacheRegistry

__all__ = [
    "ByQueryCache",
    "ByUuidCache",
    "CachedResource",
    "DemographicCache",
    "FetchCache",
    "PatientCache",
    "ResourceCache",
    "SessionCache",
    "SessionCacheRegistry",
]
