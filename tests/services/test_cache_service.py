"""Tests for the cache lifecycle service."""

from src.cache.session import SessionCache
from src.services.cache_service import CacheService


def _populate(cache: SessionCache) -> None:
    cache.fetch_cache.set("Practitioner/P1")
    cache.fetch_cache.set("practitioner=Practitioner/P1")
    cache.resource_cache.by_uuid.set("Practitioner", "P1", {"id": "P1"})
    cache.resource_cache.by_uuid.set_related_uuid("Patient", "E1", "Organization", "O1")
    cache.resource_cache.by_query.set("PractitionerRole", "practitioner=Practitioner/P1", {})
    cache.patient_cache.by_patient_uuid.set("E1", {"id": "E1"})
    cache.patient_cache.by_nhs_number.set_patient_uuid("9999999000", "E1")
    cache.demographic_cache.by_nhs_number.set("9999999000", {"demographics": {}})


class TestCacheService:
    """Tests for CacheService."""

    def test_clean_caches_wipes_working_set(self, session_cache: SessionCache) -> None:
        _populate(session_cache)

        CacheService(session_cache).clean_caches()

        assert len(session_cache.fetch_cache) == 0
        assert len(session_cache.resource_cache.by_uuid) == 0
        assert len(session_cache.resource_cache.by_query) == 0

    def test_clean_caches_keeps_patient_index(self, session_cache: SessionCache) -> None:
        _populate(session_cache)

        CacheService(session_cache).clean_caches()

        patient_cache = session_cache.patient_cache
        assert patient_cache.by_nhs_number.get_patient_uuid("9999999000") == "E1"
        assert patient_cache.by_patient_uuid.get("E1") == {"id": "E1"}
        assert session_cache.demographic_cache.by_nhs_number.exists("9999999000")

    def test_get_demographics(self, session_cache: SessionCache) -> None:
        service = CacheService(session_cache)

        assert service.get_demographics("9999999000") is None

        _populate(session_cache)
        assert service.get_demographics("9999999000") == {"demographics": {}}
