"""Tests for the session cache tiers."""

from src.cache.patient_cache import PatientCache
from src.cache.resource_cache import ByQueryCache, ByUuidCache, FetchCache


class TestByUuidCache:
    """Tests for the by-UUID tier."""

    def test_exists_after_set(self) -> None:
        cache = ByUuidCache()

        assert cache.exists("Organization", "O1") is False
        cache.set("Organization", "O1", {"id": "O1"})
        assert cache.exists("Organization", "O1") is True
        assert cache.get("Organization", "O1") == {"id": "O1"}

    def test_first_write_wins(self) -> None:
        """A second set for the same key keeps the first payload."""
        cache = ByUuidCache()

        cache.set("Organization", "O1", {"name": "first"})
        cache.set("Organization", "O1", {"name": "second"})

        assert cache.get("Organization", "O1") == {"name": "first"}

    def test_empty_payload_counts_as_cached(self) -> None:
        cache = ByUuidCache()

        cache.set("Practitioner", "P1", {})

        assert cache.exists("Practitioner", "P1") is True

    def test_relations_do_not_mark_resource_cached(self) -> None:
        """A relation can be recorded before the resource itself is cached."""
        cache = ByUuidCache()

        cache.set_related_uuid("Patient", "E1", "Organization", "O1")

        assert cache.exists("Patient", "E1") is False
        assert cache.exists_related_uuid("Patient", "E1", "Organization") is True
        assert cache.get_related_uuid("Patient", "E1", "Organization") == "O1"

        cache.set("Patient", "E1", {"id": "E1"})
        assert cache.get_related_uuid("Patient", "E1", "Organization") == "O1"

    def test_missing_relation(self) -> None:
        cache = ByUuidCache()
        cache.set("Practitioner", "P1", {"id": "P1"})

        assert cache.exists_related_uuid("Practitioner", "P1", "Organization") is False
        assert cache.get_related_uuid("Practitioner", "P2", "Organization") is None

    def test_delete_all(self) -> None:
        cache = ByUuidCache()
        cache.set("Organization", "O1", {"id": "O1"})

        cache.delete_all()

        assert cache.exists("Organization", "O1") is False
        assert len(cache) == 0


class TestByQueryCache:
    """Tests for the by-query tier."""

    def test_first_write_wins(self) -> None:
        cache = ByQueryCache()

        cache.set("PractitionerRole", "practitioner=Practitioner/P1", {"total": 1})
        cache.set("PractitionerRole", "practitioner=Practitioner/P1", {"total": 2})

        assert cache.get("PractitionerRole", "practitioner=Practitioner/P1") == {"total": 1}

    def test_keys_are_scoped_by_resource_type(self) -> None:
        cache = ByQueryCache()

        cache.set("Consent", "name=x", {"total": 1})

        assert cache.exists("Consent", "name=x") is True
        assert cache.exists("Policy", "name=x") is False
        assert cache.get("Policy", "name=x") is None


class TestFetchCache:
    """Tests for in-flight markers."""

    def test_markers_persist_until_delete_all(self) -> None:
        cache = FetchCache()

        cache.set("Practitioner/P1")
        assert cache.exists("Practitioner/P1") is True
        assert cache.exists("Practitioner/P2") is False

        cache.delete_all()
        assert cache.exists("Practitioner/P1") is False


class TestPatientCache:
    """Tests for the patient index."""

    def test_index_by_nhs_number_and_uuid(self) -> None:
        cache = PatientCache()

        cache.by_patient_uuid.set("E1", {"id": "E1"})
        cache.by_patient_uuid.set_nhs_number("E1", "9999999000")
        cache.by_nhs_number.set_patient_uuid("9999999000", "E1")

        assert cache.by_nhs_number.exists("9999999000") is True
        assert cache.by_nhs_number.get_patient_uuid("9999999000") == "E1"
        assert cache.by_patient_uuid.exists("E1") is True
        assert cache.by_patient_uuid.get("E1") == {"id": "E1"}
        assert cache.by_patient_uuid.get_nhs_number("E1") == "9999999000"

    def test_numeric_nhs_number_matches_string(self) -> None:
        cache = PatientCache()

        cache.by_nhs_number.set_patient_uuid(9999999000, "E1")  # type: ignore[arg-type]

        assert cache.by_nhs_number.exists("9999999000") is True

    def test_unknown_patient(self) -> None:
        cache = PatientCache()

        assert cache.by_patient_uuid.get(None) is None
        assert cache.by_patient_uuid.exists("E1") is False
        assert cache.by_nhs_number.get_patient_uuid("9999999000") is None
