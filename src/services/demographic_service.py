"""
Demographics view builder.

Builds the demographics response for a patient from the session cache. The
Patient must already be indexed and the GP practice, if resolved, is read
through the Patient -> Organization relation.
"""

import logging
from datetime import datetime, time, timezone
from typing import Any

from src.cache.session import SessionCache
from src.exceptions import NotFoundError
from src.fhir.parsers import parse_address, parse_email, parse_name, parse_telecom
from src.fhir.references import ResourceName
from src.schemas.demographics import NOT_KNOWN, Demographics

logger = logging.getLogger(__name__)


def date_of_birth_millis(birth_date: str | None) -> int | None:
    """Convert a FHIR ``date`` to epoch milliseconds (UTC midnight)."""
    if not birth_date:
        return None
    try:
        parsed = datetime.fromisoformat(birth_date)
    except ValueError:
        logger.warning("Unparseable birthDate %r", birth_date)
        return None
    if parsed.tzinfo is None:
        parsed = datetime.combine(parsed.date(), time(), tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def build_gp_full_address(name: str | None, address: str | None) -> str | None:
    """``"name, address"`` when both parts are present, else None."""
    name = (name or "").strip()
    address = (address or "").strip()
    if not name or not address:
        return None
    return f"{name}, {address}"


class DemographicService:
    """Builds and caches demographics responses."""

    def __init__(self, cache: SessionCache):
        self.cache = cache

    def get_by_patient_id(self, nhs_number: str) -> dict[str, Any]:
        """
        Build the demographics response for a patient.

        The response is kept in the demographics cache only when the GP
        practice was resolved, so an incomplete view is rebuilt next time.

        Raises:
            NotFoundError: If the patient is not in the session cache
        """
        logger.info("Building demographics for %s", nhs_number)

        patient_cache = self.cache.patient_cache
        by_uuid = self.cache.resource_cache.by_uuid

        patient_uuid = patient_cache.by_nhs_number.get_patient_uuid(nhs_number)
        patient = patient_cache.by_patient_uuid.get(patient_uuid)
        if not patient or not patient_uuid:
            raise NotFoundError("Patient not found.")

        organization: dict[str, Any] = {}
        organization_uuid = by_uuid.get_related_uuid(
            ResourceName.PATIENT.value, patient_uuid, ResourceName.ORGANIZATION.value
        )
        if organization_uuid:
            organization = by_uuid.get(ResourceName.ORGANIZATION.value, organization_uuid) or {}

        gp_name = organization.get("name")
        gp_address = parse_address(organization.get("address"), "work")

        demographics = Demographics(
            id=str(nhs_number),
            nhsNumber=str(nhs_number),
            name=parse_name(patient.get("name")) or NOT_KNOWN,
            gender=patient.get("gender") or NOT_KNOWN,
            dateOfBirth=date_of_birth_millis(patient.get("birthDate")),
            address=parse_address(patient.get("address"), "home") or NOT_KNOWN,
            phone=parse_telecom(patient.get("telecom")) or NOT_KNOWN,
            email=parse_email(patient.get("telecom")) or NOT_KNOWN,
            gpName=gp_name or NOT_KNOWN,
            gpAddress=gp_address or NOT_KNOWN,
            gpFullAddress=build_gp_full_address(gp_name, gp_address) or NOT_KNOWN,
        )

        response = {"demographics": demographics.model_dump(by_alias=True)}

        if organization_uuid:
            self.cache.demographic_cache.by_nhs_number.set(nhs_number, response)

        return response
