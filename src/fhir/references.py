"""
FHIR reference helpers.

References are ``"Type/uuid"`` strings. Only relative references are
followed when resolving the patient → practitioner → organization graph.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.exceptions import ValidationError


class ResourceName(str, Enum):
    """Resource types handled by the service."""

    PATIENT = "Patient"
    PRACTITIONER = "Practitioner"
    PRACTITIONER_ROLE = "PractitionerRole"
    ORGANIZATION = "Organization"
    CONSENT = "Consent"
    POLICY = "Policy"


@dataclass(frozen=True)
class ResourceReference:
    """A parsed ``Type/uuid`` reference."""

    resource_type: str
    uuid: str

    def __str__(self) -> str:
        return f"{self.resource_type}/{self.uuid}"


def parse_reference(reference: str, separator: str = "/") -> ResourceReference:
    """Parse a ``Type/uuid`` reference string.

    Raises:
        ValidationError: If the reference is not of the form ``Type/uuid``
    """
    resource_type, _, uuid = reference.partition(separator)
    if not resource_type or not uuid:
        raise ValidationError(f"Invalid resource reference: {reference!r}")
    return ResourceReference(resource_type=resource_type, uuid=uuid)


def get_practitioner_reference(patient: dict[str, Any]) -> str | None:
    """Return the first Practitioner reference in ``Patient.generalPractitioner``."""
    if patient.get("resourceType") != ResourceName.PATIENT.value:
        return None

    for item in patient.get("generalPractitioner") or []:
        reference = item.get("reference")
        if not reference:
            continue
        resource_type, _, _ = reference.partition("/")
        if resource_type == ResourceName.PRACTITIONER.value:
            return reference

    return None


def get_organization_reference(resource: dict[str, Any] | None) -> str | None:
    """Return ``PractitionerRole.organization.reference`` if present."""
    if not resource or resource.get("resourceType") != ResourceName.PRACTITIONER_ROLE.value:
        return None
    organization = resource.get("organization") or {}
    return organization.get("reference")


def bundle_resources(
    bundle: dict[str, Any] | None, resource_type: str | None = None
) -> list[dict[str, Any]]:
    """Extract entry resources from a search Bundle, optionally filtered by type."""
    if not bundle:
        return []
    resources = []
    for entry in bundle.get("entry") or []:
        resource = entry.get("resource")
        if not resource:
            continue
        if resource_type and resource.get("resourceType") != resource_type:
            continue
        resources.append(resource)
    return resources
