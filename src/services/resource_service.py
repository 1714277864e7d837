"""
Resource resolution service.

Fetches FHIR resources for one session, deduplicating upstream calls within a
command and caching results in the session cache:

1. Already cached -> ``FetchResult(ok=False, exists=True)``
2. Fetch already started -> ``FetchResult(ok=False, fetching=True)``
3. Otherwise mark in flight, authenticate, fetch, cache, return the resource

Graph traversal (patient -> general practitioner -> organization) is done one
step at a time; the in-flight markers are not safe for concurrent siblings.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from src.cache.session import SessionCache
from src.exceptions import NotFoundError
from src.fhir.references import (
    ResourceName,
    bundle_resources,
    get_organization_reference,
    get_practitioner_reference,
    parse_reference,
)
from src.fhir.search import map_query
from src.providers.auth_grant import ReasonCode
from src.services.auth_rest_service import AuthRestService
from src.services.resource_rest_service import ResourceRestService

logger = logging.getLogger(__name__)

PATIENT = ResourceName.PATIENT.value
PRACTITIONER = ResourceName.PRACTITIONER.value
PRACTITIONER_ROLE = ResourceName.PRACTITIONER_ROLE.value
ORGANIZATION = ResourceName.ORGANIZATION.value


@dataclass
class FetchResult:
    """Outcome of a single resource or search fetch."""

    ok: bool
    exists: bool = False
    fetching: bool = False
    resource: Any = None


@dataclass
class PatientFetchResult:
    """Outcome of a patient search by NHS number."""

    ok: bool
    exists: bool = False
    entry: bool | None = None
    total_count: int = 0
    processed_count: int = 0


@dataclass
class PostResult:
    ok: bool


class ResourceService:
    """Resolves FHIR resources for one session."""

    def __init__(
        self,
        cache: SessionCache,
        auth_service: AuthRestService,
        rest_service: ResourceRestService,
        subject_id: str | None = None,
        search_config: Mapping[str, Mapping[str, str]] | None = None,
    ):
        self.cache = cache
        self.auth_service = auth_service
        self.rest_service = rest_service
        self.subject_id = subject_id
        self.search_config = search_config

    async def _access_token(self, reason_code: ReasonCode) -> str:
        token = await self.auth_service.authenticate(reason_code, self.subject_id)
        return token.access_token

    def _map_query(self, resource_type: str, query_params: Mapping[str, Any]) -> str:
        return map_query(resource_type, query_params, self.search_config)

    async def fetch_patients(self, nhs_number: str) -> PatientFetchResult:
        """
        Search for the patient(s) with an NHS number and index them.

        ``processed_count`` only counts patients that were not already
        cached, so a result with more entries than processed ones points at
        duplicate identifiers upstream.
        """
        logger.info("Fetching patients for NHS number %s", nhs_number)

        patient_cache = self.cache.patient_cache

        if patient_cache.by_nhs_number.exists(nhs_number):
            return PatientFetchResult(ok=False, exists=True)

        fetch_result = await self.fetch_resources(PATIENT, {"nhsNumber": nhs_number})
        bundle = fetch_result.resource

        if not bundle or not bundle.get("entry"):
            return PatientFetchResult(ok=False, entry=False)

        result = PatientFetchResult(ok=True, total_count=len(bundle["entry"]))

        for entry in bundle["entry"]:
            patient = entry.get("resource") or {}
            patient_uuid = patient.get("id")
            if not patient_uuid:
                continue
            if patient_cache.by_patient_uuid.exists(patient_uuid):
                continue

            patient_cache.by_patient_uuid.set(patient_uuid, patient)
            patient_cache.by_patient_uuid.set_nhs_number(patient_uuid, nhs_number)
            patient_cache.by_nhs_number.set_patient_uuid(nhs_number, patient_uuid)
            result.processed_count += 1

        logger.info(
            "Patient search for %s: %d entries, %d new",
            nhs_number,
            result.total_count,
            result.processed_count,
        )
        return result

    async def fetch_patient_practitioner(self, nhs_number: str) -> None:
        """
        Resolve the patient's GP practitioner and the practitioner's organization.

        Failures while resolving the GP are logged and swallowed; the patient
        itself must already be indexed.

        Raises:
            NotFoundError: If the patient has not been fetched
        """
        logger.info("Fetching practitioner for NHS number %s", nhs_number)

        patient_cache = self.cache.patient_cache
        patient_uuid = patient_cache.by_nhs_number.get_patient_uuid(nhs_number)
        patient = patient_cache.by_patient_uuid.get(patient_uuid)

        if not patient or not patient_uuid:
            raise NotFoundError(f"Patient {nhs_number} was not found.")

        practitioner_reference = get_practitioner_reference(patient)
        if not practitioner_reference:
            return

        try:
            organization_uuid = await self._resolve_practitioner_organization(
                practitioner_reference
            )
        except Exception:
            logger.exception(
                "Failed to resolve GP practice for %s (%s)",
                nhs_number,
                practitioner_reference,
            )
            return

        if organization_uuid:
            self.cache.resource_cache.by_uuid.set_related_uuid(
                PATIENT, patient_uuid, ORGANIZATION, organization_uuid
            )

    async def _resolve_practitioner_organization(self, practitioner_reference: str) -> str | None:
        by_uuid = self.cache.resource_cache.by_uuid
        practitioner = parse_reference(practitioner_reference)

        await self.fetch_resource(practitioner_reference)

        known = by_uuid.get_related_uuid(PRACTITIONER, practitioner.uuid, ORGANIZATION)
        if known:
            return known

        role_params = {"practitioner": practitioner_reference}
        role_result = await self.fetch_resources(PRACTITIONER_ROLE, role_params)
        roles = role_result.resource
        if roles is None:
            roles = self.cache.resource_cache.by_query.get(
                PRACTITIONER_ROLE, self._map_query(PRACTITIONER_ROLE, role_params)
            )

        for role in bundle_resources(roles, PRACTITIONER_ROLE):
            organization_reference = get_organization_reference(role)
            if not organization_reference:
                continue

            organization = parse_reference(organization_reference)
            await self.fetch_resource(organization_reference)
            if not by_uuid.exists(ORGANIZATION, organization.uuid):
                continue

            if not by_uuid.exists_related_uuid(PRACTITIONER, practitioner.uuid, ORGANIZATION):
                by_uuid.set_related_uuid(
                    PRACTITIONER, practitioner.uuid, ORGANIZATION, organization.uuid
                )
                by_uuid.set_related_uuid(
                    ORGANIZATION, organization.uuid, PRACTITIONER, practitioner.uuid
                )

        return by_uuid.get_related_uuid(PRACTITIONER, practitioner.uuid, ORGANIZATION)

    async def fetch_resource(self, reference: str) -> FetchResult:
        """Fetch a single ``Type/uuid`` resource at most once per command."""
        logger.info("Fetching resource %s", reference)

        parsed = parse_reference(reference)
        fetch_cache = self.cache.fetch_cache
        by_uuid = self.cache.resource_cache.by_uuid

        if by_uuid.exists(parsed.resource_type, parsed.uuid):
            return FetchResult(ok=False, exists=True)

        if fetch_cache.exists(reference):
            return FetchResult(ok=False, fetching=True)

        fetch_cache.set(reference)
        token = await self._access_token(ReasonCode.READ)
        resource = await self.rest_service.get_resource(reference, token)

        by_uuid.set(parsed.resource_type, parsed.uuid, resource)
        return FetchResult(ok=True, resource=resource)

    async def fetch_resources(
        self,
        resource_type: str,
        query_params: Mapping[str, Any],
        no_cache: bool = False,
    ) -> FetchResult:
        """
        Search for resources.

        With ``no_cache`` the session cache and in-flight markers are bypassed
        so the result always reflects the upstream state.
        """
        query = self._map_query(resource_type, query_params)
        logger.info("Fetching %s?%s (no_cache=%s)", resource_type, query, no_cache)

        fetch_cache = self.cache.fetch_cache
        by_query = self.cache.resource_cache.by_query

        if not no_cache:
            if by_query.exists(resource_type, query):
                return FetchResult(ok=False, exists=True)

            if fetch_cache.exists(query):
                return FetchResult(ok=False, fetching=True)

            fetch_cache.set(query)

        token = await self._access_token(ReasonCode.READ)
        resource = await self.rest_service.get_resources(resource_type, query, token)

        if not no_cache:
            by_query.set(resource_type, query, resource)

        return FetchResult(ok=True, resource=resource)

    async def post_resource(self, resource_type: str, body: dict[str, Any]) -> PostResult:
        """Create a resource upstream. Nothing is cached."""
        logger.info("Posting %s", resource_type)

        token = await self._access_token(ReasonCode.WRITE)
        await self.rest_service.post_resource(resource_type, body, token)
        return PostResult(ok=True)
