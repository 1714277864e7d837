"""Patient, consent and policy commands."""

import logging
from typing import Any

from src.commands.base import Command
from src.exceptions import ValidationError
from src.fhir.references import ResourceName, bundle_resources

logger = logging.getLogger(__name__)


class GetPatientCommand(Command):
    """Read the patient's Patient resource from upstream."""

    async def run(self, patient_id: str | int | None) -> dict[str, Any]:
        nhs_number = self.resolve_patient_id(patient_id)
        patient = await self.fetch_primary_patient(nhs_number)
        return {"ok": True, "resources": patient}


class GetPatientConsentCommand(Command):
    """List the Consent resources given by a patient."""

    async def run(self, patient_id: str | int | None) -> dict[str, Any]:
        nhs_number = self.resolve_patient_id(patient_id)
        patient = await self.fetch_primary_patient(nhs_number)

        result = await self.ctx.resource_service.fetch_resources(
            ResourceName.CONSENT.value,
            {"consentor": f"Patient/{patient['id']}"},
            no_cache=True,
        )
        consents = bundle_resources(result.resource, ResourceName.CONSENT.value)
        return {"ok": True, "resources": consents}


class GetPoliciesCommand(Command):
    """Look up Policy resources by name."""

    async def run(self, policy_name: str | None) -> dict[str, Any]:
        if not policy_name:
            raise ValidationError("Policy name was not defined")

        result = await self.ctx.resource_service.fetch_resources(
            ResourceName.POLICY.value, {"name": policy_name}, no_cache=True
        )
        policies = bundle_resources(result.resource, ResourceName.POLICY.value)
        return {"ok": True, "resources": policies}


def build_consent(patient_uuid: str, policy_id: str) -> dict[str, Any]:
    """Build a Consent given by the patient to a Policy."""
    patient_reference = {"reference": f"Patient/{patient_uuid}"}
    return {
        "resourceType": ResourceName.CONSENT.value,
        "policyRule": f"Policy/{policy_id}",
        "patient": patient_reference,
        "consentingParty": [patient_reference],
    }


class PostConsentCommand(Command):
    """Record the session patient's consent to each given policy."""

    async def run(self, policy_ids: list[str]) -> dict[str, Any]:
        nhs_number = self.resolve_patient_id(self.session.nhs_number)
        patient = await self.fetch_primary_patient(nhs_number)

        consents = [build_consent(patient["id"], policy_id) for policy_id in policy_ids]
        logger.info("Posting %d consents for %s", len(consents), nhs_number)

        for consent in consents:
            await self.ctx.resource_service.post_resource(ResourceName.CONSENT.value, consent)

        return {"ok": True}
