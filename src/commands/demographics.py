"""Demographics command."""

import logging
from typing import Any

from src.commands.base import Command
from src.formatters.telephone import reformat_telephone_number

logger = logging.getLogger(__name__)


class GetDemographicsCommand(Command):
    """Build the demographics view, resolving the patient's GP practice."""

    async def run(self, patient_id: str | int | None) -> dict[str, Any]:
        nhs_number = self.resolve_patient_id(patient_id)

        cached = self.ctx.cache_service.get_demographics(nhs_number)
        if cached:
            logger.debug("Returning cached demographics for %s", nhs_number)
            return reformat_telephone_number(cached)

        resource_service = self.ctx.resource_service
        await resource_service.fetch_patients(nhs_number)
        await resource_service.fetch_patient_practitioner(nhs_number)

        response = self.ctx.demographic_service.get_by_patient_id(nhs_number)
        return reformat_telephone_number(response)
