"""Base command."""

import logging
from abc import ABC, abstractmethod
from typing import Any

from src.context import RequestContext
from src.exceptions import NotFoundError
from src.fhir.references import ResourceName, bundle_resources
from src.validation import validate_patient_id

logger = logging.getLogger(__name__)


class Command(ABC):
    """
    A top-level unit of work.

    ``execute`` always wipes the session's working-set caches afterwards,
    whether ``run`` succeeded or raised.
    """

    def __init__(self, ctx: RequestContext):
        self.ctx = ctx
        self.session = ctx.session

    async def execute(self, *args: Any, **kwargs: Any) -> Any:
        logger.info("Executing %s", type(self).__name__)
        try:
            return await self.run(*args, **kwargs)
        finally:
            self.ctx.cache_service.clean_caches()

    @abstractmethod
    async def run(self, *args: Any, **kwargs: Any) -> Any:
        """Perform the command."""

    def resolve_patient_id(self, patient_id: str | int | None) -> str:
        """
        Determine and validate the NHS number a command acts on.

        Patient users may only act on themselves. In the dev environment the
        configured NHS number mapping is applied.
        """
        if self.session.is_patient:
            patient_id = self.session.nhs_number

        nhs_number = validate_patient_id(patient_id)

        settings = self.ctx.settings
        if settings.environment == "dev" and nhs_number in settings.nhs_number_mapping:
            nhs_number = settings.nhs_number_mapping[nhs_number]
            logger.debug("Mapped patient id to %s", nhs_number)

        return nhs_number

    async def fetch_primary_patient(self, nhs_number: str) -> dict[str, Any]:
        """
        Read the patient straight from upstream, bypassing the cache.

        Raises:
            NotFoundError: If no Patient matches the NHS number
        """
        result = await self.ctx.resource_service.fetch_resources(
            ResourceName.PATIENT.value, {"nhsNumber": nhs_number}, no_cache=True
        )
        patients = bundle_resources(result.resource, ResourceName.PATIENT.value)
        if not patients:
            raise NotFoundError(f"Patient {nhs_number} was not found.")
        return patients[0]
