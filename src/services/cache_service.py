"""Cache lifecycle for one session."""

import logging
from typing import Any

from src.cache.session import SessionCache

logger = logging.getLogger(__name__)


class CacheService:
    """Reads long-lived results and wipes working-set tiers after commands."""

    def __init__(self, cache: SessionCache):
        self.cache = cache

    def get_demographics(self, nhs_number: str) -> dict[str, Any] | None:
        """Get a previously built demographics response, if any."""
        logger.info("Looking up cached demographics for %s", nhs_number)
        return self.cache.demographic_cache.by_nhs_number.get(nhs_number)

    def clean_caches(self) -> None:
        """
        Remove data that is no longer needed once a command has completed.

        Clears in-flight markers and the by-UUID/by-query tiers. The patient
        index and demographics cache are kept for the rest of the session.
        """
        logger.debug(
            "Cleaning caches: %d in flight, %d by uuid, %d by query",
            len(self.cache.fetch_cache),
            len(self.cache.resource_cache.by_uuid),
            len(self.cache.resource_cache.by_query),
        )
        self.cache.fetch_cache.delete_all()
        self.cache.resource_cache.delete_all()
