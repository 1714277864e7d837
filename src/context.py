"""
Per-request context.

Carries the session, its cache and the upstream clients into commands. The
session-bound services are built on first access and reused for the rest of
the request.
"""

from functools import cached_property

from src.cache.session import SessionCache
from src.core.auth import AuthenticatedSession
from src.services.auth_rest_service import AuthRestService
from src.services.cache_service import CacheService
from src.services.demographic_service import DemographicService
from src.services.resource_rest_service import ResourceRestService
from src.services.resource_service import ResourceService
from src.settings import Settings


class RequestContext:
    """Everything a command needs for one request."""

    def __init__(
        self,
        settings: Settings,
        session: AuthenticatedSession,
        cache: SessionCache,
        auth_service: AuthRestService,
        rest_service: ResourceRestService,
    ):
        self.settings = settings
        self.session = session
        self.cache = cache
        self.auth_service = auth_service
        self.rest_service = rest_service

    @cached_property
    def resource_service(self) -> ResourceService:
        return ResourceService(
            cache=self.cache,
            auth_service=self.auth_service,
            rest_service=self.rest_service,
            subject_id=self.session.nhs_number,
        )

    @cached_property
    def cache_service(self) -> CacheService:
        return CacheService(self.cache)

    @cached_property
    def demographic_service(self) -> DemographicService:
        return DemographicService(self.cache)
