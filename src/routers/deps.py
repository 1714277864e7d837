"""Shared dependencies for routers."""

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends

from src.cache.session import SessionCacheRegistry
from src.clients.upstream import (
    get_auth_rest_service,
    get_resource_rest_service,
    get_session_registry,
)
from src.context import RequestContext
from src.core.auth import AuthenticatedSession, get_current_session
from src.services.auth_rest_service import AuthRestService
from src.services.resource_rest_service import ResourceRestService
from src.settings import Settings, get_settings

# Typed dependency aliases for use in endpoint signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
AuthRestServiceDep = Annotated[AuthRestService, Depends(get_auth_rest_service)]
ResourceRestServiceDep = Annotated[ResourceRestService, Depends(get_resource_rest_service)]
SessionRegistryDep = Annotated[SessionCacheRegistry, Depends(get_session_registry)]
CurrentSessionDep = Annotated[AuthenticatedSession, Depends(get_current_session)]


async def get_request_context(
    settings: SettingsDep,
    session: CurrentSessionDep,
    registry: SessionRegistryDep,
    auth_service: AuthRestServiceDep,
    rest_service: ResourceRestServiceDep,
) -> AsyncIterator[RequestContext]:
    """
    Build the request context for the current session.

    Holds the session's command lock for the whole request, so requests from
    one session are handled one at a time.
    """
    async with registry.lock(session.session_id):
        yield RequestContext(
            settings=settings,
            session=session,
            cache=registry.get(session.session_id),
            auth_service=auth_service,
            rest_service=rest_service,
        )


# Typed dependency for the request context
RequestContextDep = Annotated[RequestContext, Depends(get_request_context)]
