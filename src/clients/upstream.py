"""Dependency providers for upstream clients and the session cache registry."""

from src.cache.session import SessionCacheRegistry
from src.providers.auth_grant import create_auth_grant_provider
from src.services.auth_rest_service import AuthRestService
from src.services.resource_rest_service import ResourceRestService
from src.settings import get_settings

# Module-level singletons
_auth_rest_service: AuthRestService | None = None
_resource_rest_service: ResourceRestService | None = None
_session_registry: SessionCacheRegistry | None = None


def get_auth_rest_service() -> AuthRestService:
    """Get the AuthRestService singleton; the grant strategy is chosen here."""
    global _auth_rest_service
    if _auth_rest_service is None:
        settings = get_settings()
        provider = create_auth_grant_provider(settings.auth, settings.environment)
        _auth_rest_service = AuthRestService(settings.auth, provider)
    return _auth_rest_service


def get_resource_rest_service() -> ResourceRestService:
    """Get the ResourceRestService singleton."""
    global _resource_rest_service
    if _resource_rest_service is None:
        settings = get_settings()
        _resource_rest_service = ResourceRestService(
            settings.api, verify_tls=settings.verify_upstream_tls
        )
    return _resource_rest_service


def get_session_registry() -> SessionCacheRegistry:
    """Get the SessionCacheRegistry singleton."""
    global _session_registry
    if _session_registry is None:
        _session_registry = SessionCacheRegistry(ttl=get_settings().session_cache_ttl)
    return _session_registry


async def close_upstream_clients() -> None:
    """Close the HTTP clients of the upstream singletons."""
    if _auth_rest_service is not None:
        await _auth_rest_service.close()
    if _resource_rest_service is not None:
        await _resource_rest_service.close()
