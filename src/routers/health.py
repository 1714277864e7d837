"""Health check endpoint."""

from fastapi import APIRouter

from src.routers.deps import SessionRegistryDep, SettingsDep
from src.schemas.health import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: SettingsDep,
    registry: SessionRegistryDep,
) -> HealthResponse:
    """Report service health and the number of cached sessions."""
    return HealthResponse(
        status="healthy",
        environment=settings.environment,
        sessions=len(registry),
    )
