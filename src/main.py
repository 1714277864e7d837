"""FHIR Resource Service - session-scoped FHIR resource resolution."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from src.clients.upstream import close_upstream_clients
from src.exceptions import (
    AuthenticationError,
    ConfigurationError,
    NotFoundError,
    TransportError,
    UnexpectedResponseError,
    UpstreamError,
    ValidationError,
)
from src.routers import health, patient_routes
from src.settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan management."""
    # Startup
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    yield
    # Shutdown
    await close_upstream_clients()


app = FastAPI(
    title="FHIR Resource Service",
    description="Resolves Patient, Practitioner, Organization, Consent and Policy resources from an upstream FHIR server",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    """Invalid patient identifiers and search parameters."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
    )


@app.exception_handler(NotFoundError)
async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)},
    )


@app.exception_handler(UpstreamError)
async def handle_upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
    """Normalized upstream failures keep their status."""
    logger.error("Upstream error: %s", exc.to_dict())
    return JSONResponse(
        status_code=exc.status,
        content={"detail": exc.to_dict()},
    )


@app.exception_handler(UnexpectedResponseError)
async def handle_unexpected_response(
    request: Request, exc: UnexpectedResponseError
) -> JSONResponse:
    logger.error("Unexpected upstream response %d", exc.status)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": exc.body},
    )


@app.exception_handler(AuthenticationError)
async def handle_authentication_error(
    request: Request, exc: AuthenticationError
) -> JSONResponse:
    """The upstream token endpoint refused to issue a token."""
    logger.error("Upstream authentication failed: %s", exc.body)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "Upstream authentication failed"},
    )


@app.exception_handler(TransportError)
async def handle_transport_error(request: Request, exc: TransportError) -> JSONResponse:
    """Handle network/connection errors to upstream servers."""
    logger.error("Upstream unavailable: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Service temporarily unavailable"},
    )


@app.exception_handler(ConfigurationError)
async def handle_configuration_error(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    logger.error("Configuration error: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Service misconfigured"},
    )


@app.exception_handler(PydanticValidationError)
async def handle_pydantic_validation_error(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    """Handle Pydantic ValidationError and return 422."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()},
    )


@app.exception_handler(Exception)
async def handle_unhandled_exceptions(request: Request, exc: Exception) -> JSONResponse:
    """Catch and log all unhandled exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Register routers
app.include_router(health.router)
app.include_router(patient_routes.router)


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint."""
    return {"service": "fhir-resource-service", "version": "0.1.0"}
