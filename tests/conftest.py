"""Test configuration and fixtures."""

from typing import Any, AsyncGenerator, Generator, Protocol
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.cache.session import SessionCache, SessionCacheRegistry
from src.clients.upstream import (
    get_auth_rest_service,
    get_resource_rest_service,
    get_session_registry,
)
from src.context import RequestContext
from src.core.auth import AuthenticatedSession, Role, get_current_session
from src.main import app
from src.services.auth_rest_service import AuthRestService, Token
from src.services.resource_rest_service import ResourceRestService
from src.services.resource_service import ResourceService
from src.settings import Settings, get_settings

# NHS number of the sample patient
TEST_NHS_NUMBER = "9999999000"
TEST_PATIENT_ID = "E1"
TEST_SESSION_ID = "test-session"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Configure pytest-anyio to use asyncio."""
    return "asyncio"


def make_bundle(*resources: dict[str, Any]) -> dict[str, Any]:
    """Wrap resources in a searchset Bundle."""
    return {
        "resourceType": "Bundle",
        "type": "searchset",
        "total": len(resources),
        "entry": [{"resource": r} for r in resources],
    }


def make_patient(
    patient_id: str = TEST_PATIENT_ID,
    practitioner_reference: str | None = "Practitioner/P1",
) -> dict[str, Any]:
    """Sample Patient resource."""
    patient: dict[str, Any] = {
        "resourceType": "Patient",
        "id": patient_id,
        "gender": "female",
        "birthDate": "1980-12-23",
        "name": [{"use": "official", "given": ["Jane"], "family": "Doe"}],
        "telecom": [
            {"system": "phone", "use": "home", "value": "01234567890"},
            {"system": "email", "value": "jane.doe@example.com"},
        ],
        "address": [
            {"use": "home", "line": ["1 High Street"], "city": "Leeds", "postalCode": "LS1 1AA"}
        ],
    }
    if practitioner_reference:
        patient["generalPractitioner"] = [{"reference": practitioner_reference}]
    return patient


def make_practitioner_role(
    practitioner_reference: str = "Practitioner/P1",
    organization_reference: str = "Organization/O1",
) -> dict[str, Any]:
    return {
        "resourceType": "PractitionerRole",
        "id": "R1",
        "practitioner": {"reference": practitioner_reference},
        "organization": {"reference": organization_reference},
    }


def make_organization(organization_id: str = "O1") -> dict[str, Any]:
    return {
        "resourceType": "Organization",
        "id": organization_id,
        "name": "Leeds Medical Practice",
        "address": [{"use": "work", "line": ["2 Park Row"], "city": "Leeds"}],
    }


@pytest.fixture
def test_settings() -> Settings:
    """Settings for a local environment."""
    return Settings(environment="local")


@pytest.fixture
def session_cache() -> SessionCache:
    return SessionCache()


@pytest.fixture
def mock_auth_service() -> AsyncMock:
    """Mock token client; every call issues the same token."""
    mock = AsyncMock(spec=AuthRestService)
    mock.authenticate.return_value = Token(access_token="test-token", token_type="Bearer")
    return mock


@pytest.fixture
def mock_rest_service() -> AsyncMock:
    """Mock FHIR server client resolving the default patient graph."""
    mock = AsyncMock(spec=ResourceRestService)

    resources = {
        "Practitioner/P1": {"resourceType": "Practitioner", "id": "P1"},
        "Organization/O1": make_organization(),
    }

    async def get_resource(reference: str, token: str) -> dict[str, Any]:
        return resources[reference]

    async def get_resources(resource_type: str, query: str, token: str) -> dict[str, Any]:
        if resource_type == "Patient":
            return make_bundle(make_patient())
        if resource_type == "PractitionerRole":
            return make_bundle(make_practitioner_role())
        return make_bundle()

    mock.get_resource.side_effect = get_resource
    mock.get_resources.side_effect = get_resources
    mock.post_resource.return_value = {}
    return mock


@pytest.fixture
def resource_service(
    session_cache: SessionCache,
    mock_auth_service: AsyncMock,
    mock_rest_service: AsyncMock,
) -> ResourceService:
    return ResourceService(
        cache=session_cache,
        auth_service=mock_auth_service,
        rest_service=mock_rest_service,
        subject_id=TEST_NHS_NUMBER,
    )


@pytest.fixture
def clinician_session() -> AuthenticatedSession:
    return AuthenticatedSession(session_id=TEST_SESSION_ID, role=Role.IDCR)


@pytest.fixture
def patient_session() -> AuthenticatedSession:
    return AuthenticatedSession(
        session_id=TEST_SESSION_ID, role=Role.PHR_USER, nhs_number=TEST_NHS_NUMBER
    )


@pytest.fixture
def request_context(
    test_settings: Settings,
    clinician_session: AuthenticatedSession,
    session_cache: SessionCache,
    mock_auth_service: AsyncMock,
    mock_rest_service: AsyncMock,
) -> RequestContext:
    return RequestContext(
        settings=test_settings,
        session=clinician_session,
        cache=session_cache,
        auth_service=mock_auth_service,
        rest_service=mock_rest_service,
    )


@pytest.fixture
def session_registry() -> SessionCacheRegistry:
    return SessionCacheRegistry(ttl=300.0)


class ClientFactory(Protocol):
    """Protocol for client factory fixture."""

    def __call__(self, session: AuthenticatedSession | None = None) -> AsyncClient: ...


@pytest.fixture
def client_factory(
    test_settings: Settings,
    mock_auth_service: AsyncMock,
    mock_rest_service: AsyncMock,
    session_registry: SessionCacheRegistry,
    clinician_session: AuthenticatedSession,
) -> Generator[ClientFactory, None, None]:
    """Factory for creating test clients with mocked dependencies."""

    def _create_client(session: AuthenticatedSession | None = None) -> AsyncClient:
        current_session = session or clinician_session
        app.dependency_overrides[get_settings] = lambda: test_settings
        app.dependency_overrides[get_auth_rest_service] = lambda: mock_auth_service
        app.dependency_overrides[get_resource_rest_service] = lambda: mock_rest_service
        app.dependency_overrides[get_session_registry] = lambda: session_registry
        app.dependency_overrides[get_current_session] = lambda: current_session

        transport = ASGITransport(app=app)
        return AsyncClient(transport=transport, base_url="http://testserver")

    yield _create_client

    app.dependency_overrides.clear()


@pytest.fixture
async def client(
    client_factory: ClientFactory,
) -> AsyncGenerator[AsyncClient, None]:
    """Async client for testing endpoints."""
    async with client_factory() as c:
        yield c
