"""Custom exceptions for the FHIR resource service."""

from typing import Any


class FhirServiceError(Exception):
    """Base exception for FHIR service errors."""

    pass


class ConfigurationError(FhirServiceError):
    """Invalid or incomplete configuration."""

    pass


class ValidationError(FhirServiceError):
    """Error during input validation."""

    pass


class NotFoundError(FhirServiceError):
    """An expected resource is absent upstream or in the session cache."""

    pass


class TransportError(FhirServiceError):
    """Network failure talking to an upstream server."""

    pass


class UpstreamError(FhirServiceError):
    """Upstream server failure, normalized to a status and message."""

    def __init__(self, status: int, message: Any):
        super().__init__(f"Upstream error {status}: {message}")
        self.status = status
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "message": self.message}


class UnexpectedResponseError(FhirServiceError):
    """Upstream returned a non-success status that is not an upstream failure."""

    def __init__(self, status: int, body: str):
        super().__init__(body)
        self.status = status
        self.body = body


class AuthenticationError(FhirServiceError):
    """Token endpoint refused to issue a token."""

    def __init__(self, body: Any, status: int | None = None):
        super().__init__(body)
        self.body = body
        self.status = status
