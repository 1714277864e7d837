"""
OAuth2 grant strategies for the upstream token endpoint.

Two strategies are supported, selected once from configuration:
1. client_credentials - the grant type alone, client authenticated via Basic auth
2. jwt-bearer - a signed assertion describing the caller and the call purpose

Usage:
    provider = create_auth_grant_provider(settings.auth, settings.environment)
    form = provider.build_form(ReasonCode.READ, subject_id="9999999000")
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import IntEnum
from functools import lru_cache
from typing import Any
from uuid import uuid4

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

from src.exceptions import ConfigurationError
from src.settings import CLIENT_CREDENTIALS_GRANT, JWT_BEARER_GRANT, AuthHostConfig

ASSERTION_VALIDITY_SECONDS = 3600


class ReasonCode(IntEnum):
    """Call purpose embedded in the assertion ``rsn`` claim."""

    READ = 2
    WRITE = 5

    @property
    def is_system_level(self) -> bool:
        """System-level calls do not carry the acting patient's identifier."""
        return self is ReasonCode.WRITE


@lru_cache(maxsize=8)
def load_private_key(path: str, passphrase: str | None = None) -> PrivateKeyTypes:
    """Load a PEM private key from disk, decrypting it with the passphrase."""
    try:
        with open(path, "rb") as key_file:
            pem = key_file.read()
        return serialization.load_pem_private_key(
            pem,
            password=passphrase.encode() if passphrase else None,
        )
    except (OSError, ValueError, TypeError) as e:
        raise ConfigurationError(f"Failed to load signing key {path}: {e}") from e


class AuthGrantProvider(ABC):
    """Builds the form body of a token request."""

    def __init__(self, config: AuthHostConfig):
        self.config = config

    @property
    def grant_type(self) -> str:
        return self.config.grant_type

    @abstractmethod
    def build_form(
        self, reason_code: ReasonCode, subject_id: str | None = None
    ) -> dict[str, str]:
        """Return the form-encoded fields for the token request."""


class ClientCredentialsGrant(AuthGrantProvider):
    """``grant_type=client_credentials``; the client authenticates via Basic auth."""

    def build_form(
        self, reason_code: ReasonCode, subject_id: str | None = None
    ) -> dict[str, str]:
        return {"grant_type": self.grant_type}


class AssertionBearerGrant(AuthGrantProvider):
    """
    ``jwt-bearer`` grant with an assertion describing the call.

    In the ``local`` environment the assertion is sent as plain JSON. Elsewhere
    it is an RS256 JWT signed with the configured private key.
    """

    def __init__(self, config: AuthHostConfig, environment: str):
        super().__init__(config)
        self.environment = environment
        self._signing_key: PrivateKeyTypes | None = None

        if not self.signs_assertions:
            return
        if not config.signing_private_key_file:
            raise ConfigurationError(
                "auth.signing_private_key_file is required for the jwt-bearer grant "
                f"in environment {environment!r}"
            )
        self._signing_key = load_private_key(
            config.signing_private_key_file, config.signing_passphrase
        )

    @property
    def signs_assertions(self) -> bool:
        return self.environment != "local"

    def build_claims(
        self,
        reason_code: ReasonCode,
        subject_id: str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Build the assertion payload."""
        assertion = self.config.assertion
        issued_at = int((now or datetime.now(timezone.utc)).timestamp())

        claims: dict[str, Any] = {
            "iss": assertion.iss,
            "scope": assertion.scope,
            "aud": assertion.aud,
            "ods": assertion.ods,
            "usr": assertion.usr,
            "sub": assertion.sub or assertion.iss,
            "azp": assertion.azp,
            "rsn": int(reason_code),
            "jti": str(uuid4()),
            "iat": issued_at,
            "exp": issued_at + ASSERTION_VALIDITY_SECONDS,
        }

        if subject_id and not reason_code.is_system_level:
            claims["pat"] = {"nhs": str(subject_id)}

        return claims

    def build_assertion(
        self, reason_code: ReasonCode, subject_id: str | None = None
    ) -> str:
        claims = self.build_claims(reason_code, subject_id)
        if not self.signs_assertions:
            return json.dumps(claims)
        return jwt.encode(claims, self._signing_key, algorithm="RS256")

    def build_form(
        self, reason_code: ReasonCode, subject_id: str | None = None
    ) -> dict[str, str]:
        return {
            "grant_type": self.grant_type,
            "assertion": self.build_assertion(reason_code, subject_id),
        }


def create_auth_grant_provider(config: AuthHostConfig, environment: str) -> AuthGrantProvider:
    """
    Select the grant strategy for the configured grant type.

    Raises:
        ConfigurationError: If the grant type is not supported
    """
    if config.grant_type == CLIENT_CREDENTIALS_GRANT:
        return ClientCredentialsGrant(config)

    if config.grant_type == JWT_BEARER_GRANT:
        return AssertionBearerGrant(config, environment)

    raise ConfigurationError(
        f"Invalid grant_type: {config.grant_type}, check configuration."
    )
