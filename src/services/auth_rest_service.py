"""
Upstream OAuth2 token client.

Tokens are requested fresh for every upstream call and never cached.
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError

from src.exceptions import AuthenticationError, TransportError
from src.providers.auth_grant import AuthGrantProvider, ReasonCode
from src.services.http import create_async_client
from src.settings import AuthHostConfig

logger = logging.getLogger(__name__)


class Token(BaseModel):
    """Token endpoint response."""

    access_token: str
    token_type: str | None = None
    expires_in: int | None = None


class AuthRestService:
    """HTTP client for the upstream token endpoint."""

    def __init__(
        self,
        config: AuthHostConfig,
        provider: AuthGrantProvider,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.provider = provider
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = create_async_client(
                base_url=self.config.host,
                timeout=self.config.timeout,
                proxy=self.config.proxy,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def authenticate(
        self, reason_code: ReasonCode, subject_id: str | None = None
    ) -> Token:
        """
        Request a new access token.

        Args:
            reason_code: Purpose of the upstream call the token is for
            subject_id: NHS number of the acting patient, if any

        Returns:
            The issued token

        Raises:
            TransportError: If the token endpoint cannot be reached
            AuthenticationError: If the token endpoint refuses the request
        """
        logger.info("Requesting token (grant_type=%s, rsn=%d)", self.provider.grant_type, reason_code)

        client = await self._get_client()
        form = self.provider.build_form(reason_code, subject_id)

        try:
            response = await client.post(
                self.config.path,
                data=form,
                auth=httpx.BasicAuth(self.config.client_id, self.config.client_secret),
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.error("Token request failed: %s", e)
            raise TransportError(f"Token request failed: {e}") from e

        if not response.is_success:
            logger.error("Token endpoint returned %d", response.status_code)
            raise AuthenticationError(response.text, status=response.status_code)

        try:
            body: Any = response.json()
            return Token.model_validate(body)
        except (ValueError, PydanticValidationError) as e:
            raise AuthenticationError(response.text, status=response.status_code) from e
