"""
Upstream FHIR server client.

Reads single resources and search Bundles, and creates resources. Errors are
classified into transport failures, normalized upstream failures and other
unexpected responses.
"""

import json
import logging
import ssl
from typing import Any

import httpx

from src.exceptions import TransportError, UnexpectedResponseError, UpstreamError
from src.services.http import build_ssl_context, create_async_client
from src.settings import ApiHostConfig

logger = logging.getLogger(__name__)

FHIR_JSON = "application/fhir+json; charset=UTF-8"


def parse_json_body(text: str) -> Any:
    """Parse a response body, tolerating empty and non-JSON bodies."""
    if not text:
        return {}
    try:
        return json.loads(text)
    except ValueError:
        return {}


def check_error_response(response: httpx.Response) -> UpstreamError | None:
    """
    Normalize upstream failures.

    HTTP 5xx, and HTTP 400 carrying an OperationOutcome, become an
    UpstreamError. Anything else returns None.
    """
    status = response.status_code

    if status >= 500:
        try:
            message: Any = json.loads(response.text)
        except ValueError:
            message = response.text
        return UpstreamError(status=status, message=message)

    if status == 400:
        try:
            body = json.loads(response.text)
        except ValueError:
            return None
        if isinstance(body, dict) and body.get("resourceType") == "OperationOutcome":
            return UpstreamError(status=500, message=body)

    return None


class ResourceRestService:
    """HTTP client for the upstream FHIR server."""

    def __init__(
        self,
        config: ApiHostConfig,
        verify_tls: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.verify_tls = verify_tls
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _ssl_context(self) -> ssl.SSLContext | bool:
        return build_ssl_context(
            verify=self.verify_tls,
            ca_file=self.config.ca_file,
            cert_file=self.config.cert_file,
            key_file=self.config.private_key_file,
            passphrase=self.config.passphrase,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = create_async_client(
                base_url=self.config.host,
                timeout=self.config.timeout,
                verify=self._ssl_context() if self._transport is None else True,
                proxy=self.config.proxy,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        url: str,
        token: str,
        json_body: Any = None,
    ) -> Any:
        client = await self._get_client()
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": FHIR_JSON,
        }
        content = None
        if json_body is not None:
            headers["Content-Type"] = FHIR_JSON
            content = json.dumps(json_body)

        try:
            response = await client.request(method, url, headers=headers, content=content)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise TransportError(f"{method} {url} failed: {e}") from e

        error = check_error_response(response)
        if error is not None:
            logger.error("%s %s upstream error: %s", method, url, error.to_dict())
            raise error

        if response.status_code not in (200, 201):
            logger.error("%s %s returned %d", method, url, response.status_code)
            raise UnexpectedResponseError(response.status_code, response.text)

        return parse_json_body(response.text)

    async def get_resource(self, reference: str, token: str) -> Any:
        """
        Read a single resource.

        Args:
            reference: ``Type/uuid`` reference
            token: Bearer token

        Returns:
            The resource document (``{}`` for an empty or non-JSON body)
        """
        logger.info("Getting resource %s", reference)
        return await self._request("GET", f"/{reference}", token)

    async def get_resources(self, resource_type: str, query: str, token: str) -> Any:
        """
        Search for resources.

        Args:
            resource_type: FHIR resource type
            query: Search query string (without ``?``)
            token: Bearer token

        Returns:
            The search Bundle
        """
        logger.info("Searching %s?%s", resource_type, query)
        return await self._request("GET", f"/{resource_type}?{query}", token)

    async def post_resource(self, resource_type: str, body: dict[str, Any], token: str) -> Any:
        """Create a resource."""
        logger.info("Posting %s", resource_type)
        return await self._request("POST", f"/{resource_type}", token, json_body=body)
