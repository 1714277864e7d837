"""Shared httpx client construction for upstream servers."""

import logging
import ssl

import httpx

from src.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def build_ssl_context(
    verify: bool,
    ca_file: str | None = None,
    cert_file: str | None = None,
    key_file: str | None = None,
    passphrase: str | None = None,
) -> ssl.SSLContext | bool:
    """
    Build the ``verify`` argument for an httpx client.

    When verification is enabled the context trusts ``ca_file`` (or the system
    store) and presents the client certificate for mutual TLS if one is
    configured. When disabled, certificate validation is switched off.
    """
    if not verify:
        return False

    try:
        context = ssl.create_default_context(cafile=ca_file)
        if cert_file:
            context.load_cert_chain(cert_file, keyfile=key_file, password=passphrase)
    except (OSError, ssl.SSLError) as e:
        raise ConfigurationError(f"Failed to load TLS material: {e}") from e
    return context


def create_async_client(
    base_url: str,
    timeout: float,
    verify: ssl.SSLContext | bool = True,
    proxy: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an httpx AsyncClient for an upstream server."""
    logger.debug("Creating HTTP client for %s (proxy=%s)", base_url, bool(proxy))
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(timeout),
        verify=verify,
        proxy=proxy,
        transport=transport,
    )
