#!/usr/bin/env python3
"""
Resolve a patient's demographics against the configured upstream FHIR server.

Runs the same command the API uses, with a throwaway session, and prints the
demographics response. Useful for checking upstream credentials and the GP
practice lookup for a given NHS number.
"""

import argparse
import asyncio
import json
import logging

from src.cache.session import SessionCache
from src.clients.upstream import (
    close_upstream_clients,
    get_auth_rest_service,
    get_resource_rest_service,
)
from src.commands import GetDemographicsCommand
from src.context import RequestContext
from src.core.auth import AuthenticatedSession, Role
from src.settings import get_settings


async def fetch_demographics(nhs_number: str) -> dict:
    """Run the demographics command for one NHS number."""
    settings = get_settings()
    ctx = RequestContext(
        settings=settings,
        session=AuthenticatedSession(session_id="cli", role=Role.IDCR),
        cache=SessionCache(),
        auth_service=get_auth_rest_service(),
        rest_service=get_resource_rest_service(),
    )
    try:
        return await GetDemographicsCommand(ctx).execute(nhs_number)
    finally:
        await close_upstream_clients()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("nhs_number", help="NHS number of the patient")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    response = asyncio.run(fetch_demographics(args.nhs_number))
    print(json.dumps(response, indent=2))


if __name__ == "__main__":
    main()
