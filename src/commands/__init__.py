"""
Top-level commands.

Each command runs against one RequestContext and wipes the session's
working-set caches when it finishes.
"""

from src.commands.base import Command
from src.commands.consent import (
    GetPatientCommand,
    GetPatientConsentCommand,
    GetPoliciesCommand,
    PostConsentCommand,
)
from src.commands.demographics import GetDemographicsCommand

__all__ = [
    "Command",
    "GetDemographicsCommand",
    "GetPatientCommand",
    "GetPatientConsentCommand",
    "GetPoliciesCommand",
    "PostConsentCommand",
]
