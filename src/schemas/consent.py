"""Patient, consent and policy schemas."""

from typing import Any

from pydantic import BaseModel, Field


class PolicyConsent(BaseModel):
    """A policy the patient consents to."""

    id: str = Field(min_length=1, description="Policy resource id")


class ResourcesResponse(BaseModel):
    """Response wrapping one or more FHIR resources."""

    ok: bool
    resources: dict[str, Any] | list[dict[str, Any]]


class OkResponse(BaseModel):
    ok: bool
