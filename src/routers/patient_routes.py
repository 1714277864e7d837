"""Patient demographics, consent and policy endpoints."""

from fastapi import APIRouter, status

from src.commands import (
    GetDemographicsCommand,
    GetPatientCommand,
    GetPatientConsentCommand,
    GetPoliciesCommand,
    PostConsentCommand,
)
from src.routers.deps import RequestContextDep
from src.schemas.consent import OkResponse, PolicyConsent, ResourcesResponse
from src.schemas.demographics import DemographicsResponse

router = APIRouter(prefix="/api", tags=["Patient"])


@router.get(
    "/demographics/{patient_id}",
    response_model=DemographicsResponse,
    response_model_by_alias=True,
)
async def get_demographics(patient_id: str, ctx: RequestContextDep) -> DemographicsResponse:
    """
    Get a patient's demographics, including their GP practice.

    Repeat requests within the session are served from the session cache.
    """
    response = await GetDemographicsCommand(ctx).execute(patient_id)
    return DemographicsResponse.model_validate(response)


@router.get("/patient/{patient_id}", response_model=ResourcesResponse)
async def get_patient(patient_id: str, ctx: RequestContextDep) -> ResourcesResponse:
    """Get the patient's Patient resource."""
    response = await GetPatientCommand(ctx).execute(patient_id)
    return ResourcesResponse.model_validate(response)


@router.get("/patient/{patient_id}/consent", response_model=ResourcesResponse)
async def get_patient_consent(patient_id: str, ctx: RequestContextDep) -> ResourcesResponse:
    """Get the Consent resources given by the patient."""
    response = await GetPatientConsentCommand(ctx).execute(patient_id)
    return ResourcesResponse.model_validate(response)


@router.post("/consent", response_model=OkResponse, status_code=status.HTTP_201_CREATED)
async def post_consent(policies: list[PolicyConsent], ctx: RequestContextDep) -> OkResponse:
    """Record the session patient's consent to the given policies."""
    response = await PostConsentCommand(ctx).execute([p.id for p in policies])
    return OkResponse.model_validate(response)


@router.get("/policies", response_model=ResourcesResponse)
async def get_policies(ctx: RequestContextDep, name: str | None = None) -> ResourcesResponse:
    """Look up Policy resources by name."""
    response = await GetPoliciesCommand(ctx).execute(name)
    return ResourcesResponse.model_validate(response)
