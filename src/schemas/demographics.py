"""Demographics view schemas."""

from pydantic import BaseModel, ConfigDict, Field

NOT_KNOWN = "Not known"


class Demographics(BaseModel):
    """Patient demographics as rendered for the client."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    nhs_number: str = Field(alias="nhsNumber")
    name: str = NOT_KNOWN
    gender: str = NOT_KNOWN
    date_of_birth: int | None = Field(default=None, alias="dateOfBirth")
    address: str = NOT_KNOWN
    phone: str | int = NOT_KNOWN
    email: str = NOT_KNOWN
    gp_name: str = Field(default=NOT_KNOWN, alias="gpName")
    gp_address: str = Field(default=NOT_KNOWN, alias="gpAddress")
    gp_full_address: str = Field(default=NOT_KNOWN, alias="gpFullAddress")


class DemographicsResponse(BaseModel):
    """Response body for the demographics endpoint."""

    demographics: Demographics
