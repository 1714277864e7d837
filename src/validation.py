"""Input validation for patient identifiers."""

from src.exceptions import ValidationError

NHS_NUMBER_LENGTH = 10


def is_nhs_number_valid(nhs_number: str) -> bool:
    """Check that an NHS number is ten digits."""
    return len(nhs_number) == NHS_NUMBER_LENGTH and nhs_number.isdigit()


def validate_patient_id(patient_id: str | int | None) -> str:
    """
    Validate a patient id and return it as a string.

    Raises:
        ValidationError: If the id is missing or not a ten digit NHS number
    """
    if patient_id is None or str(patient_id).strip() == "":
        raise ValidationError("patientId was not defined")

    value = str(patient_id).strip()
    if not is_nhs_number_valid(value):
        raise ValidationError(f"patientId {value} is invalid")

    return value
