"""
Session-lifetime caches: the patient index and demographics results.

Unlike the working-set tiers these survive ``clean_caches`` so that a repeat
request for the same patient within the session skips upstream work.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class PatientRecord:
    """A cached Patient resource and the NHS number it was found by."""

    data: dict[str, Any] | None = None
    nhs_number: str | None = None


class ByNhsNumberIndex:
    """NHS number → patient UUID."""

    def __init__(self) -> None:
        self._uuids: dict[str, str] = {}

    def exists(self, nhs_number: str) -> bool:
        return str(nhs_number) in self._uuids

    def set_patient_uuid(self, nhs_number: str, patient_uuid: str) -> None:
        self._uuids[str(nhs_number)] = patient_uuid

    def get_patient_uuid(self, nhs_number: str) -> str | None:
        return self._uuids.get(str(nhs_number))


class ByPatientUuidIndex:
    """Patient UUID → Patient resource and NHS number."""

    def __init__(self) -> None:
        self._records: dict[str, PatientRecord] = {}

    def exists(self, patient_uuid: str) -> bool:
        record = self._records.get(patient_uuid)
        return record is not None and record.data is not None

    def get(self, patient_uuid: str | None) -> dict[str, Any] | None:
        if patient_uuid is None:
            return None
        record = self._records.get(patient_uuid)
        return record.data if record else None

    def set(self, patient_uuid: str, data: dict[str, Any]) -> None:
        self._records.setdefault(patient_uuid, PatientRecord()).data = data

    def set_nhs_number(self, patient_uuid: str, nhs_number: str) -> None:
        self._records.setdefault(patient_uuid, PatientRecord()).nhs_number = str(nhs_number)

    def get_nhs_number(self, patient_uuid: str) -> str | None:
        record = self._records.get(patient_uuid)
        return record.nhs_number if record else None


class PatientCache:
    """Patient index, looked up by NHS number or patient UUID."""

    def __init__(self) -> None:
        self.by_nhs_number = ByNhsNumberIndex()
        self.by_patient_uuid = ByPatientUuidIndex()


class DemographicsByNhsNumber:
    def __init__(self) -> None:
        self._responses: dict[str, dict[str, Any]] = {}

    def exists(self, nhs_number: str) -> bool:
        return str(nhs_number) in self._responses

    def get(self, nhs_number: str) -> dict[str, Any] | None:
        return self._responses.get(str(nhs_number))

    def set(self, nhs_number: str, response: dict[str, Any]) -> None:
        self._responses[str(nhs_number)] = response


class DemographicCache:
    """Built demographics responses, keyed by NHS number."""

    def __init__(self) -> None:
        self.by_nhs_number = DemographicsByNhsNumber()
