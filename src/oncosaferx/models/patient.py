"""Patient profile data models."""

from __future__ import annotations

from datetime import date
from uuid import uuid4

from pydantic import BaseModel, Field


class Demographics(BaseModel):
    first_name: str
    last_name: str
    date_of_birth: date | None = None
    sex: str = "other"
    height_cm: float | None = None
    weight_kg: float | None = None


class Medication(BaseModel):
    """A medication on the patient's list.

    ``dosage`` and ``frequency`` are kept as entered ("10 mg", "every 6 hours")
    and parsed on demand.
    """

    name: str
    dosage: str = ""
    frequency: str = ""
    route: str | None = None
    start_date: date | None = None


class Allergy(BaseModel):
    allergen: str
    reaction: str | None = None
    severity: str | None = None


class LabValue(BaseModel):
    name: str
    value: float
    unit: str = ""
    collected_on: date | None = None


class MedicalHistoryEntry(BaseModel):
    condition: str
    diagnosed_date: date | None = None
    status: str = "active"


class TreatmentHistoryEntry(BaseModel):
    regimen: str
    start_date: date | None = None
    end_date: date | None = None
    response: str | None = None


class PatientProfile(BaseModel):
    """A patient as held in the patient store.

    Sub-objects are replaced wholesale on update; there is no partial-update
    protocol.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    demographics: Demographics
    medications: list[Medication] = []
    allergies: list[Allergy] = []
    lab_values: list[LabValue] = []
    medical_history: list[MedicalHistoryEntry] = []
    treatment_history: list[TreatmentHistoryEntry] = []

    @property
    def full_name(self) -> str:
        return f"{self.demographics.first_name} {self.demographics.last_name}"


class ClinicalAlert(BaseModel):
    """An alert raised against a patient and shown until acknowledged."""

    id: str
    type: str
    severity: str
    title: str
    message: str
    timestamp: str
    patient_id: str | None = None
    source: str = "system"
    is_acknowledged: bool = False
    acknowledged_by: str | None = None
    acknowledged_at: str | None = None
