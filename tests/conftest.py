"""Pytest configuration and fixtures."""

from datetime import date

import pytest

from oncosaferx.models.drug import Drug
from oncosaferx.models.patient import (
    Demographics,
    LabValue,
    MedicalHistoryEntry,
    Medication,
    PatientProfile,
)
from oncosaferx.utils.storage import JsonStorage


@pytest.fixture
def storage(tmp_path) -> JsonStorage:
    """JSON blob storage rooted in a temporary directory."""
    return JsonStorage(tmp_path / "storage")


@pytest.fixture
def sample_drugs() -> list[Drug]:
    """Three minimal drug records with distinct rxcuis."""
    return [
        Drug(rxcui="1001", name="Carboplatin", fda_approved=True, oncology_drug=True),
        Drug(rxcui="1002", name="Cisplatin", fda_approved=True, oncology_drug=True),
        Drug(rxcui="2003", name="Ondansetron", fda_approved=True),
    ]


@pytest.fixture
def sample_patient() -> PatientProfile:
    """A 74-year-old (as of 2024) female patient on an opioid and a benzodiazepine."""
    return PatientProfile(
        id="patient-1",
        demographics=Demographics(
            first_name="Jane",
            last_name="Doe",
            date_of_birth=date(1950, 3, 2),
            sex="female",
            height_cm=165,
            weight_kg=60,
        ),
        medications=[
            Medication(name="Oxycodone", dosage="10 mg", frequency="every 6 hours"),
            Medication(name="Lorazepam", dosage="1 mg", frequency="at bedtime"),
        ],
        lab_values=[
            LabValue(name="ANC", value=1200, unit="cells/uL", collected_on=date(2024, 1, 10)),
            LabValue(name="Platelets", value=180000, unit="cells/uL", collected_on=date(2024, 1, 10)),
            LabValue(name="Serum Creatinine", value=2.0, unit="mg/dL", collected_on=date(2023, 12, 1)),
            LabValue(name="Creatinine", value=1.0, unit="mg/dL", collected_on=date(2024, 1, 10)),
        ],
        medical_history=[
            MedicalHistoryEntry(condition="Chronic low back pain"),
            MedicalHistoryEntry(condition="Major depression"),
        ],
    )
