"""
Dose-guidance threshold evaluation for regimen templates.

Compares entered lab values against a regimen's ``DoseThresholds`` and
returns the fixed recommendation for every threshold that is violated, in a
fixed rule order. Unset (or zero) thresholds never fire; values that do not
parse as finite numbers are ignored.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Callable

from pydantic import BaseModel

from oncosaferx.models.patient import LabValue, PatientProfile
from oncosaferx.models.workflow import DoseAdjustment, DoseRules, DoseThresholds

logger = logging.getLogger(__name__)

ANC_MESSAGE = (
    "ANC below threshold: hold treatment and repeat CBC; consider G-CSF based on risk."
)
PLATELETS_MESSAGE = "Platelets below threshold: delay treatment until recovery."
BILIRUBIN_MESSAGE = "Elevated bilirubin: consider dose adjustment/hold per protocol."
CRCL_MESSAGE = "Low CrCl: adjust renally cleared agents or delay per protocol."
NEUROPATHY_MESSAGE = (
    "Neuropathy grade high: hold neurotoxic agent (e.g., oxaliplatin) "
    "and resume reduced or omit."
)
DIARRHEA_MESSAGE = (
    "Diarrhea grade high: hold offending agent (e.g., irinotecan) "
    "and manage with antidiarrheals; resume reduced."
)

# Lab names (lower-cased) recognised for each guidance input
LAB_ALIASES: dict[str, str] = {
    "anc": "anc",
    "absolute neutrophil count": "anc",
    "neutrophils absolute": "anc",
    "neutrophil absolute count": "anc",
    "neutrophils": "anc",
    "platelets": "platelets",
    "plt": "platelets",
    "platelet count": "platelets",
    "bilirubin": "bilirubin",
    "tbili": "bilirubin",
    "t.bili": "bilirubin",
    "total bilirubin": "bilirubin",
    "bilirubin total": "bilirubin",
    "creatinine": "creatinine",
    "serum creatinine": "creatinine",
    "scr": "creatinine",
    "creatinine serum": "creatinine",
}

DEFAULT_AGE = 60
DEFAULT_WEIGHT_KG = 70.0


class LabInputs(BaseModel):
    """Values entered for a guidance check, as typed (strings) or numbers."""

    anc: str | float | None = None
    platelets: str | float | None = None
    bilirubin: str | float | None = None
    crcl: str | float | None = None
    neuropathy_grade: str | float | None = None
    diarrhea_grade: str | float | None = None


class DoseGuidanceResult(BaseModel):
    recommendations: list[str] = []
    adjustments: list[DoseAdjustment] = []

    @property
    def hold(self) -> bool:
        return bool(self.recommendations)


def to_number(value: str | float | None) -> float | None:
    """Parse a finite number, or None for blanks, junk, NaN and infinities."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _below(value: float, limit: float) -> bool:
    return value < limit


def _above(value: float, limit: float) -> bool:
    return value > limit


def _at_or_above(value: float, limit: float) -> bool:
    return value >= limit


# (threshold field, input field, comparison, message) in reporting order
_RULES: list[tuple[str, str, Callable[[float, float], bool], str]] = [
    ("anc_min", "anc", _below, ANC_MESSAGE),
    ("platelets_min", "platelets", _below, PLATELETS_MESSAGE),
    ("total_bilirubin_max", "bilirubin", _above, BILIRUBIN_MESSAGE),
    ("crcl_min", "crcl", _below, CRCL_MESSAGE),
    ("neuropathy_grade_hold", "neuropathy_grade", _at_or_above, NEUROPATHY_MESSAGE),
    ("diarrhea_grade_hold", "diarrhea_grade", _at_or_above, DIARRHEA_MESSAGE),
]


def evaluate_thresholds(thresholds: DoseThresholds, values: LabInputs) -> list[str]:
    """Return the messages of every violated threshold, in rule order."""
    recommendations: list[str] = []
    for threshold_field, input_field, violates, message in _RULES:
        limit = getattr(thresholds, threshold_field)
        if not limit:
            continue
        value = to_number(getattr(values, input_field))
        if value is not None and violates(value, limit):
            recommendations.append(message)
    return recommendations


def evaluate_dose_guidance(
    thresholds: DoseThresholds | DoseRules | None, values: LabInputs
) -> DoseGuidanceResult:
    """Evaluate a template's dose rules (or bare thresholds) against lab inputs.

    When given full ``DoseRules`` the template's static adjustments are passed
    through on the result.
    """
    if thresholds is None:
        return DoseGuidanceResult()
    adjustments: list[DoseAdjustment] = []
    if isinstance(thresholds, DoseRules):
        adjustments = list(thresholds.adjustments)
        thresholds = thresholds.thresholds

    recommendations = evaluate_thresholds(thresholds, values)
    if recommendations:
        logger.info("Dose guidance: %d threshold(s) violated", len(recommendations))
    return DoseGuidanceResult(recommendations=recommendations, adjustments=adjustments)


# ---------------------------------------------------------------------------
# Prefill from the selected patient
# ---------------------------------------------------------------------------


def latest_labs(patient: PatientProfile) -> dict[str, LabValue]:
    """Most recent lab per canonical name; undated labs lose to dated ones."""
    latest: dict[str, LabValue] = {}
    for lab in patient.lab_values:
        key = LAB_ALIASES.get(lab.name.strip().lower())
        if key is None:
            continue
        current = latest.get(key)
        if current is None or (lab.collected_on or date.min) > (current.collected_on or date.min):
            latest[key] = lab
    return latest


def estimate_crcl_from_patient(
    patient: PatientProfile, today: date | None = None
) -> int | None:
    """Cockcroft-Gault estimate from the latest serum creatinine, rounded.

    Age defaults to 60 without a date of birth and weight to 70 kg. Returns
    None when there is no positive creatinine value.
    """
    creatinine = latest_labs(patient).get("creatinine")
    if creatinine is None or not creatinine.value > 0:
        return None

    demographics = patient.demographics
    weight = demographics.weight_kg or DEFAULT_WEIGHT_KG
    if demographics.date_of_birth is not None:
        age = (today or date.today()).year - demographics.date_of_birth.year
    else:
        age = DEFAULT_AGE
    sex_factor = 0.85 if demographics.sex.lower() == "female" else 1.0

    crcl = ((140 - age) * weight * sex_factor) / (72 * creatinine.value)
    return math.floor(crcl + 0.5)


def lab_inputs_from_patient(
    patient: PatientProfile | None, today: date | None = None
) -> LabInputs:
    """Prefill guidance inputs from a patient's labs. No patient gives empty inputs."""
    if patient is None:
        return LabInputs()
    labs = latest_labs(patient)
    return LabInputs(
        anc=labs["anc"].value if "anc" in labs else None,
        platelets=labs["platelets"].value if "platelets" in labs else None,
        bilirubin=labs["bilirubin"].value if "bilirubin" in labs else None,
        crcl=estimate_crcl_from_patient(patient, today),
    )
