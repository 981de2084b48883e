"""
Opioid misuse risk scoring and morphine milligram equivalent (MME) totals.

The risk score is a fixed weighted checklist evaluated against the patient's
age, free-text medical history and medication list (case-insensitive
substring matches). Scores map to tiers by inclusive upper bounds:
<=2 low, <=5 moderate, <=8 high, otherwise very_high.
"""

from __future__ import annotations

import logging
import re
from datetime import date

from pydantic import BaseModel

from oncosaferx.constants import (
    BENZODIAZEPINES,
    MME_CAUTION_THRESHOLD,
    MME_FACTORS,
    MME_HIGH_THRESHOLD,
    OPIOID_RISK_CUTOFFS,
)
from oncosaferx.models.patient import Medication, PatientProfile

logger = logging.getLogger(__name__)

RISK_RECOMMENDATIONS: dict[str, list[str]] = {
    "low": [
        "Standard opioid prescribing guidelines apply",
        "Monitor for signs of misuse at routine intervals",
    ],
    "moderate": [
        "Enhanced monitoring and shorter prescription intervals",
        "Consider non-opioid alternatives first",
        "Use prescription drug monitoring program (PDMP)",
    ],
    "high": [
        "Opioids only after non-opioid options exhausted",
        "Mandatory PDMP checks and frequent monitoring",
        "Consider addiction medicine consultation",
        "Naloxone prescription recommended",
    ],
    "very_high": [
        "Avoid opioids except in severe circumstances",
        "Immediate addiction medicine consultation",
        "Comprehensive substance abuse evaluation",
        "Naloxone prescription mandatory",
    ],
}


class RiskFactor(BaseModel):
    factor: str
    present: bool
    weight: int
    description: str


class OpioidRiskAssessment(BaseModel):
    overall_risk: str  # low, moderate, high, very_high
    risk_score: int
    max_score: int
    risk_factors: list[RiskFactor]
    recommendations: list[str]


class MMECalculation(BaseModel):
    medication: str
    dose: float
    frequency: str
    conversion_factor: float
    daily_mme: float


class PharmacogenomicResult(BaseModel):
    drug: str
    brand_name: str | None = None
    status: str  # normal, impaired, elevated_risk
    metabolizer_status: str
    enzyme: str
    enzyme_function: str
    is_prodrug: bool = False
    genetic_issues: list[str] = []
    recommendations: list[str] = []


def risk_tier_for_score(score: int) -> str:
    for upper_bound, tier in OPIOID_RISK_CUTOFFS:
        if score <= upper_bound:
            return tier
    return "very_high"


def _history_mentions(patient: PatientProfile | None, *terms: str) -> bool:
    if patient is None:
        return False
    return any(
        term in entry.condition.lower()
        for entry in patient.medical_history
        for term in terms
    )


def _age_over_65(patient: PatientProfile | None, today: date) -> bool:
    # calendar-year difference, matching how the report has always counted age
    if patient is None or patient.demographics.date_of_birth is None:
        return False
    return today.year - patient.demographics.date_of_birth.year > 65


def _on_benzodiazepine(patient: PatientProfile | None) -> bool:
    if patient is None:
        return False
    return any(
        benzo in med.name.lower()
        for med in patient.medications
        for benzo in BENZODIAZEPINES
    )


def assess_opioid_risk(
    patient: PatientProfile | None,
    *,
    cyp2d6_poor_metabolizer: bool = True,
    multiple_prescribers: bool = False,
    today: date | None = None,
) -> OpioidRiskAssessment:
    """Score ``patient`` against the weighted opioid-risk checklist.

    The CYP2D6 flag defaults to present (the bundled pharmacogenomic panel
    reports a poor metabolizer) and the prescriber flag to absent, since no
    prescription history is available. With no patient only those two flags
    can contribute.
    """
    today = today or date.today()
    risk_factors = [
        RiskFactor(
            factor="Age > 65 years",
            present=_age_over_65(patient, today),
            weight=2,
            description="Increased sensitivity to opioids and slower metabolism",
        ),
        RiskFactor(
            factor="History of substance abuse",
            present=_history_mentions(patient, "substance", "addiction"),
            weight=4,
            description="Significantly increases risk of opioid misuse and addiction",
        ),
        RiskFactor(
            factor="Depression/Anxiety",
            present=_history_mentions(patient, "depression", "anxiety", "psychiatric"),
            weight=2,
            description="Mental health conditions increase addiction vulnerability",
        ),
        RiskFactor(
            factor="Chronic pain condition",
            present=_history_mentions(patient, "pain", "arthritis", "fibromyalgia"),
            weight=1,
            description="Long-term opioid use increases dependency risk",
        ),
        RiskFactor(
            factor="CYP2D6 Poor Metabolizer",
            present=cyp2d6_poor_metabolizer,
            weight=2,
            description="Reduced efficacy of prodrug opioids may lead to dose escalation",
        ),
        RiskFactor(
            factor="Multiple prescribers",
            present=multiple_prescribers,
            weight=2,
            description="Lack of coordination increases risk of overprescribing",
        ),
        RiskFactor(
            factor="Concurrent benzodiazepines",
            present=_on_benzodiazepine(patient),
            weight=3,
            description="Dangerous combination increasing overdose risk",
        ),
    ]

    risk_score = sum(f.weight for f in risk_factors if f.present)
    max_score = sum(f.weight for f in risk_factors)
    tier = risk_tier_for_score(risk_score)
    logger.debug("Opioid risk score %d/%d -> %s", risk_score, max_score, tier)

    return OpioidRiskAssessment(
        overall_risk=tier,
        risk_score=risk_score,
        max_score=max_score,
        risk_factors=risk_factors,
        recommendations=list(RISK_RECOMMENDATIONS[tier]),
    )


# ---------------------------------------------------------------------------
# MME
# ---------------------------------------------------------------------------

# checked in order; the first match wins
_FREQUENCY_PATTERNS: list[tuple[re.Pattern[str], int]] = [
    (re.compile(r"twice|bid", re.IGNORECASE), 2),
    (re.compile(r"three|tid", re.IGNORECASE), 3),
    (re.compile(r"four|qid", re.IGNORECASE), 4),
    (re.compile(r"every\s*4", re.IGNORECASE), 6),
    (re.compile(r"every\s*6", re.IGNORECASE), 4),
    (re.compile(r"every\s*8", re.IGNORECASE), 3),
    (re.compile(r"every\s*12", re.IGNORECASE), 2),
]

_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def doses_per_day(frequency: str) -> int:
    for pattern, doses in _FREQUENCY_PATTERNS:
        if pattern.search(frequency):
            return doses
    return 1


def parse_dose(dosage: str) -> float:
    """Numeric dose from a free-text dosage ("10 mg" -> 10.0); 0 when absent."""
    digits = re.sub(r"[^0-9.]", "", dosage)
    match = _LEADING_NUMBER.match(digits)
    return float(match.group()) if match else 0.0


def _opioid_for(name: str) -> str | None:
    lower = name.lower()
    return next((opioid for opioid in MME_FACTORS if opioid in lower), None)


def calculate_mme(medications: list[Medication]) -> list[MMECalculation]:
    """Per-medication daily MME for every opioid on the list."""
    calculations: list[MMECalculation] = []
    for med in medications:
        opioid = _opioid_for(med.name)
        if opioid is None:
            continue
        dose = parse_dose(med.dosage)
        factor = MME_FACTORS[opioid]
        calculations.append(
            MMECalculation(
                medication=med.name,
                dose=dose,
                frequency=med.frequency,
                conversion_factor=factor,
                daily_mme=dose * factor * doses_per_day(med.frequency),
            )
        )
    return calculations


def total_mme(calculations: list[MMECalculation]) -> float:
    return sum(c.daily_mme for c in calculations)


def mme_advisory(total: float) -> str | None:
    """CDC-style advisory text for a daily MME total, or None below 50."""
    if total > MME_HIGH_THRESHOLD:
        return (
            f"Total daily MME of {total:.1f} exceeds CDC guideline of 90 MME/day. "
            "Consider dose reduction, tapering plan, or specialist consultation."
        )
    if total > MME_CAUTION_THRESHOLD:
        return (
            f"Total daily MME of {total:.1f} exceeds 50 MME/day. "
            "Enhanced monitoring and justification for continued therapy recommended."
        )
    return None


# ---------------------------------------------------------------------------
# Pharmacogenomic reference panel
# ---------------------------------------------------------------------------

PHARMACOGENOMIC_RESULTS: list[PharmacogenomicResult] = [
    PharmacogenomicResult(
        drug="alfentanil",
        brand_name="Alfenta",
        status="normal",
        metabolizer_status="normal",
        enzyme="CYP3A4",
        enzyme_function="normal function",
        recommendations=["Standard dosing appropriate", "Monitor for respiratory depression"],
    ),
    PharmacogenomicResult(
        drug="carisoprodol",
        brand_name="Soma",
        status="normal",
        metabolizer_status="normal",
        enzyme="CYP2D6",
        enzyme_function="normal function",
        recommendations=[
            "Standard dosing appropriate",
            "Monitor for sedation and abuse potential",
        ],
    ),
    PharmacogenomicResult(
        drug="codeine",
        status="impaired",
        metabolizer_status="poor",
        enzyme="CYP2D6",
        enzyme_function="poor metabolizer",
        is_prodrug=True,
        genetic_issues=["CYP2D6 poor metabolizer - reduced conversion to morphine"],
        recommendations=[
            "May not be effective due to poor conversion to active metabolite",
            "Consider alternative opioid (morphine, oxycodone)",
            "Avoid codeine for pain management",
        ],
    ),
    PharmacogenomicResult(
        drug="fentanyl",
        brand_name="Actiq, Duragesic, Sublimaze",
        status="elevated_risk",
        metabolizer_status="intermediate",
        enzyme="CYP3A4",
        enzyme_function="reduced function",
        genetic_issues=["CYP3A4 reduced function - increased exposure risk"],
        recommendations=[
            "Start with reduced dose (25-50% reduction)",
            "Extended monitoring for respiratory depression",
            "Consider dose titration more slowly",
        ],
    ),
    PharmacogenomicResult(
        drug="hydrocodone",
        status="impaired",
        metabolizer_status="poor",
        enzyme="CYP2D6",
        enzyme_function="poor metabolizer",
        is_prodrug=True,
        genetic_issues=["CYP2D6 poor metabolizer - reduced analgesic efficacy"],
        recommendations=[
            "Reduced efficacy expected",
            "Consider oxycodone or morphine instead",
            "Higher doses may be needed but with increased side effects",
        ],
    ),
    PharmacogenomicResult(
        drug="oxycodone",
        brand_name="OxyContin",
        status="normal",
        metabolizer_status="normal",
        enzyme="CYP3A4",
        enzyme_function="normal function",
        recommendations=[
            "Standard dosing appropriate",
            "Monitor for respiratory depression and sedation",
            "Good alternative for CYP2D6 poor metabolizers",
        ],
    ),
    PharmacogenomicResult(
        drug="tramadol",
        brand_name="Ultram",
        status="impaired",
        metabolizer_status="poor",
        enzyme="CYP2D6",
        enzyme_function="poor metabolizer",
        is_prodrug=True,
        genetic_issues=[
            "CYP2D6 poor metabolizer - reduced conversion to active O-desmethyltramadol"
        ],
        recommendations=[
            "Significantly reduced analgesic efficacy",
            "Consider non-tramadol alternatives",
            "Increased risk of seizures without analgesic benefit",
        ],
    ),
]


def pharmacogenomic_result(drug: str) -> PharmacogenomicResult | None:
    drug = drug.lower()
    return next((r for r in PHARMACOGENOMIC_RESULTS if r.drug == drug), None)
