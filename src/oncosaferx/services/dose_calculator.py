"""
Body-surface-area, renal-function and carboplatin dose calculations.

BSA methods: mosteller (default), dubois, haycock, gehan.
Creatinine clearance methods: cockcroft_gault (default), mdrd, ckd_epi.
Carboplatin: Calvert formula, dose = target AUC x (CrCl + 25).
"""

import math

from pydantic import BaseModel

BSA_METHODS = ("mosteller", "dubois", "haycock", "gehan")
CRCL_METHODS = ("cockcroft_gault", "mdrd", "ckd_epi")


class BSACalculation(BaseModel):
    height_cm: float
    weight_kg: float
    method: str
    bsa: float  # m²


class CreatinineClearanceCalculation(BaseModel):
    age: int
    weight_kg: float
    creatinine: float  # mg/dL
    sex: str
    method: str
    clearance: float  # mL/min


class CarboplatinDosing(BaseModel):
    target_auc: float
    creatinine_clearance: float
    dose: int  # mg
    notes: list[str] = []


def _round_half_up(value: float, ndigits: int = 0) -> float:
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def calculate_bsa(height_cm: float, weight_kg: float, method: str = "mosteller") -> BSACalculation:
    """Body surface area in m², rounded to 2 decimals.

    Raises:
        ValueError: non-positive height/weight or an unknown method.
    """
    if height_cm <= 0 or weight_kg <= 0:
        raise ValueError("Height and weight must be positive")

    if method == "mosteller":
        bsa = math.sqrt(height_cm * weight_kg / 3600)
    elif method == "dubois":
        bsa = 0.007184 * weight_kg**0.425 * height_cm**0.725
    elif method == "haycock":
        bsa = 0.024265 * weight_kg**0.5378 * height_cm**0.3964
    elif method == "gehan":
        bsa = 0.0235 * weight_kg**0.51456 * height_cm**0.42246
    else:
        raise ValueError(f"Unknown BSA method: {method}")

    return BSACalculation(
        height_cm=height_cm,
        weight_kg=weight_kg,
        method=method,
        bsa=_round_half_up(bsa, 2),
    )


def calculate_creatinine_clearance(
    age: int,
    weight_kg: float,
    creatinine: float,
    sex: str,
    method: str = "cockcroft_gault",
) -> CreatinineClearanceCalculation:
    """Estimated creatinine clearance (mL/min), rounded to 1 decimal.

    ``sex`` is "male" or "female"; anything other than "female" uses the
    male coefficients.

    Raises:
        ValueError: non-positive age, weight or creatinine, or an unknown method.
    """
    if age <= 0 or weight_kg <= 0 or creatinine <= 0:
        raise ValueError("Age, weight and creatinine must be positive")

    female = sex.lower() == "female"
    if method == "cockcroft_gault":
        clearance = ((140 - age) * weight_kg) / (72 * creatinine)
        if female:
            clearance *= 0.85
    elif method == "mdrd":
        clearance = 175 * creatinine**-1.154 * age**-0.203 * (0.742 if female else 1.0)
    elif method == "ckd_epi":
        kappa = 0.7 if female else 0.9
        alpha = -0.329 if female else -0.411
        ratio = creatinine / kappa
        clearance = (
            141
            * min(ratio, 1) ** alpha
            * max(ratio, 1) ** -1.209
            * 0.993**age
            * (1.018 if female else 1.0)
        )
    else:
        raise ValueError(f"Unknown creatinine clearance method: {method}")

    return CreatinineClearanceCalculation(
        age=age,
        weight_kg=weight_kg,
        creatinine=creatinine,
        sex=sex,
        method=method,
        clearance=_round_half_up(clearance, 1),
    )


def calculate_carboplatin_dose(target_auc: float, creatinine_clearance: float) -> CarboplatinDosing:
    """Calvert-formula carboplatin dose with cautionary notes."""
    if target_auc <= 0:
        raise ValueError("Target AUC must be positive")
    if creatinine_clearance < 0:
        raise ValueError("Creatinine clearance cannot be negative")

    dose = target_auc * (creatinine_clearance + 25)
    notes: list[str] = []
    if creatinine_clearance < 60:
        notes.append("Reduced creatinine clearance - consider dose reduction")
    if target_auc > 6:
        notes.append("High AUC target - monitor for increased toxicity")
    if dose > 800:
        notes.append("High absolute dose - consider capping at 800mg")

    return CarboplatinDosing(
        target_auc=target_auc,
        creatinine_clearance=creatinine_clearance,
        dose=int(_round_half_up(dose)),
        notes=notes,
    )
