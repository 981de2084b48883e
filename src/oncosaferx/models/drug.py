"""Drug data models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class DrugDosing(BaseModel):
    """Free-text dosing guidance, as shown on a drug card."""

    standard: str | None = None
    renal: str | None = None
    hepatic: str | None = None


class Drug(BaseModel):
    """A drug record fetched from the backend or a fixture.

    Identified by its RxNorm concept id (``rxcui``). Treated as immutable once
    fetched; comparison annotations live on ``DrugComparison`` instead.
    """

    rxcui: str
    name: str
    id: str | None = None
    generic_name: str | None = None
    brand_names: list[str] = []
    synonym: str | None = None
    tty: str | None = None
    category: str | None = None
    mechanism: str | None = None
    indications: list[str] = []
    contraindications: list[str] = []
    side_effects: list[str] = []
    interactions: list[str] = []
    dosing: DrugDosing | None = None
    monitoring: list[str] = []
    fda_approved: bool = False
    oncology_drug: bool = False
    clinical_insights: dict[str, Any] | None = None


class DrugComparison(Drug):
    """A drug annotated for side-by-side comparison."""

    comparison_score: int = 0
    strengths: list[str] = []
    weaknesses: list[str] = []
    clinical_notes: list[str] = []
