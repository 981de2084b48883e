"""
Side-by-side drug comparison.

Scores and annotates drugs with simple rule-based heuristics:
  comparison_score  base 50, +20 FDA approved, +15 oncology drug,
                    +10 fewer than 5 side effects, +5 fewer than 3
                    contraindications, clamped to 0-100
  strengths / weaknesses / clinical_notes  fixed sentences keyed on the
                    same attributes
"""

from __future__ import annotations

from oncosaferx.constants import MAX_COMPARISON_DRUGS
from oncosaferx.models.drug import Drug, DrugComparison, DrugDosing
from oncosaferx.services.selection import DrugSelection


def comparison_score(drug: Drug) -> int:
    score = 50
    if drug.fda_approved:
        score += 20
    if drug.oncology_drug:
        score += 15
    if len(drug.side_effects) < 5:
        score += 10
    if len(drug.contraindications) < 3:
        score += 5
    return min(100, max(0, score))


def strengths(drug: Drug) -> list[str]:
    result: list[str] = []
    if drug.fda_approved:
        result.append("FDA approved with established safety profile")
    if drug.oncology_drug:
        result.append("Specifically designed for oncology indications")
    if len(drug.side_effects) < 5:
        result.append("Favorable side effect profile")
    if len(drug.indications) > 3:
        result.append("Broad spectrum of indications")
    return result


def weaknesses(drug: Drug) -> list[str]:
    result: list[str] = []
    if len(drug.contraindications) > 2:
        result.append("Multiple contraindications limit patient eligibility")
    if len(drug.side_effects) > 5:
        result.append("Extensive side effect profile requires careful monitoring")
    if len(drug.monitoring) > 4:
        result.append("Intensive monitoring requirements")
    return result


def clinical_notes(drug: Drug) -> list[str]:
    notes: list[str] = []
    if drug.category and "Alkylating" in drug.category:
        notes.append("Consider premedication for hypersensitivity reactions")
    if "Nephrotoxicity" in drug.side_effects:
        notes.append("Ensure adequate hydration and monitor renal function closely")
    if "Myelosuppression" in drug.side_effects:
        notes.append("Monitor CBC regularly and adjust dose for hematologic toxicity")
    return notes


def enhance_for_comparison(drug: Drug) -> DrugComparison:
    """Return ``drug`` annotated with score, strengths, weaknesses and notes."""
    return DrugComparison(
        **drug.model_dump(include=set(Drug.model_fields)),
        comparison_score=comparison_score(drug),
        strengths=strengths(drug),
        weaknesses=weaknesses(drug),
        clinical_notes=clinical_notes(drug),
    )


def default_available_drugs() -> list[Drug]:
    """The offline catalog offered when the backend search is unavailable."""
    return [
        Drug(
            id="1",
            rxcui="1001",
            name="Carboplatin",
            generic_name="carboplatin",
            brand_names=["Paraplatin"],
            category="Alkylating Agent",
            mechanism="DNA crosslinking",
            indications=["Ovarian cancer", "Lung cancer"],
            contraindications=["Severe bone marrow depression"],
            side_effects=["Myelosuppression", "Nephrotoxicity"],
            dosing=DrugDosing(
                standard="AUC 5-6 mg/mL*min IV",
                renal="Adjust based on CrCl",
                hepatic="No adjustment needed",
            ),
            monitoring=["CBC", "Renal function"],
            fda_approved=True,
            oncology_drug=True,
        ),
        Drug(
            id="2",
            rxcui="1002",
            name="Cisplatin",
            generic_name="cisplatin",
            brand_names=["Platinol"],
            category="Alkylating Agent",
            mechanism="DNA crosslinking",
            indications=["Testicular cancer", "Ovarian cancer", "Bladder cancer"],
            contraindications=["Renal impairment", "Hearing impairment"],
            side_effects=["Nephrotoxicity", "Ototoxicity", "Neuropathy"],
            dosing=DrugDosing(
                standard="20 mg/m² IV daily × 5 days",
                renal="Contraindicated if CrCl < 60",
                hepatic="No adjustment needed",
            ),
            monitoring=["Renal function", "Hearing tests", "Neurologic exam"],
            fda_approved=True,
            oncology_drug=True,
        ),
    ]


class DrugComparisonService:
    """Holds up to four drugs under comparison, annotated on entry."""

    def __init__(self, available: list[Drug] | None = None):
        self.available = available if available is not None else default_available_drugs()
        self.selection = DrugSelection(capacity=MAX_COMPARISON_DRUGS)

    @property
    def compared(self) -> list[DrugComparison]:
        return self.selection.drugs  # type: ignore[return-value]

    def add(self, drug: Drug) -> bool:
        return self.selection.add(enhance_for_comparison(drug))

    def remove(self, rxcui: str) -> bool:
        return self.selection.remove(rxcui)

    def search_available(self, query: str) -> list[Drug]:
        """Case-insensitive substring match on name, generic name or category."""
        q = query.lower()
        return [
            d
            for d in self.available
            if q in d.name.lower()
            or q in (d.generic_name or "").lower()
            or q in (d.category or "").lower()
        ]

    def rank(self) -> list[DrugComparison]:
        """Compared drugs by score, best first; ties keep selection order."""
        return sorted(self.compared, key=lambda d: -d.comparison_score)
