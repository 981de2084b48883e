"""
NGS report interpretation.

Variants, clinical annotations and actionability scores arrive as parallel
lists joined on ``variant_id``. ``NGSInterpreter`` indexes the annotations
and scores once so that filtering and sorting are dictionary lookups.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel

from oncosaferx.models.ngs import (
    ActionabilityScore,
    ClinicalAnnotation,
    GenomicVariant,
    NGSReport,
)

logger = logging.getLogger(__name__)

SORT_KEYS = ("actionability", "vaf", "quality")


class VariantFilter(BaseModel):
    tier: str = "all"
    significance: str = "all"
    min_actionability: float = 0
    evidence_level: str = "all"


class NGSSummary(BaseModel):
    report_id: str
    variant_count: int
    tier_one_count: int
    pathogenic_count: int
    fda_approved_options: int
    tmb: str | None = None
    msi: str | None = None
    hrd: str | None = None


class NGSInterpreter:
    """Read-only view over one report with indexed annotation lookups."""

    def __init__(self, report: NGSReport):
        self.report = report
        self._annotations: dict[str, ClinicalAnnotation] = {
            a.variant_id: a for a in report.annotations
        }
        self._scores: dict[str, ActionabilityScore] = {
            s.variant_id: s for s in report.actionability_scores
        }

    def annotation(self, variant_id: str) -> ClinicalAnnotation | None:
        return self._annotations.get(variant_id)

    def actionability(self, variant_id: str) -> ActionabilityScore | None:
        return self._scores.get(variant_id)

    def filter_variants(
        self,
        tier: str = "all",
        significance: str = "all",
        min_actionability: float = 0,
        evidence_level: str = "all",
    ) -> list[GenomicVariant]:
        """Variants matching every criterion; ``all`` disables a criterion.

        A variant without an annotation (or score) fails any non-``all``
        criterion on it. The actionability floor only applies to variants
        that have a score.
        """
        result: list[GenomicVariant] = []
        for variant in self.report.variants:
            annotation = self._annotations.get(variant.id)
            score = self._scores.get(variant.id)

            if tier != "all" and (score is None or score.tier != tier):
                continue
            if significance != "all" and (
                annotation is None or annotation.clinical_significance != significance
            ):
                continue
            if score is not None and score.overall_score < min_actionability:
                continue
            if evidence_level != "all" and (
                annotation is None or annotation.evidence_level != evidence_level
            ):
                continue
            result.append(variant)
        return result

    def apply_filter(self, criteria: VariantFilter) -> list[GenomicVariant]:
        return self.filter_variants(**criteria.model_dump())

    def sort_variants(self, variants: list[GenomicVariant], by: str = "actionability") -> list[GenomicVariant]:
        """Descending by actionability score (missing as 0), VAF or quality.

        Any other key returns the input order.
        """
        if by == "actionability":
            return sorted(
                variants,
                key=lambda v: -(self._scores[v.id].overall_score if v.id in self._scores else 0),
            )
        if by == "vaf":
            return sorted(variants, key=lambda v: -v.variant_allele_frequency)
        if by == "quality":
            return sorted(variants, key=lambda v: -v.quality_score)
        return list(variants)

    def summary(self) -> NGSSummary:
        report = self.report
        return NGSSummary(
            report_id=report.id,
            variant_count=len(report.variants),
            tier_one_count=sum(1 for s in report.actionability_scores if s.tier == "Tier I"),
            pathogenic_count=sum(
                1 for a in report.annotations if a.clinical_significance == "Pathogenic"
            ),
            fda_approved_options=sum(s.fda_approved_options for s in report.actionability_scores),
            tmb=(
                f"{report.tumor_mutational_burden.value} {report.tumor_mutational_burden.unit} "
                f"({report.tumor_mutational_burden.interpretation})"
                if report.tumor_mutational_burden
                else None
            ),
            msi=report.microsatellite_instability.status if report.microsatellite_instability else None,
            hrd=(
                report.homologous_recombination_deficiency.status
                if report.homologous_recombination_deficiency
                else None
            ),
        )


def generate_sample_report() -> NGSReport:
    """Demo targeted-panel report (EGFR L858R, TP53 R273H, PIK3CA H1047R, BRCA1 VUS)."""
    return NGSReport.model_validate(
        {
            "id": "RPT-2024-001",
            "patient_id": "PT-2024-001",
            "sample_id": "NGS-2024-001",
            "test_type": "Targeted Panel",
            "laboratory": "Molecular Diagnostics Lab",
            "report_date": "2024-01-15",
            "variants": [
                {
                    "id": "var-1", "gene": "EGFR", "transcript": "NM_005228.5",
                    "chromosome": "chr7", "position": 55249071, "reference": "T",
                    "alternate": "G", "variant_type": "SNV", "amino_acid_change": "p.L858R",
                    "exon": "exon21", "variant_allele_frequency": 0.42, "read_depth": 1247,
                    "quality_score": 598.2, "gnomad_frequency": 0.000001,
                    "cosmic_count": 8947, "variant_caller": "GATK",
                },
                {
                    "id": "var-2", "gene": "TP53", "transcript": "NM_000546.6",
                    "chromosome": "chr17", "position": 7577120, "reference": "G",
                    "alternate": "A", "variant_type": "SNV", "amino_acid_change": "p.R273H",
                    "exon": "exon8", "variant_allele_frequency": 0.67, "read_depth": 892,
                    "quality_score": 423.7, "gnomad_frequency": 0.000002,
                    "cosmic_count": 1247, "variant_caller": "GATK",
                },
                {
                    "id": "var-3", "gene": "PIK3CA", "transcript": "NM_006218.4",
                    "chromosome": "chr3", "position": 178952085, "reference": "A",
                    "alternate": "G", "variant_type": "SNV", "amino_acid_change": "p.H1047R",
                    "exon": "exon20", "variant_allele_frequency": 0.38, "read_depth": 756,
                    "quality_score": 387.9, "gnomad_frequency": 0.000003,
                    "cosmic_count": 2847, "variant_caller": "GATK",
                },
                {
                    "id": "var-4", "gene": "BRCA1", "transcript": "NM_007294.4",
                    "chromosome": "chr17", "position": 43057063, "reference": "G",
                    "alternate": "T", "variant_type": "SNV", "amino_acid_change": "p.S1655F",
                    "exon": "exon16", "variant_allele_frequency": 0.51, "read_depth": 1124,
                    "quality_score": 512.8, "gnomad_frequency": 0.0000001,
                    "cosmic_count": 23, "variant_caller": "GATK",
                },
            ],
            "annotations": [
                {
                    "variant_id": "var-1",
                    "clinical_significance": "Pathogenic",
                    "evidence_level": "A",
                    "therapeutic_implications": [
                        {
                            "drug": "Osimertinib", "indication": "NSCLC",
                            "response_type": "Responsive", "level_of_evidence": "Level 1",
                            "approval_status": "FDA Approved",
                            "references": ["PMID:29151359", "PMID:27718847"],
                        },
                        {
                            "drug": "Erlotinib", "indication": "NSCLC",
                            "response_type": "Responsive", "level_of_evidence": "Level 1",
                            "approval_status": "FDA Approved",
                            "references": ["PMID:15118073", "PMID:16014882"],
                        },
                    ],
                    "diagnostic_implications": [
                        {
                            "significance": "Activating mutation in EGFR tyrosine kinase domain",
                            "description": "Oncogenic driver mutation in non-small cell lung cancer",
                            "guidelines": ["NCCN NSCLC Guidelines", "ESMO Guidelines"],
                        }
                    ],
                    "prognostic_implications": [
                        {
                            "outcome": "Overall Survival", "direction": "Favorable",
                            "evidence": "Improved OS with targeted therapy vs chemotherapy",
                        }
                    ],
                    "resistance_implications": [
                        {
                            "mechanism": "T790M gatekeeper mutation",
                            "drugs_affected": ["Erlotinib", "Gefitinib", "Afatinib"],
                            "alternative_treatments": ["Osimertinib", "Combination therapy"],
                        }
                    ],
                },
                {
                    "variant_id": "var-2",
                    "clinical_significance": "Pathogenic",
                    "evidence_level": "B",
                    "therapeutic_implications": [
                        {
                            "drug": "APR-246", "indication": "Solid tumors",
                            "response_type": "Responsive", "level_of_evidence": "Level 3A",
                            "approval_status": "Clinical Trial",
                            "references": ["PMID:32139907"],
                        }
                    ],
                    "diagnostic_implications": [
                        {
                            "significance": "Loss of tumor suppressor function",
                            "description": "DNA-binding domain mutation affecting p53 function",
                            "guidelines": ["NCCN Genetic Testing Guidelines"],
                        }
                    ],
                    "prognostic_implications": [
                        {
                            "outcome": "Treatment Response", "direction": "Unfavorable",
                            "evidence": "Associated with chemotherapy resistance",
                        }
                    ],
                    "resistance_implications": [
                        {
                            "mechanism": "Loss of DNA damage response",
                            "drugs_affected": ["Platinum compounds", "DNA damaging agents"],
                            "alternative_treatments": ["Immunotherapy", "p53 reactivators"],
                        }
                    ],
                },
                {
                    "variant_id": "var-3",
                    "clinical_significance": "Pathogenic",
                    "evidence_level": "A",
                    "therapeutic_implications": [
                        {
                            "drug": "Alpelisib", "indication": "Breast Cancer",
                            "response_type": "Responsive", "level_of_evidence": "Level 1",
                            "approval_status": "FDA Approved",
                            "references": ["PMID:31091374"],
                        }
                    ],
                    "diagnostic_implications": [
                        {
                            "significance": "PI3K pathway activation",
                            "description": "Oncogenic hotspot mutation in PIK3CA",
                            "guidelines": ["NCCN Breast Cancer Guidelines"],
                        }
                    ],
                    "prognostic_implications": [
                        {
                            "outcome": "Treatment Response", "direction": "Variable",
                            "evidence": "Context-dependent response to PI3K inhibitors",
                        }
                    ],
                    "resistance_implications": [
                        {
                            "mechanism": "PI3K pathway hyperactivation",
                            "drugs_affected": ["Endocrine therapy", "Chemotherapy"],
                            "alternative_treatments": ["PI3K inhibitors", "mTOR inhibitors"],
                        }
                    ],
                },
            ],
            "actionability_scores": [
                {
                    "variant_id": "var-1", "overall_score": 94.2,
                    "therapeutic_actionability": 96.8, "diagnostic_actionability": 92.1,
                    "prognostic_actionability": 89.5, "resistance_actionability": 91.3,
                    "tier": "Tier I", "priority": "High", "confidence": 97.2,
                    "evidence_count": 247, "fda_approved_options": 3,
                    "clinical_trial_options": 15, "guideline_recommendations": 8,
                },
                {
                    "variant_id": "var-2", "overall_score": 67.8,
                    "therapeutic_actionability": 58.4, "diagnostic_actionability": 84.2,
                    "prognostic_actionability": 76.9, "resistance_actionability": 51.7,
                    "tier": "Tier II", "priority": "Medium", "confidence": 82.1,
                    "evidence_count": 89, "fda_approved_options": 0,
                    "clinical_trial_options": 8, "guideline_recommendations": 3,
                },
                {
                    "variant_id": "var-3", "overall_score": 81.5,
                    "therapeutic_actionability": 87.2, "diagnostic_actionability": 78.9,
                    "prognostic_actionability": 72.1, "resistance_actionability": 88.4,
                    "tier": "Tier I", "priority": "High", "confidence": 89.7,
                    "evidence_count": 156, "fda_approved_options": 1,
                    "clinical_trial_options": 12, "guideline_recommendations": 5,
                },
            ],
            "quality_metrics": {
                "sample_id": "NGS-2024-001",
                "sequencing_platform": "Illumina NovaSeq 6000",
                "coverage_metrics": {
                    "mean_coverage": 847.2, "median_coverage": 792.1,
                    "percentage_20x": 99.8, "percentage_100x": 98.2, "uniformity": 94.7,
                },
                "quality_metrics": {
                    "q30_bases": 96.8, "gc_content": 42.1,
                    "duplication_rate": 8.3, "contamination_rate": 0.12,
                },
                "technical_metrics": {
                    "total_reads": 28473920, "mapped_reads": 27891047,
                    "properly_paired": 96.2, "insert_size_mean": 387.4,
                    "insert_size_std": 45.8,
                },
                "variant_calling": {
                    "total_variants": 1847, "filtered_variants": 247, "snvs": 1523,
                    "indels": 189, "cnvs": 67, "fusions": 14,
                },
                "overall_quality": "Excellent",
                "quality_score": 96.8,
                "recommendations": [
                    "High quality sequencing data suitable for clinical interpretation",
                    "Excellent coverage uniformity across target regions",
                    "Low contamination and duplication rates",
                ],
            },
            "tumor_mutational_burden": {
                "value": 14.2, "unit": "mutations/Mb",
                "interpretation": "High", "percentile": 87.4,
            },
            "microsatellite_instability": {
                "status": "MSS", "score": 2.1, "interpretation": "Microsatellite stable",
            },
            "homologous_recombination_deficiency": {
                "score": 35.8, "status": "HRD+",
                "interpretation": "Homologous recombination deficient",
            },
            "signatures": [
                {
                    "name": "SBS1", "contribution": 0.45,
                    "etiology": "Spontaneous deamination of 5-methylcytosine",
                    "clinical_relevance": "Age-related signature",
                },
                {
                    "name": "SBS4", "contribution": 0.23, "etiology": "Tobacco smoking",
                    "clinical_relevance": "Associated with smoking history",
                },
                {
                    "name": "SBS6", "contribution": 0.18,
                    "etiology": "Defective DNA mismatch repair",
                    "clinical_relevance": "MMR deficiency signature",
                },
            ],
            "copy_number_alterations": [
                {
                    "gene": "MYC", "alteration": "Amplification", "fold_change": 4.2,
                    "significance": "Oncogenic amplification",
                },
                {
                    "gene": "CDKN2A", "alteration": "Deletion", "fold_change": -2.8,
                    "significance": "Tumor suppressor loss",
                },
            ],
            "structural_variants": [
                {
                    "type": "Fusion", "genes": ["EML4", "ALK"],
                    "breakpoints": ["chr2:42522656", "chr2:29447681"],
                    "significance": "Oncogenic fusion",
                }
            ],
        }
    )
