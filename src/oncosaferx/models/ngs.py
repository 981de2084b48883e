"""Next-generation sequencing report models.

Field names follow the JSON the report generator and the backend emit
(snake_case throughout), so reports validate directly from a response body.
"""

from pydantic import BaseModel


class GenomicVariant(BaseModel):
    id: str
    gene: str
    transcript: str = ""
    chromosome: str = ""
    position: int = 0
    reference: str = ""
    alternate: str = ""
    variant_type: str = "SNV"  # SNV, Insertion, Deletion, CNV, Fusion, SV
    amino_acid_change: str = ""
    exon: str = ""
    variant_allele_frequency: float = 0.0
    read_depth: int = 0
    quality_score: float = 0.0
    gnomad_frequency: float = 0.0
    cosmic_count: int = 0
    variant_caller: str = ""
    filter_status: str = "PASS"


class TherapeuticImplication(BaseModel):
    drug: str
    indication: str
    response_type: str
    level_of_evidence: str
    approval_status: str
    references: list[str] = []


class DiagnosticImplication(BaseModel):
    significance: str
    description: str
    guidelines: list[str] = []


class PrognosticImplication(BaseModel):
    outcome: str
    direction: str  # Favorable, Unfavorable, Variable
    evidence: str


class ResistanceImplication(BaseModel):
    mechanism: str
    drugs_affected: list[str] = []
    alternative_treatments: list[str] = []


class ClinicalAnnotation(BaseModel):
    variant_id: str
    clinical_significance: str  # Pathogenic, Likely Pathogenic, VUS, Likely Benign, Benign
    evidence_level: str  # A, B, C, D, R
    therapeutic_implications: list[TherapeuticImplication] = []
    diagnostic_implications: list[DiagnosticImplication] = []
    prognostic_implications: list[PrognosticImplication] = []
    resistance_implications: list[ResistanceImplication] = []


class ActionabilityScore(BaseModel):
    variant_id: str
    overall_score: float
    therapeutic_actionability: float = 0.0
    diagnostic_actionability: float = 0.0
    prognostic_actionability: float = 0.0
    resistance_actionability: float = 0.0
    tier: str  # Tier I .. Tier IV
    priority: str = "Low"
    confidence: float = 0.0
    evidence_count: int = 0
    fda_approved_options: int = 0
    clinical_trial_options: int = 0
    guideline_recommendations: int = 0


class CoverageMetrics(BaseModel):
    mean_coverage: float
    median_coverage: float
    percentage_20x: float
    percentage_100x: float
    uniformity: float


class SequencingQuality(BaseModel):
    q30_bases: float
    gc_content: float
    duplication_rate: float
    contamination_rate: float


class TechnicalMetrics(BaseModel):
    total_reads: int
    mapped_reads: int
    properly_paired: float
    insert_size_mean: float
    insert_size_std: float


class VariantCallingMetrics(BaseModel):
    total_variants: int
    filtered_variants: int
    snvs: int
    indels: int
    cnvs: int
    fusions: int


class QualityMetrics(BaseModel):
    sample_id: str
    sequencing_platform: str
    coverage_metrics: CoverageMetrics
    quality_metrics: SequencingQuality
    technical_metrics: TechnicalMetrics
    variant_calling: VariantCallingMetrics
    overall_quality: str  # Excellent, Good, Acceptable, Poor
    quality_score: float
    recommendations: list[str] = []


class TumorMutationalBurden(BaseModel):
    value: float
    unit: str = "mutations/Mb"
    interpretation: str  # High, Intermediate, Low
    percentile: float


class MicrosatelliteInstability(BaseModel):
    status: str  # MSI-H, MSI-L, MSS
    score: float
    interpretation: str


class HomologousRecombinationDeficiency(BaseModel):
    score: float
    status: str  # HRD+, HRD-
    interpretation: str


class MutationalSignature(BaseModel):
    name: str
    contribution: float
    etiology: str
    clinical_relevance: str


class CopyNumberAlteration(BaseModel):
    gene: str
    alteration: str  # Amplification, Deletion
    fold_change: float
    significance: str


class StructuralVariant(BaseModel):
    type: str  # Fusion, Translocation, Inversion, Duplication
    genes: list[str]
    breakpoints: list[str]
    significance: str


class NGSReport(BaseModel):
    """A full sequencing report for one sample.

    Variants, annotations and actionability scores are parallel lists joined
    on ``variant_id``; a variant may have neither.
    """

    id: str
    patient_id: str
    sample_id: str
    test_type: str  # Targeted Panel, Exome, Genome, RNA-seq, Liquid Biopsy
    laboratory: str
    report_date: str
    variants: list[GenomicVariant] = []
    annotations: list[ClinicalAnnotation] = []
    actionability_scores: list[ActionabilityScore] = []
    quality_metrics: QualityMetrics | None = None
    tumor_mutational_burden: TumorMutationalBurden | None = None
    microsatellite_instability: MicrosatelliteInstability | None = None
    homologous_recombination_deficiency: HomologousRecombinationDeficiency | None = None
    signatures: list[MutationalSignature] = []
    copy_number_alterations: list[CopyNumberAlteration] = []
    structural_variants: list[StructuralVariant] = []
