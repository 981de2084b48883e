"""Workflow template and instance models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class StepState(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class InstanceState(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class ChecklistItem(BaseModel):
    id: str
    text: str
    required: bool = True
    completed: bool = False
    notes: str | None = None


class WorkflowStep(BaseModel):
    """One step of a template. ``type`` is task, decision, review, approval or notification."""

    id: str
    title: str
    description: str = ""
    type: str = "task"
    estimated_time: int = 0  # minutes
    dependencies: list[str] = []
    assigned_role: list[str] = []
    required_data: list[str] = []
    checklist: list[ChecklistItem] = []


class DoseThresholds(BaseModel):
    """Lab thresholds a regimen is held against.

    Minimums hold when the entered value is below them; maximums when above;
    grade holds when the entered grade is at or above them.
    """

    anc_min: float | None = None
    platelets_min: float | None = None
    total_bilirubin_max: float | None = None
    crcl_min: float | None = None
    neuropathy_grade_hold: float | None = None
    diarrhea_grade_hold: float | None = None


class DoseAdjustment(BaseModel):
    condition: str
    recommendation: str


class DoseRules(BaseModel):
    thresholds: DoseThresholds = DoseThresholds()
    adjustments: list[DoseAdjustment] = []


class WorkflowTemplate(BaseModel):
    """A static, ordered list of steps.

    Category is one of patient-care, medication-review, treatment-planning,
    quality-assurance or research. Regimen templates additionally carry
    ``dose_rules``.
    """

    id: str
    name: str
    description: str = ""
    category: str = "patient-care"
    steps: list[WorkflowStep] = []
    estimated_duration: int = 0  # minutes
    difficulty: str = "moderate"
    specialties: list[str] = []
    tags: list[str] = []
    usage_count: int = 0
    rating: float = 0.0
    created_by: str = ""
    last_modified: str = ""
    is_public: bool = True
    mobile_optimized: bool = False
    dose_rules: DoseRules | None = None


class StepStatus(BaseModel):
    step_id: str
    status: StepState = StepState.PENDING
    started_date: str | None = None
    completed_date: str | None = None
    assigned_to: str | None = None
    time_spent: int | None = None
    notes: str | None = None


class WorkflowNote(BaseModel):
    id: str
    author: str
    content: str
    timestamp: str
    step_id: str | None = None
    type: str = "comment"


class WorkflowInstance(BaseModel):
    """A running copy of a template.

    ``current_step`` is 1-based and points at the step being worked on.
    """

    id: str
    template_id: str
    template_name: str
    patient_id: str | None = None
    patient_name: str | None = None
    status: InstanceState = InstanceState.ACTIVE
    current_step: int = 1
    started_date: str
    completed_date: str | None = None
    assigned_to: list[str] = []
    progress: int = 0
    step_statuses: list[StepStatus] = []
    notes: list[WorkflowNote] = []
