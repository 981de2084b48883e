"""Data models for OncoSafeRx."""

from oncosaferx.models.drug import Drug, DrugComparison
from oncosaferx.models.ngs import NGSReport
from oncosaferx.models.patient import ClinicalAlert, PatientProfile
from oncosaferx.models.user import AuthState, UserProfile
from oncosaferx.models.workflow import WorkflowInstance, WorkflowTemplate

__all__ = [
    "Drug",
    "DrugComparison",
    "NGSReport",
    "ClinicalAlert",
    "PatientProfile",
    "AuthState",
    "UserProfile",
    "WorkflowInstance",
    "WorkflowTemplate",
]
