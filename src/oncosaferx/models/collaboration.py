"""Care team and tumor board models."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field


class TeamMember(BaseModel):
    id: str
    name: str
    role: str  # physician, nurse, pharmacist, pathologist, radiologist, ...
    title: str = ""
    email: str = ""
    specialty: str | None = None
    availability: str = "available"  # available, busy, away, offline


class CareTeam(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    description: str = ""
    specialty: str | None = None
    members: list[TeamMember] = []
    last_activity: datetime | None = None


class TumorBoardCase(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    patient_id: str
    presenter_id: str | None = None
    title: str
    clinical_question: str = ""
    diagnosis: str = ""
    stage: str = ""
    genomic_reports: list[str] = []  # NGS report IDs


class TumorBoard(BaseModel):
    """A scheduled multidisciplinary case-review meeting."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    team_id: str
    type: str = "weekly"  # weekly, urgent, molecular, radiation, surgical
    scheduled_date: datetime
    duration: int = 60  # minutes
    location: str = ""
    virtual_meeting_url: str | None = None
    chair: str | None = None
    attendees: list[str] = []
    cases: list[TumorBoardCase] = []
    notes: str = ""
    status: str = "scheduled"  # scheduled, completed, cancelled
    last_modified: datetime | None = None
