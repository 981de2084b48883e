"""
Workflow engine.

Starts instances from templates and tracks their step statuses. Each
instance moves one step at a time: the current step is ``in-progress``,
later steps are ``pending``, and finishing (completing or skipping) the
current step starts the next pending one. When none remain the instance is
completed.

``progress`` is recomputed on every transition as the share of completed or
skipped steps, in whole percent.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

from oncosaferx.models.workflow import (
    InstanceState,
    StepState,
    StepStatus,
    WorkflowInstance,
    WorkflowNote,
    WorkflowTemplate,
)
from oncosaferx.services.workflow_templates import builtin_templates, emergency_template

logger = logging.getLogger(__name__)

_FINISHED = (StepState.COMPLETED, StepState.SKIPPED)


class WorkflowError(ValueError):
    """Raised for invalid workflow transitions or unknown ids."""


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def compute_progress(instance: WorkflowInstance) -> int:
    total = len(instance.step_statuses)
    if total == 0:
        return 0
    done = sum(1 for s in instance.step_statuses if s.status in _FINISHED)
    return math.floor(100 * done / total + 0.5)


class WorkflowEngine:
    """Template catalog plus the list of running instances (newest first)."""

    def __init__(
        self,
        templates: list[WorkflowTemplate] | None = None,
        clock: Callable[[], str] = _utcnow,
    ):
        self.templates = templates if templates is not None else builtin_templates()
        self.instances: list[WorkflowInstance] = []
        self._clock = clock

    # -- Templates ------------------------------------------------------------

    def get_template(self, template_id: str) -> WorkflowTemplate:
        for template in self.templates:
            if template.id == template_id:
                return template
        raise WorkflowError(f"Unknown template: {template_id}")

    def filter_templates(self, query: str = "", category: str = "all") -> list[WorkflowTemplate]:
        """Templates in ``category`` whose name, description or tags contain ``query``."""
        q = query.strip().lower()
        return [
            t
            for t in self.templates
            if (category == "all" or t.category == category)
            and (
                not q
                or q in t.name.lower()
                or q in t.description.lower()
                or q in " ".join(t.tags).lower()
            )
        ]

    def emergency_template(self) -> WorkflowTemplate:
        return emergency_template(self._clock())

    # -- Instances --------------------------------------------------------------

    def start_workflow(
        self,
        template: WorkflowTemplate,
        patient_id: str | None = None,
        patient_name: str | None = None,
        assigned_to: list[str] | None = None,
    ) -> WorkflowInstance:
        """Create an instance with its first step in progress and put it at the front."""
        if not template.steps:
            raise WorkflowError(f"Template {template.id} has no steps")

        now = self._clock()
        statuses = [
            StepStatus(
                step_id=step.id,
                status=StepState.IN_PROGRESS if i == 0 else StepState.PENDING,
                started_date=now if i == 0 else None,
            )
            for i, step in enumerate(template.steps)
        ]
        instance = WorkflowInstance(
            id=f"instance-{uuid4().hex[:12]}",
            template_id=template.id,
            template_name=template.name,
            patient_id=patient_id,
            patient_name=patient_name,
            status=InstanceState.ACTIVE,
            current_step=1,
            started_date=now,
            assigned_to=assigned_to or [],
            progress=0,
            step_statuses=statuses,
        )
        self.instances.insert(0, instance)
        logger.info("Started workflow %s (%s)", instance.id, template.name)
        return instance

    def start_emergency(self, patient_id: str | None = None, patient_name: str | None = None) -> WorkflowInstance:
        return self.start_workflow(self.emergency_template(), patient_id, patient_name)

    def get_instance(self, instance_id: str) -> WorkflowInstance:
        for instance in self.instances:
            if instance.id == instance_id:
                return instance
        raise WorkflowError(f"Unknown workflow instance: {instance_id}")

    def active_instances(self) -> list[WorkflowInstance]:
        return [i for i in self.instances if i.status == InstanceState.ACTIVE]

    def complete_step(
        self,
        instance_id: str,
        step_id: str | None = None,
        assigned_to: str | None = None,
        time_spent: int | None = None,
        notes: str | None = None,
    ) -> WorkflowInstance:
        """Complete the current step (``step_id`` must match it when given)."""
        instance = self._require_active(instance_id)
        status = self._current_status(instance, step_id)
        status.status = StepState.COMPLETED
        status.completed_date = self._clock()
        if assigned_to is not None:
            status.assigned_to = assigned_to
        if time_spent is not None:
            status.time_spent = time_spent
        if notes is not None:
            status.notes = notes
        self._advance(instance)
        return instance

    def skip_step(
        self, instance_id: str, step_id: str | None = None, reason: str | None = None
    ) -> WorkflowInstance:
        instance = self._require_active(instance_id)
        status = self._current_status(instance, step_id)
        status.status = StepState.SKIPPED
        status.completed_date = self._clock()
        if reason is not None:
            status.notes = reason
        self._advance(instance)
        return instance

    def pause(self, instance_id: str) -> WorkflowInstance:
        instance = self._require_active(instance_id)
        instance.status = InstanceState.PAUSED
        return instance

    def resume(self, instance_id: str) -> WorkflowInstance:
        instance = self.get_instance(instance_id)
        if instance.status != InstanceState.PAUSED:
            raise WorkflowError(f"Workflow {instance_id} is not paused")
        instance.status = InstanceState.ACTIVE
        return instance

    def cancel(self, instance_id: str) -> WorkflowInstance:
        instance = self.get_instance(instance_id)
        if instance.status not in (InstanceState.ACTIVE, InstanceState.PAUSED):
            raise WorkflowError(f"Workflow {instance_id} is already {instance.status.value}")
        instance.status = InstanceState.CANCELLED
        logger.info("Cancelled workflow %s", instance_id)
        return instance

    def add_note(
        self,
        instance_id: str,
        author: str,
        content: str,
        step_id: str | None = None,
        note_type: str = "comment",
    ) -> WorkflowNote:
        instance = self.get_instance(instance_id)
        if step_id is not None and all(s.step_id != step_id for s in instance.step_statuses):
            raise WorkflowError(f"Step {step_id} is not part of workflow {instance_id}")
        note = WorkflowNote(
            id=f"note-{uuid4().hex[:12]}",
            author=author,
            content=content,
            timestamp=self._clock(),
            step_id=step_id,
            type=note_type,
        )
        instance.notes.append(note)
        return note

    # -- Private helpers --------------------------------------------------------

    def _require_active(self, instance_id: str) -> WorkflowInstance:
        instance = self.get_instance(instance_id)
        if instance.status != InstanceState.ACTIVE:
            raise WorkflowError(f"Workflow {instance_id} is {instance.status.value}")
        return instance

    @staticmethod
    def _current_status(instance: WorkflowInstance, step_id: str | None) -> StepStatus:
        status = instance.step_statuses[instance.current_step - 1]
        if status.status != StepState.IN_PROGRESS:
            raise WorkflowError(f"Workflow {instance.id} has no step in progress")
        if step_id is not None and status.step_id != step_id:
            raise WorkflowError(
                f"Step {step_id} is not the current step of workflow {instance.id}"
            )
        return status

    def _advance(self, instance: WorkflowInstance) -> None:
        for index, status in enumerate(instance.step_statuses):
            if status.status == StepState.PENDING:
                status.status = StepState.IN_PROGRESS
                status.started_date = self._clock()
                instance.current_step = index + 1
                break
        else:
            instance.status = InstanceState.COMPLETED
            instance.completed_date = self._clock()
            logger.info("Completed workflow %s", instance.id)
        instance.progress = compute_progress(instance)
