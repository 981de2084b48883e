"""Patient selection and clinical alert state."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from pydantic import BaseModel, ValidationError

from oncosaferx.constants import PATIENTS_TABLE
from oncosaferx.data_sources.base_client import DataSourceError
from oncosaferx.data_sources.supabase import SupabaseClient
from oncosaferx.models.patient import ClinicalAlert, PatientProfile
from oncosaferx.state.store import Action, Store

logger = logging.getLogger(__name__)

SET_PATIENTS = "SET_PATIENTS"
SELECT_PATIENT = "SELECT_PATIENT"
UPDATE_PATIENT = "UPDATE_PATIENT"
ADD_ALERT = "ADD_ALERT"
ACKNOWLEDGE_ALERT = "ACKNOWLEDGE_ALERT"
SET_LOADING = "SET_LOADING"
SET_ERROR = "SET_ERROR"


class PatientState(BaseModel):
    patients: list[PatientProfile] = []
    current_patient: PatientProfile | None = None
    alerts: list[ClinicalAlert] = []
    is_loading: bool = False
    error: str | None = None


def patient_reducer(state: PatientState, action: Action) -> PatientState:
    if action.type == SET_PATIENTS:
        return state.model_copy(update={"patients": list(action.payload)})

    if action.type == SELECT_PATIENT:
        return state.model_copy(update={"current_patient": action.payload, "error": None})

    if action.type == UPDATE_PATIENT:
        # payload maps sub-object names to their replacements
        if state.current_patient is None:
            return state
        updated = state.current_patient.model_copy(update=action.payload)
        return state.model_copy(
            update={
                "current_patient": updated,
                "patients": [updated if p.id == updated.id else p for p in state.patients],
            }
        )

    if action.type == ADD_ALERT:
        return state.model_copy(update={"alerts": [*state.alerts, action.payload]})

    if action.type == ACKNOWLEDGE_ALERT:
        alert_id = action.payload["alert_id"]
        ack = {
            "is_acknowledged": True,
            "acknowledged_by": action.payload["user_id"],
            "acknowledged_at": action.payload["acknowledged_at"],
        }
        return state.model_copy(
            update={
                "alerts": [
                    a.model_copy(update=ack) if a.id == alert_id else a for a in state.alerts
                ]
            }
        )

    if action.type == SET_LOADING:
        return state.model_copy(update={"is_loading": bool(action.payload)})

    if action.type == SET_ERROR:
        return state.model_copy(update={"error": action.payload})

    return state


class PatientController:
    def __init__(self, client: SupabaseClient, store: Store | None = None):
        self.client = client
        self.store = store if store is not None else Store(patient_reducer, PatientState())

    @property
    def state(self) -> PatientState:
        return self.store.state

    async def load_patients(self) -> PatientState:
        """Fetch the ``patients`` table into state; rows that fail validation are skipped."""
        self.store.dispatch(Action(type=SET_LOADING, payload=True))
        try:
            rows = await self.client.select(PATIENTS_TABLE)
            patients = []
            for row in rows:
                try:
                    patients.append(PatientProfile.model_validate(row))
                except ValidationError as e:
                    logger.warning("Skipping patient row %s: %s", row.get("id"), e.error_count())
            self.store.dispatch(Action(type=SET_PATIENTS, payload=patients))
        except DataSourceError as e:
            logger.error("Failed to load patients: %s", e)
            self.store.dispatch(Action(type=SET_ERROR, payload="Failed to load patients"))
        finally:
            self.store.dispatch(Action(type=SET_LOADING, payload=False))
        return self.state

    def select_patient(self, patient: PatientProfile | None) -> PatientState:
        return self.store.dispatch(Action(type=SELECT_PATIENT, payload=patient))

    def update_patient(self, **sub_objects) -> PatientState:
        return self.store.dispatch(Action(type=UPDATE_PATIENT, payload=sub_objects))

    def add_alert(self, alert: ClinicalAlert) -> PatientState:
        return self.store.dispatch(Action(type=ADD_ALERT, payload=alert))

    def acknowledge_alert(self, alert_id: str, user_id: str) -> PatientState:
        payload = {
            "alert_id": alert_id,
            "user_id": user_id,
            "acknowledged_at": datetime.now(timezone.utc).isoformat(),
        }
        return self.store.dispatch(Action(type=ACKNOWLEDGE_ALERT, payload=payload))
