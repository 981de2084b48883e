"""Unit tests for patient state and PatientController."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from oncosaferx.constants import PATIENTS_TABLE
from oncosaferx.data_sources.base_client import DataSourceError
from oncosaferx.data_sources.supabase import SupabaseClient
from oncosaferx.models.patient import ClinicalAlert, Medication
from oncosaferx.state.patient import (
    ACKNOWLEDGE_ALERT,
    ADD_ALERT,
    UPDATE_PATIENT,
    PatientController,
    PatientState,
    patient_reducer,
)
from oncosaferx.state.store import Action


def _alert(alert_id: str) -> ClinicalAlert:
    return ClinicalAlert(
        id=alert_id,
        type="lab",
        severity="high",
        title="Low ANC",
        message="ANC below 1500",
        timestamp="2024-01-15T10:00:00Z",
        patient_id="patient-1",
    )


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock(spec=SupabaseClient)
    client.select = AsyncMock(return_value=[])
    return client


class TestReducer:
    def test_update_without_selection_is_noop(self):
        state = PatientState()

        assert patient_reducer(state, Action(type=UPDATE_PATIENT, payload={"medications": []})) is state

    def test_update_replaces_sub_objects_everywhere(self, sample_patient):
        state = PatientState(patients=[sample_patient], current_patient=sample_patient)
        medications = [Medication(name="Ondansetron", dosage="8 mg")]

        state = patient_reducer(state, Action(type=UPDATE_PATIENT, payload={"medications": medications}))

        assert state.current_patient.medications == medications
        assert state.patients[0].medications == medications
        assert sample_patient.medications[0].name == "Oxycodone"

    def test_acknowledge_only_matching_alert(self):
        state = PatientState()
        for alert_id in ("a1", "a2"):
            state = patient_reducer(state, Action(type=ADD_ALERT, payload=_alert(alert_id)))

        state = patient_reducer(
            state,
            Action(
                type=ACKNOWLEDGE_ALERT,
                payload={"alert_id": "a2", "user_id": "user-123", "acknowledged_at": "2024-01-15T11:00:00Z"},
            ),
        )

        assert [a.is_acknowledged for a in state.alerts] == [False, True]
        assert state.alerts[1].acknowledged_by == "user-123"


@pytest.mark.asyncio
class TestController:
    async def test_load_patients_skips_invalid_rows(self, client, sample_patient):
        client.select.return_value = [
            sample_patient.model_dump(mode="json"),
            {"id": "broken", "demographics": {"first_name": "No last name"}},
        ]
        controller = PatientController(client)

        state = await controller.load_patients()

        client.select.assert_awaited_once_with(PATIENTS_TABLE)
        assert [p.id for p in state.patients] == ["patient-1"]
        assert state.is_loading is False
        assert state.error is None

    async def test_load_failure_sets_error(self, client):
        client.select.side_effect = DataSourceError("supabase", "HTTP 500", 500)
        controller = PatientController(client)

        state = await controller.load_patients()

        assert state.error == "Failed to load patients"
        assert state.is_loading is False
        assert state.patients == []

    async def test_select_update_and_acknowledge(self, client, sample_patient):
        controller = PatientController(client)
        controller.select_patient(sample_patient)
        controller.add_alert(_alert("a1"))

        controller.update_patient(allergies=[])
        state = controller.acknowledge_alert("a1", "user-123")

        assert state.current_patient.id == "patient-1"
        assert state.alerts[0].is_acknowledged is True
        assert state.alerts[0].acknowledged_at is not None
