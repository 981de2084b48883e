"""
Authentication state: reducer, default personas and the Supabase-backed
controller.

Controller methods never raise for auth failures; the message lands in
``AuthState.error`` via ``AUTH_FAILURE``.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from oncosaferx.constants import SESSION_ACTIVE_KEY, USERS_TABLE
from oncosaferx.data_sources.base_client import DataSourceError
from oncosaferx.data_sources.supabase import SupabaseClient
from oncosaferx.models.user import (
    AuthState,
    LoginData,
    PersonaPreferences,
    SignupData,
    UserPersona,
    UserProfile,
)
from oncosaferx.state.store import Action, Store
from oncosaferx.utils.storage import JsonStorage

logger = logging.getLogger(__name__)

AUTH_START = "AUTH_START"
AUTH_SUCCESS = "AUTH_SUCCESS"
AUTH_FAILURE = "AUTH_FAILURE"
AUTH_LOGOUT = "AUTH_LOGOUT"
UPDATE_PROFILE = "UPDATE_PROFILE"
SWITCH_PERSONA = "SWITCH_PERSONA"
SET_ERROR = "SET_ERROR"

CONFIRM_EMAIL_MESSAGE = (
    "Please check your email and click the confirmation link to complete your registration."
)
UNCONFIRMED_LOGIN_MESSAGE = (
    "Please check your email and click the confirmation link before signing in."
)
PROFILE_FAILURE_MESSAGE = "Failed to fetch user profile"


def auth_reducer(state: AuthState, action: Action) -> AuthState:
    if action.type == AUTH_START:
        return state.model_copy(update={"is_loading": True, "error": None})
    if action.type == AUTH_SUCCESS:
        return state.model_copy(
            update={"user": action.payload, "is_authenticated": True, "is_loading": False, "error": None}
        )
    if action.type == AUTH_FAILURE:
        return state.model_copy(
            update={"user": None, "is_authenticated": False, "is_loading": False, "error": action.payload}
        )
    if action.type == AUTH_LOGOUT:
        return state.model_copy(
            update={"user": None, "is_authenticated": False, "is_loading": False, "error": None}
        )
    if action.type == UPDATE_PROFILE:
        user = state.user.model_copy(update=action.payload) if state.user else None
        return state.model_copy(update={"user": user})
    if action.type == SWITCH_PERSONA:
        user = state.user.model_copy(update={"persona": action.payload}) if state.user else None
        return state.model_copy(update={"user": user})
    if action.type == SET_ERROR:
        return state.model_copy(update={"error": action.payload})
    return state


# -- Personas -----------------------------------------------------------------

PERSONA_CONFIGS: dict[str, dict[str, Any]] = {
    "oncologist": {
        "name": "Medical Oncologist",
        "description": "Comprehensive cancer care specialist",
        "experience_level": "expert",
        "specialties": ["solid tumors", "precision medicine"],
        "preferences": PersonaPreferences(
            risk_tolerance="moderate",
            alert_sensitivity="medium",
            workflow_style="thorough",
            decision_support="consultative",
        ),
    },
    "pharmacist": {
        "name": "Clinical Pharmacist",
        "description": "Medication therapy management specialist",
        "experience_level": "expert",
        "specialties": ["oncology pharmacy", "drug interactions"],
        "preferences": PersonaPreferences(
            risk_tolerance="conservative",
            alert_sensitivity="high",
            workflow_style="thorough",
            decision_support="guided",
        ),
    },
    "nurse": {
        "name": "Oncology Nurse",
        "description": "Direct patient care and medication administration",
        "experience_level": "intermediate",
        "specialties": ["patient care", "medication administration"],
        "preferences": PersonaPreferences(
            risk_tolerance="conservative",
            alert_sensitivity="high",
            workflow_style="efficient",
            decision_support="guided",
        ),
    },
    "researcher": {
        "name": "Clinical Researcher",
        "description": "Cancer research and data analysis specialist",
        "experience_level": "expert",
        "specialties": ["clinical trials", "genomics research"],
        "preferences": PersonaPreferences(
            risk_tolerance="moderate",
            alert_sensitivity="low",
            workflow_style="collaborative",
            decision_support="autonomous",
        ),
    },
    "student": {
        "name": "Healthcare Student",
        "description": "Learning healthcare professional",
        "experience_level": "novice",
        "specialties": ["general medicine"],
        "preferences": PersonaPreferences(
            risk_tolerance="conservative",
            alert_sensitivity="high",
            workflow_style="guided",
            decision_support="guided",
        ),
    },
}


def default_persona(role: str) -> UserPersona:
    """Starter persona for a role.

    Raises:
        ValueError: for a role without a persona config.
    """
    config = PERSONA_CONFIGS.get(role)
    if config is None:
        raise ValueError(f"Unknown role: {role}")
    return UserPersona(
        id=f"persona-{int(time.time() * 1000)}",
        role=role,
        name=config["name"],
        description=config["description"],
        experience_level=config["experience_level"],
        specialties=list(config["specialties"]),
        preferences=config["preferences"].model_copy(),
    )


def default_preferences(role: str) -> dict[str, Any]:
    clinical_defaults = role in ("oncologist", "pharmacist")
    return {
        "theme": "light",
        "language": "en",
        "notifications": {
            "email": True,
            "push": True,
            "critical_alerts": True,
            "weekly_reports": True,
        },
        "dashboard": {
            "default_view": "overview",
            "refresh_interval": 5000,
            "compact_mode": False,
        },
        "clinical": {
            "show_genomics_by_default": clinical_defaults,
            "auto_calculate_dosing": clinical_defaults,
            "require_interaction_ack": True,
            "show_patient_photos": False,
        },
    }


def profile_from_row(row: dict[str, Any]) -> UserProfile:
    """Map a ``users`` table row to a profile, filling role-based defaults."""
    role = row.get("role") or "oncologist"
    persona = row.get("persona")
    if persona:
        persona = UserPersona.model_validate(persona)
    elif role in PERSONA_CONFIGS:
        persona = default_persona(role)
    return UserProfile(
        id=row["id"],
        email=row.get("email") or "",
        first_name=row.get("first_name") or "",
        last_name=row.get("last_name") or "",
        role=role,
        specialty=row.get("specialty") or "",
        institution=row.get("institution") or "",
        license_number=row.get("license_number") or "",
        years_experience=row.get("years_experience") or 0,
        preferences=row.get("preferences") or default_preferences(role),
        persona=persona or None,
        created_at=row.get("created_at"),
        last_login=row.get("last_login"),
        is_active=row.get("is_active") is not False,
    )


# -- Controller ---------------------------------------------------------------


class AuthController:
    """Runs sign-in/up/out against Supabase and records the outcome in ``store``.

    With ``storage`` the ``osrx_session_active`` flag is set on every
    successful sign-in and removed on logout.
    """

    def __init__(
        self,
        client: SupabaseClient,
        store: Store | None = None,
        storage: JsonStorage | None = None,
    ):
        self.client = client
        self.store = store if store is not None else Store(auth_reducer, AuthState())
        self.storage = storage
        self.store.subscribe(self._track_session)

    @property
    def state(self) -> AuthState:
        return self.store.state

    async def login(self, data: LoginData) -> AuthState:
        self.store.dispatch(Action(type=AUTH_START))
        try:
            session = await self.client.sign_in_with_password(data.email, data.password)
            user_id = (session.get("user") or {}).get("id")
            if not user_id:
                raise DataSourceError("supabase", "Failed to authenticate user")

            rows = await self.client.select(USERS_TABLE, {"id": user_id})
            if not rows:
                raise DataSourceError("supabase", PROFILE_FAILURE_MESSAGE)
            profile = profile_from_row(rows[0])

            now = datetime.now(timezone.utc).isoformat()
            await self.client.update(USERS_TABLE, {"last_login": now}, {"id": user_id})
            profile = profile.model_copy(update={"last_login": now})
        except DataSourceError as e:
            logger.warning("Login failed for %s: %s", data.email, e)
            message = _message(e)
            if "Email not confirmed" in message:
                message = UNCONFIRMED_LOGIN_MESSAGE
            return self.store.dispatch(Action(type=AUTH_FAILURE, payload=message))
        except (ValidationError, KeyError, TypeError) as e:
            logger.warning("Unusable profile for %s: %s", data.email, e)
            return self.store.dispatch(Action(type=AUTH_FAILURE, payload=PROFILE_FAILURE_MESSAGE))
        return self.store.dispatch(Action(type=AUTH_SUCCESS, payload=profile))

    async def signup(self, data: SignupData) -> AuthState:
        self.store.dispatch(Action(type=AUTH_START))
        metadata = {
            "first_name": data.first_name,
            "last_name": data.last_name,
            "role": data.role,
            "specialty": data.specialty,
            "institution": data.institution,
            "license_number": data.license_number,
            "years_experience": data.years_experience,
        }
        try:
            payload = await self.client.sign_up(data.email, data.password, metadata)
            if not payload or not payload.get("access_token"):
                # account created but email confirmation is pending
                return self.store.dispatch(Action(type=AUTH_FAILURE, payload=CONFIRM_EMAIL_MESSAGE))

            user_id = payload["user"]["id"]
            try:
                rows = await self.client.select(USERS_TABLE, {"id": user_id})
            except DataSourceError as e:
                logger.warning("Profile lookup after signup failed: %s", e)
                rows = []
            profile = profile_from_row(
                rows[0] if rows else {"id": user_id, "email": data.email, **metadata}
            )
        except DataSourceError as e:
            logger.warning("Signup failed for %s: %s", data.email, e)
            return self.store.dispatch(Action(type=AUTH_FAILURE, payload=_message(e)))
        except (ValidationError, KeyError, TypeError) as e:
            logger.warning("Unusable signup response for %s: %s", data.email, e)
            return self.store.dispatch(Action(type=AUTH_FAILURE, payload=PROFILE_FAILURE_MESSAGE))
        return self.store.dispatch(Action(type=AUTH_SUCCESS, payload=profile))

    async def logout(self) -> AuthState:
        try:
            await self.client.sign_out()
        except DataSourceError as e:
            # the local session is cleared regardless
            logger.warning("Sign-out request failed: %s", e)
        return self.store.dispatch(Action(type=AUTH_LOGOUT))

    def update_profile(self, **updates: Any) -> AuthState:
        return self.store.dispatch(Action(type=UPDATE_PROFILE, payload=updates))

    def switch_persona(self, persona: UserPersona) -> AuthState:
        return self.store.dispatch(Action(type=SWITCH_PERSONA, payload=persona))

    def set_error(self, error: str | None) -> AuthState:
        return self.store.dispatch(Action(type=SET_ERROR, payload=error))

    def _track_session(self, state: AuthState) -> None:
        if self.storage is None:
            return
        if state.is_authenticated:
            self.storage.set(SESSION_ACTIVE_KEY, True)
        elif SESSION_ACTIVE_KEY in self.storage:
            self.storage.remove(SESSION_ACTIVE_KEY)


def _message(error: DataSourceError) -> str:
    text = str(error)
    prefix = f"[{error.source}] "
    return text[len(prefix):] if text.startswith(prefix) else text
