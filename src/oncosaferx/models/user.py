"""User, persona and authentication state models."""

from __future__ import annotations

from pydantic import BaseModel


class PersonaPreferences(BaseModel):
    risk_tolerance: str = "moderate"  # conservative, moderate, aggressive
    alert_sensitivity: str = "medium"  # low, medium, high
    workflow_style: str = "thorough"
    decision_support: str = "guided"  # guided, consultative, autonomous


class UserPersona(BaseModel):
    id: str
    name: str
    description: str = ""
    role: str
    experience_level: str = "intermediate"  # novice, intermediate, expert
    specialties: list[str] = []
    preferences: PersonaPreferences = PersonaPreferences()
    custom_settings: dict = {}


class UserProfile(BaseModel):
    """An authenticated clinician.

    ``role`` is one of oncologist, pharmacist, nurse, researcher or student.
    """

    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    role: str = "oncologist"
    specialty: str | None = None
    institution: str | None = None
    license_number: str | None = None
    years_experience: int | None = None
    preferences: dict = {}
    persona: UserPersona | None = None
    created_at: str | None = None
    last_login: str | None = None
    is_active: bool = True


class AuthState(BaseModel):
    user: UserProfile | None = None
    is_authenticated: bool = False
    is_loading: bool = False
    error: str | None = None


class LoginData(BaseModel):
    email: str
    password: str


class SignupData(BaseModel):
    email: str
    password: str
    first_name: str = ""
    last_name: str = ""
    role: str = "oncologist"
    specialty: str | None = None
    institution: str | None = None
    license_number: str | None = None
    years_experience: int | None = None
