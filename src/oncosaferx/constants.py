"""Project-wide constants."""

from pathlib import Path

# -- Base client defaults ---------------------------------------------------
DEFAULT_TIMEOUT: float = 30.0
DEFAULT_MAX_RETRIES: int = 3

# -- Local storage / cache --------------------------------------------------
# Anchored to the project root (two levels above this package's src/ dir) so
# that the same directories are used regardless of the working directory.
_PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
DEFAULT_STORAGE_DIR: Path = _PROJECT_ROOT / "_storage"
DEFAULT_CACHE_DIR: Path = _PROJECT_ROOT / "_cache"
CACHE_TTL: int = 86400  # 1 day in seconds

# -- Storage keys (JSON blobs) ---------------------------------------------
SELECTED_DRUGS_KEY: str = "oncosaferx_selected_drugs"
POPULARITY_KEY: str = "oncosaferx_popularity"
SESSION_ACTIVE_KEY: str = "osrx_session_active"
TEAMS_KEY: str = "oncosaferx_teams"
TUMOR_BOARDS_KEY: str = "oncosaferx_tumor_boards"

# -- Supabase ---------------------------------------------------------------
SUPABASE_AUTH_PATH: str = "/auth/v1"
SUPABASE_REST_PATH: str = "/rest/v1"
PATIENTS_TABLE: str = "patients"
USERS_TABLE: str = "users"

# -- Application backend ----------------------------------------------------
DRUG_SEARCH_PATH: str = "/api/drugs/search"
DRUG_DETAIL_PATH: str = "/api/drugs/{rxcui}"
PATIENTS_PATH: str = "/api/patients"
DASHBOARD_PATH: str = "/api/admin/dashboard"
ANALYTICS_PATH: str = "/api/analytics"
ANALYTICS_METRICS_PATH: str = "/api/analytics/metrics"
TUMOR_BOARDS_PATH: str = "/api/collaboration/tumor-boards"

# -- Drug comparison --------------------------------------------------------
MAX_COMPARISON_DRUGS: int = 4

# -- Opioid risk ------------------------------------------------------------
# Upper bound (inclusive) of each tier; anything above the last is very_high.
OPIOID_RISK_CUTOFFS: list[tuple[int, str]] = [
    (2, "low"),
    (5, "moderate"),
    (8, "high"),
]

BENZODIAZEPINES: tuple[str, ...] = ("alprazolam", "lorazepam", "clonazepam", "diazepam")

# Morphine milligram equivalent conversion factors (fentanyl: transdermal patch)
MME_FACTORS: dict[str, float] = {
    "codeine": 0.15,
    "morphine": 1.0,
    "oxycodone": 1.5,
    "hydrocodone": 1.0,
    "fentanyl": 2.4,
    "tramadol": 0.1,
    "tapentadol": 0.4,
}

MME_CAUTION_THRESHOLD: float = 50.0
MME_HIGH_THRESHOLD: float = 90.0

# -- Analytics --------------------------------------------------------------
SENSITIVE_QUERY_PARAMS: tuple[str, ...] = ("patient_id", "user_id", "token", "session")
TOP_PAGES_LIMIT: int = 10
DEFAULT_METRICS_RANGE: str = "7d"
