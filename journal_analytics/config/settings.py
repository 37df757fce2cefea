"""Environment settings loaded from .env file."""
import os

from dotenv import load_dotenv

load_dotenv()

# --- Drift detection ---
DRIFT_Z_SCORE_WINDOW: int = int(os.getenv("DRIFT_Z_SCORE_WINDOW", "20"))
DRIFT_Z_SCORE_THRESHOLD: float = float(os.getenv("DRIFT_Z_SCORE_THRESHOLD", "2.0"))
DRIFT_CUSUM_THRESHOLD: float = float(os.getenv("DRIFT_CUSUM_THRESHOLD", "5.0"))
DRIFT_CUSUM_DRIFT: float = float(os.getenv("DRIFT_CUSUM_DRIFT", "0.5"))

# --- Note analysis ---
NLP_MIN_NOTE_LENGTH: int = int(os.getenv("NLP_MIN_NOTE_LENGTH", "10"))
NLP_KEYWORD_MIN_FREQUENCY: int = int(os.getenv("NLP_KEYWORD_MIN_FREQUENCY", "2"))

# --- Caching ---
ANALYTICS_CACHE_TTL_MINUTES: int = int(os.getenv("ANALYTICS_CACHE_TTL_MINUTES", "5"))

# --- Defaults ---
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
DEFAULT_SPLIT_METHOD: str = "equal"


def validate_drift_settings() -> None:
    """Raise if the drift detector settings cannot produce a meaningful analysis."""
    if DRIFT_Z_SCORE_WINDOW < 2:
        raise ValueError(
            f"DRIFT_Z_SCORE_WINDOW must be at least 2 (got {DRIFT_Z_SCORE_WINDOW})."
        )
    for name, value in (
        ("DRIFT_Z_SCORE_THRESHOLD", DRIFT_Z_SCORE_THRESHOLD),
        ("DRIFT_CUSUM_THRESHOLD", DRIFT_CUSUM_THRESHOLD),
    ):
        if value <= 0:
            raise ValueError(f"{name} must be positive (got {value}).")
    if DRIFT_CUSUM_DRIFT < 0:
        raise ValueError(f"DRIFT_CUSUM_DRIFT must not be negative (got {DRIFT_CUSUM_DRIFT}).")


def validate_log_level(level: str) -> str:
    """Return the normalized level name or raise for an unknown one."""
    known = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    normalized = level.upper()
    if normalized not in known:
        raise ValueError(f"Unknown log level: {level}. Choose from: {list(known)}")
    return normalized
