"""Project-wide constants."""

from pathlib import Path

# -- Base client defaults ---------------------------------------------------
DEFAULT_TIMEOUT: float = 30.0
DEFAULT_MAX_RETRIES: int = 3

# -- Cache ------------------------------------------------------------------
# Anchored to the project root (two levels above this package's src/ dir) so
# that a single _cache/ directory is used regardless of the working directory
# from which tests or scripts are launched.
_PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
DEFAULT_CACHE_DIR: Path = _PROJECT_ROOT / "_cache"
CACHE_TTL: int = 300  # 5 minutes

ALL_AILMENTS_CACHE_KEY: str = "ailments:all"
AILMENT_CACHE_KEY: str = "ailment:{id}"

# -- Push channels ----------------------------------------------------------
AILMENT_CREATED: str = "ailmentCreated"
AILMENT_UPDATED: str = "ailmentUpdated"
AILMENT_DELETED: str = "ailmentDeleted"
CHANNELS: tuple[str, ...] = (AILMENT_CREATED, AILMENT_UPDATED, AILMENT_DELETED)

# -- Entity bounds ----------------------------------------------------------
PERCENT_MIN: int = 0
PERCENT_MAX: int = 100

SECONDS_PER_MINUTE: int = 60
SECONDS_PER_HOUR: int = 3600
SECONDS_PER_DAY: int = 86400

# -- Colour bands (severity / intensity / efficacy) -------------------------
BAND_LOW: int = 33
BAND_HIGH: int = 66

SEVERITY_COLORS: tuple[str, str, str] = ("#4ade80", "#facc15", "#f87171")
INTENSITY_COLORS: tuple[str, str, str] = ("#93c5fd", "#3b82f6", "#1d4ed8")
EFFICACY_COLORS: tuple[str, str, str] = ("#f87171", "#facc15", "#4ade80")

# -- Delete responses -------------------------------------------------------
DELETE_SUCCESS_MESSAGE: str = "Ailment deleted successfully"
DELETE_FAILURE_MESSAGE: str = "Failed to delete ailment"
