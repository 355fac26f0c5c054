import os
from dateutil import tz
from loguru import logger


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() not in ("0", "false", "no")


def _parse_timeout(raw: str) -> float | None:
    """
    Parse a request timeout in seconds. "none", "0" or an empty
    string disable the timeout entirely.
    """
    s = raw.strip().lower()
    if s in ("", "0", "none", "off"):
        return None
    try:
        value = float(s)
    except ValueError:
        logger.error("Invalid request timeout {!r}", raw)
        raise ValueError(f"Invalid request timeout: '{raw}'")
    if value < 0:
        logger.error("Negative request timeout {!r}", raw)
        raise ValueError(f"Request timeout must not be negative: '{raw}'")
    return value


# Output timezone: aware event times are rendered in this zone when set
TIMEZONE = os.getenv("TZ", "").strip()
TZ_OUTPUT = tz.gettz(TIMEZONE) if TIMEZONE else None

# Fetching
REQUEST_TIMEOUT = _parse_timeout(os.getenv("FULLCAL_REQUEST_TIMEOUT", "30"))
USER_AGENT = os.getenv("FULLCAL_USER_AGENT", "fullcal")

# Parsing / conversion behavior
LENIENT_PARSING = _env_flag("FULLCAL_LENIENT_PARSING", "true")
STRICT_EVENTS = _env_flag("FULLCAL_STRICT_EVENTS", "true")
LEGACY_MILLIS = os.getenv("FULLCAL_LEGACY_MILLIS", "false").lower() in ("1", "true", "yes")

UNKNOWN_TZ_POLICIES = ("naive", "utc", "error")
UNKNOWN_TZ = os.getenv("FULLCAL_UNKNOWN_TZ", "naive").strip().lower()
if UNKNOWN_TZ not in UNKNOWN_TZ_POLICIES:
    logger.error("Unknown FULLCAL_UNKNOWN_TZ policy {!r}, using 'naive'", UNKNOWN_TZ)
    UNKNOWN_TZ = "naive"
