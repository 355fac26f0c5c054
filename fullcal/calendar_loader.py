from datetime import tzinfo
from io import StringIO

import pytz
import requests
from icalendar import Calendar as iCal
from dateutil import tz as dateutil_tz
from loguru import logger

from fullcal.errors import FeedFetchError, FeedParseError, TimezoneResolutionError
from fullcal.utils import normalize_source, is_remote, first_value


def download_calendar(source: str, timeout: float | None = None, user_agent: str | None = None) -> bytes:
    """
    Fetch an ICS calendar from a URL or file path.
    """
    source = normalize_source(source)
    if is_remote(source):
        headers = {"User-Agent": user_agent} if user_agent else None
        logger.debug("Fetching calendar from {} (timeout={})", source, timeout)
        try:
            resp = requests.get(source, headers=headers, timeout=timeout)
            resp.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise FeedFetchError(f"HTTP {status} fetching {source}", status_code=status) from e
        except requests.RequestException as e:
            raise FeedFetchError(f"Could not fetch {source}: {e}") from e
        logger.debug("Fetched {} bytes from {}", len(resp.content), source)
        return resp.content

    logger.debug("Reading calendar from file {}", source)
    try:
        with open(source, "rb") as f:
            return f.read()
    except OSError as e:
        raise FeedFetchError(f"Could not read {source}: {e}") from e


def _relax(raw: bytes | str) -> str:
    """
    Patch up the usual deviations of real-world feeds before parsing:
    undecodable bytes, a leading BOM and a missing END:VCALENDAR.
    """
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    text = text.lstrip("\ufeff").strip()
    upper = text.upper()
    if upper.startswith("BEGIN:VCALENDAR") and "END:VCALENDAR" not in upper:
        logger.warning("Calendar is missing END:VCALENDAR, appending it")
        text += "\r\nEND:VCALENDAR"
    return text + "\r\n"


def _property_errors(cal: iCal) -> list[tuple]:
    """
    Collect the (component, property, message) triples icalendar recorded
    instead of raising.
    """
    found = []
    for comp in cal.walk():
        for prop, message in getattr(comp, "errors", []):
            found.append((comp.name, prop, message))
    return found


def parse_calendar(raw: bytes | str, lenient: bool = True) -> iCal:
    """
    Parse raw ICS bytes into an icalendar.Calendar object.

    lenient tolerates non-conformant feeds; otherwise any property value
    icalendar could not decode fails the parse.
    """
    try:
        if lenient:
            calendars = iCal.from_ical(_relax(raw), multiple=True)
        else:
            calendars = [iCal.from_ical(raw)]
    except ValueError as e:
        raise FeedParseError(f"Unparsable calendar: {e}") from e

    if not calendars:
        raise FeedParseError("No calendar found in document")
    cal = calendars[0]
    if cal.name != "VCALENDAR":
        raise FeedParseError(f"Expected VCALENDAR, got {cal.name}")

    # Concatenated feeds: fold the extra calendars into the first one
    for extra in calendars[1:]:
        logger.warning("Merging additional {} into the first calendar", extra.name)
        for comp in extra.subcomponents:
            cal.add_component(comp)

    errors = _property_errors(cal)
    if errors and not lenient:
        details = "; ".join(f"{c}.{p}: {m}" for c, p, m in errors)
        raise FeedParseError(f"Invalid calendar properties: {details}")
    for comp_name, prop, message in errors:
        logger.warning("Ignoring invalid {} in {}: {}", prop, comp_name, message)
    return cal


def build_tz_factory(cal: iCal) -> dateutil_tz.tzical | None:
    """
    Extract VTIMEZONE blocks and build a tzical factory if present.
    """
    vtz_blocks = [comp for comp in cal.walk() if comp.name == "VTIMEZONE"]
    if not vtz_blocks:
        return None

    buf = StringIO()
    for comp in vtz_blocks:
        # strip unsupported X- properties
        for part in comp.walk():
            for prop in list(part.keys()):
                if prop.upper().startswith("X-"):
                    part.pop(prop, None)
        buf.write(comp.to_ical().decode("utf-8"))
    buf.seek(0)
    try:
        return dateutil_tz.tzical(buf)
    except ValueError as e:
        logger.warning("Ignoring VTIMEZONE definitions dateutil cannot read: {}", e)
        return None


def lookup_timezone(tzid: str | None, tz_factory=None) -> tzinfo | None:
    """
    Resolve a TZID against the calendar's own VTIMEZONE definitions first,
    then against the system zone database. Returns None when unknown.
    """
    if not tzid or not tzid.strip():
        return None
    tzid = tzid.strip()
    if tz_factory is not None:
        found = tz_factory.get(tzid)
        if found is not None:
            return found
    # Some producers write "/Europe/Paris"
    return dateutil_tz.gettz(tzid.lstrip("/"))


def calendar_tzid(cal: iCal) -> str | None:
    """
    The feed-wide timezone id, if the calendar declares one.
    """
    # Some calendars rely on X-WR-TIMEZONE on the main component
    value = first_value(cal.get("X-WR-TIMEZONE"))
    if value:
        return str(value)
    # Others only ship a VTIMEZONE component
    for comp in cal.walk("VTIMEZONE"):
        value = first_value(comp.get("TZID"))
        if value:
            return str(value)
    return None


def resolve_calendar_timezone(cal: iCal, tz_factory=None, unknown: str = "naive") -> tzinfo | None:
    """
    Determine the timezone floating event times belong to.

    unknown decides what happens when the calendar names a zone that
    cannot be resolved: "naive" keeps wall-clock times, "utc" assumes UTC,
    "error" raises TimezoneResolutionError.
    """
    tzid = calendar_tzid(cal)
    if tzid is None:
        logger.debug("Calendar declares no timezone, keeping naive times")
        return None

    resolved = lookup_timezone(tzid, tz_factory)
    if resolved is not None:
        logger.debug("Calendar timezone: {}", tzid)
        return resolved

    if unknown == "error":
        raise TimezoneResolutionError(f"Unknown timezone '{tzid}'", tzid=tzid)
    if unknown == "utc":
        logger.warning("Unknown timezone '{}', assuming UTC", tzid)
        return pytz.UTC
    logger.warning("Unknown timezone '{}', keeping naive times", tzid)
    return None
