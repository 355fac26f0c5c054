from dataclasses import dataclass, field
from datetime import datetime, date, time, timedelta, tzinfo

from loguru import logger

from fullcal.calendar_loader import lookup_timezone
from fullcal.errors import EventDataError
from fullcal.utils import fmt_fullcalendar, first_value

# Order of the keys in every emitted record
RECORD_KEYS = ("id", "title", "allDay", "start", "end", "description", "location", "status")


@dataclass
class EventResult:
    """Outcome of converting a single VEVENT."""
    index: int
    uid: str | None
    record: dict | None = None
    error: EventDataError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ConversionReport:
    records: list[dict] = field(default_factory=list)
    failures: list[EventResult] = field(default_factory=list)

    def add(self, result: EventResult) -> None:
        if result.ok:
            self.records.append(result.record)
        else:
            self.failures.append(result)


def component_text(comp, name: str) -> str | None:
    """
    String value of a property, or None when the component lacks it.
    """
    prop = first_value(comp.get(name))
    if prop is None:
        return None
    return str(prop)


def component_raw(comp, name: str) -> str | None:
    """
    Serialized iCalendar value of a property, e.g. "20240101T090000Z".
    """
    prop = first_value(comp.get(name))
    if prop is None:
        return None
    try:
        raw = prop.to_ical()
    except AttributeError:
        return str(prop)
    return raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)


def is_all_day(start_raw: str | None, end_raw: str | None) -> bool:
    """
    An event is all-day when neither the DTSTART nor the DTEND value
    carries a time part ("T" separator).
    """
    return not any("T" in raw for raw in (start_raw, end_raw) if raw)


def _decoded(comp, name: str, uid, index):
    prop = first_value(comp.get(name))
    if prop is None:
        # icalendar < 7 drops values it cannot decode and records them instead
        details = [m for p, m in getattr(comp, "errors", []) if p == name]
        if details:
            raise EventDataError(
                f"Event {uid!r}: invalid {name} ({'; '.join(details)})", uid=uid, index=index
            )
        return None
    try:
        value = prop.dt
    except (AttributeError, ValueError) as e:
        # icalendar >= 7 keeps broken properties whose .dt raises
        raise EventDataError(f"Event {uid!r}: invalid {name} ({e})", uid=uid, index=index) from e
    if not isinstance(value, (date, timedelta)):
        raise EventDataError(
            f"Event {uid!r}: cannot read {name} value {value!r}", uid=uid, index=index
        )
    return value


def event_bounds(comp, uid=None, index=None) -> tuple:
    """
    Decoded DTSTART and DTEND of a VEVENT. A missing DTEND is derived from
    DURATION, else one day after a date DTSTART, else equal to DTSTART.
    A DTEND or DURATION that is present but malformed is an error.
    """
    start = _decoded(comp, "DTSTART", uid, index)
    if start is None:
        raise EventDataError(f"Event {uid!r} has no DTSTART", uid=uid, index=index)
    if isinstance(start, timedelta):
        raise EventDataError(f"Event {uid!r}: DTSTART is a duration", uid=uid, index=index)

    end = _decoded(comp, "DTEND", uid, index)
    if end is None:
        duration = _decoded(comp, "DURATION", uid, index)
        if isinstance(duration, timedelta):
            end = start + duration
        elif duration is not None:
            raise EventDataError(f"Event {uid!r}: DURATION is not a duration", uid=uid, index=index)
        elif isinstance(start, datetime):
            end = start
        else:
            end = start + timedelta(days=1)
    if isinstance(end, timedelta):
        raise EventDataError(f"Event {uid!r}: DTEND is a duration", uid=uid, index=index)
    return start, end


def normalize(dt_raw, prop, cal_tz: tzinfo | None, out_tz: tzinfo | None, tz_factory=None) -> datetime:
    """
    Turn a decoded DTSTART/DTEND into the datetime that gets rendered.

    - Date-only values become midnight and are never shifted.
    - Floating times take the property's TZID, else the calendar timezone,
      else stay naive.
    - Aware times are converted to out_tz, else to the calendar timezone.
    """
    if isinstance(dt_raw, date) and not isinstance(dt_raw, datetime):
        return datetime.combine(dt_raw, time.min)

    dt = dt_raw
    if dt.tzinfo is None:
        tzid = prop.params.get("TZID") if prop is not None and hasattr(prop, "params") else None
        tzinfo_ = lookup_timezone(tzid, tz_factory) if tzid else None
        if tzinfo_ is None:
            tzinfo_ = cal_tz
        if tzinfo_ is None:
            return dt
        dt = dt.replace(tzinfo=tzinfo_)

    target = out_tz or cal_tz
    if target is not None:
        dt = dt.astimezone(target)
    return dt


def convert_event(
    comp,
    index: int,
    cal_tz: tzinfo | None,
    out_tz: tzinfo | None = None,
    tz_factory=None,
    legacy_millis: bool = False,
) -> EventResult:
    """
    Map one VEVENT to a FullCalendar event record.
    Data errors are returned in the result rather than raised.
    """
    uid = component_text(comp, "UID")
    try:
        start_raw, end_raw = event_bounds(comp, uid, index)
        start_prop = first_value(comp.get("DTSTART"))
        end_prop = first_value(comp.get("DTEND"))
        # a derived DTEND shares the DTSTART zone
        if end_prop is None:
            end_prop = start_prop
        start = normalize(start_raw, start_prop, cal_tz, out_tz, tz_factory)
        end = normalize(end_raw, end_prop, cal_tz, out_tz, tz_factory)
    except EventDataError as e:
        return EventResult(index=index, uid=uid, error=e)

    # Non-standard fields (description, location, status) are passed through
    # untouched by FullCalendar.
    record = {
        "id": uid,
        "title": component_text(comp, "SUMMARY"),
        "allDay": is_all_day(component_raw(comp, "DTSTART"), component_raw(comp, "DTEND")),
        "start": fmt_fullcalendar(start, legacy_millis),
        "end": fmt_fullcalendar(end, legacy_millis),
        "description": component_text(comp, "DESCRIPTION"),
        "location": component_text(comp, "LOCATION"),
        "status": component_text(comp, "STATUS"),
    }
    logger.trace("Converted event {}: {} [{} -> {}]", uid, record["title"], record["start"], record["end"])
    return EventResult(index=index, uid=uid, record=record)


def convert_events(
    cal,
    cal_tz: tzinfo | None,
    out_tz: tzinfo | None = None,
    tz_factory=None,
    strict: bool = True,
    legacy_millis: bool = False,
) -> ConversionReport:
    """
    Walk VEVENTs in document order and convert each of them.

    strict aborts on the first bad event; otherwise failures are collected
    in the report next to the records that converted fine.
    """
    report = ConversionReport()
    index = 0
    for comp in cal.walk():
        if comp.name != "VEVENT":
            continue
        result = convert_event(comp, index, cal_tz, out_tz, tz_factory, legacy_millis)
        index += 1
        if not result.ok:
            if strict:
                raise result.error
            logger.error("Skipping event #{} ({}): {}", result.index, result.uid, result.error)
        report.add(result)
    return report
