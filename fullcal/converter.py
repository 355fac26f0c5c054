"""
iCalendar feed to FullCalendar JSON conversion.

    from fullcal.converter import CalendarConverter
    events_json = CalendarConverter().ical_to_json("https://example.org/team.ics")
"""
import json
from dataclasses import dataclass, replace
from datetime import tzinfo

from loguru import logger

import fullcal.settings as settings
from fullcal.calendar_loader import (
    download_calendar,
    parse_calendar,
    build_tz_factory,
    resolve_calendar_timezone,
)
from fullcal.event_processing import ConversionReport, convert_events


@dataclass(frozen=True)
class ConversionOptions:
    """
    Per-call conversion settings.

    - lenient: tolerate non-conformant feeds while parsing.
    - strict_events: one bad event fails the whole conversion.
    - unknown_timezone: "naive", "utc" or "error" for unresolvable TZIDs.
    - output_timezone: zone aware times are rendered in; None keeps the
      calendar's own zone.
    - legacy_millis: repeat the seconds in the millisecond field.
    - timeout: HTTP timeout in seconds, None to wait forever.
    - user_agent: User-Agent header sent with the request.
    """
    lenient: bool = True
    strict_events: bool = True
    unknown_timezone: str = "naive"
    output_timezone: tzinfo | None = None
    legacy_millis: bool = False
    timeout: float | None = 30.0
    user_agent: str | None = "fullcal"

    def __post_init__(self):
        if self.unknown_timezone not in settings.UNKNOWN_TZ_POLICIES:
            raise ValueError(
                f"unknown_timezone must be one of {settings.UNKNOWN_TZ_POLICIES}, "
                f"got {self.unknown_timezone!r}"
            )

    @classmethod
    def from_settings(cls, **overrides) -> "ConversionOptions":
        """Defaults taken from the environment, with explicit overrides."""
        base = cls(
            lenient=settings.LENIENT_PARSING,
            strict_events=settings.STRICT_EVENTS,
            unknown_timezone=settings.UNKNOWN_TZ,
            output_timezone=settings.TZ_OUTPUT,
            legacy_millis=settings.LEGACY_MILLIS,
            timeout=settings.REQUEST_TIMEOUT,
            user_agent=settings.USER_AGENT,
        )
        return replace(base, **overrides)


class CalendarConverter:
    """
    Fetches an iCalendar feed and turns its VEVENTs into FullCalendar
    event objects.
    """

    def __init__(self, options: ConversionOptions | None = None):
        self.options = options or ConversionOptions.from_settings()

    def _options(self, overrides: dict) -> ConversionOptions:
        return replace(self.options, **overrides) if overrides else self.options

    def convert_bytes(self, raw: bytes | str, **overrides) -> ConversionReport:
        """
        Convert an already fetched iCalendar document.
        """
        opts = self._options(overrides)

        # 1) Parse with this call's leniency
        cal = parse_calendar(raw, lenient=opts.lenient)

        # 2) Resolve the timezone floating times belong to
        tz_factory = build_tz_factory(cal)
        cal_tz = resolve_calendar_timezone(cal, tz_factory, unknown=opts.unknown_timezone)

        # 3) Map every VEVENT
        report = convert_events(
            cal,
            cal_tz,
            out_tz=opts.output_timezone,
            tz_factory=tz_factory,
            strict=opts.strict_events,
            legacy_millis=opts.legacy_millis,
        )
        if report.failures:
            logger.warning(
                "Converted {} events, skipped {} invalid", len(report.records), len(report.failures)
            )
        else:
            logger.info("Converted {} events", len(report.records))
        return report

    def convert(self, url: str, **overrides) -> ConversionReport:
        """
        Fetch the feed at url and convert it.
        """
        opts = self._options(overrides)
        raw = download_calendar(url, timeout=opts.timeout, user_agent=opts.user_agent)
        return self.convert_bytes(raw, **overrides)

    def ical_bytes_to_json(self, raw: bytes | str, **overrides) -> str:
        return json.dumps(self.convert_bytes(raw, **overrides).records)

    def ical_to_json(self, url: str, **overrides) -> str:
        """
        Fetch the feed at url and return its events as a JSON array string.
        """
        return json.dumps(self.convert(url, **overrides).records)
