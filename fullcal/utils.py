from datetime import datetime


def normalize_source(source: str) -> str:
    """
    Clean up a feed location before fetching.

    - Strips surrounding whitespace and quotes.
    - Rewrites webcal:// (and webcals://) subscription links to https://.
    """
    s = source.strip().strip('"').strip("'")
    lower = s.lower()
    for scheme in ("webcals://", "webcal://"):
        if lower.startswith(scheme):
            return "https://" + s[len(scheme):]
    return s


def is_remote(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def first_value(prop):
    """
    icalendar returns a list when a property is repeated; take the first.
    """
    if isinstance(prop, list):
        return prop[0] if prop else None
    return prop


def fmt_fullcalendar(dt: datetime, legacy_millis: bool = False) -> str:
    """
    Return a YYYY-MM-DDTHH:MM:SS.mmm string, the ISO8601 flavour
    FullCalendar accepts. No offset is appended.

    With legacy_millis the fraction repeats the seconds, zero-padded to
    three digits, as older consumers of this feed expect.
    """
    # four-digit year even below 1000
    base = dt.replace(tzinfo=None, microsecond=0).isoformat(timespec="seconds")
    fraction = dt.second if legacy_millis else dt.microsecond // 1000
    return f"{base}.{fraction:03d}"
