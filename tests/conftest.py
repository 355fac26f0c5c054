import pytest
import requests
from loguru import logger

from fullcal.converter import CalendarConverter, ConversionOptions


def make_ics(*blocks: str, header: str = "") -> bytes:
    """Wrap component blocks into a VCALENDAR document with CRLF endings."""
    lines = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//fullcal//tests//EN"]
    lines += [line for line in header.strip().splitlines() if line.strip()]
    for block in blocks:
        lines += [line.strip() for line in block.strip().splitlines() if line.strip()]
    lines.append("END:VCALENDAR")
    return ("\r\n".join(lines) + "\r\n").encode("utf-8")


def vevent(uid: str, start: str, end: str | None = None, **props: str) -> str:
    """A VEVENT block; extra props are given as SUMMARY="..." etc."""
    lines = ["BEGIN:VEVENT", f"UID:{uid}", f"DTSTART{start}"]
    if end is not None:
        lines.append(f"DTEND{end}")
    for name, value in props.items():
        lines.append(f"{name.upper()}:{value}")
    lines.append("END:VEVENT")
    return "\n".join(lines)


def http_response(body: bytes, status: int = 200, url: str = "https://example.org/cal.ics"):
    resp = requests.Response()
    resp.status_code = status
    resp._content = body
    resp.url = url
    return resp


@pytest.fixture
def converter():
    """Converter with fixed defaults, independent of the environment."""
    return CalendarConverter(ConversionOptions())


@pytest.fixture
def log_messages():
    """Capture loguru output for the duration of a test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="TRACE")
    yield messages
    logger.remove(handler_id)
