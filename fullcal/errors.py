"""Exceptions raised while converting an iCalendar feed."""


class ConversionError(Exception):
    """Base exception for every failure of a feed conversion."""


class FeedFetchError(ConversionError):
    """The feed could not be fetched (bad URL, network or HTTP failure)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FeedParseError(ConversionError):
    """The fetched body is not a usable iCalendar document."""


class TimezoneResolutionError(ConversionError):
    """The calendar names a timezone that cannot be resolved."""

    def __init__(self, message: str, tzid: str | None = None):
        super().__init__(message)
        self.tzid = tzid


class EventDataError(ConversionError):
    """A VEVENT carries dates that cannot be turned into datetimes."""

    def __init__(self, message: str, uid: str | None = None, index: int | None = None):
        super().__init__(message)
        self.uid = uid
        self.index = index
