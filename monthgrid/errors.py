"""Exceptions raised by the calendar builder and its helpers."""


class CalendarError(Exception):
    """Base class for every error raised by monthgrid."""


class NoPageError(CalendarError):
    """An entry was added before any month existed."""


class NoPagesError(CalendarError):
    """generate() was called without a single month."""


class ColorFormatError(CalendarError, ValueError):
    """A color string or triple could not be parsed."""


class EntryRangeError(CalendarError, ValueError):
    """An entry ends before it starts."""


class UnknownCategoryError(CalendarError, KeyError):
    """A category id was referenced that was never registered.

    Only raised when the builder runs with ``strict_categories``; otherwise
    the entry falls back to the default colors with a logged warning.
    """


class InvalidPaperSizeError(CalendarError, ValueError):
    pass


class InvalidOrientationError(CalendarError, ValueError):
    pass


class SourceFormatError(CalendarError, ValueError):
    """An appointment export file is missing fields or is not valid JSON."""
