"""A single appointment occurrence as it appears in one day cell."""

from datetime import datetime
from typing import Optional

from monthgrid.colors import RGB, ColorLike, to_rgb
from monthgrid.dates import format_time, is_all_day_event, is_multi_day_event
from monthgrid.errors import EntryRangeError

DEFAULT_TEXT_COLOR = "#000000"
DEFAULT_BG_COLOR = "#ffffff"


class CalendarEntry:

    def __init__(self, start_date: datetime, end_date: Optional[datetime], message: str,
                 text_color: ColorLike = DEFAULT_TEXT_COLOR,
                 bg_color: ColorLike = DEFAULT_BG_COLOR):
        if end_date is not None and end_date < start_date:
            raise EntryRangeError(
                f"Entry {message!r} ends ({end_date}) before it starts ({start_date})")
        self.start_date = start_date
        self.end_date = end_date
        self.message = message
        self.day = start_date.day
        self.text_color: RGB = to_rgb(text_color)
        self.bg_color: RGB = to_rgb(bg_color)
        self.hide_start_time = False
        self.hide_end_time = False
        self.is_continuation = False
        self.original_start_date: Optional[datetime] = None

    def __repr__(self):
        return (f"CalendarEntry(day={self.day}, start={self.start_date.isoformat()}, "
                f"message={self.message!r}, continuation={self.is_continuation})")

    def is_spanning_days(self) -> bool:
        """True if the entry ends on a different calendar day than it starts."""
        return is_multi_day_event(self.start_date, self.end_date)

    def is_all_day(self) -> bool:
        return is_all_day_event(self.start_date, self.end_date)

    def formatted_start_time(self) -> str:
        if self.hide_start_time or self.is_all_day():
            return ""
        return format_time(self.start_date)

    def formatted_end_time(self) -> str:
        if self.hide_end_time or self.end_date is None or self.is_all_day():
            return ""
        return format_time(self.end_date)

    def display_text(self, show_end_time: bool = False) -> str:
        """Text rendered in the cell, e.g. "9h Meeting" or "9-10:30h Meeting"."""
        start = self.formatted_start_time()
        if not start:
            # Last day of a multi-day entry: "-12h ...Retreat"
            if show_end_time and self.is_continuation:
                end = self.formatted_end_time()
                if end:
                    return f"-{end} {self.message}"
            return self.message
        if show_end_time:
            end = self.formatted_end_time()
            if end:
                # "9h" + "10h" -> "9-10h"
                return f"{start[:-1]}-{end} {self.message}"
        return f"{start} {self.message}"

    def clone_for_day(self, day: int, month: int, year: int) -> "CalendarEntry":
        """Copy of this entry anchored on another day, same time of day, no end."""
        start = datetime(year, month, day, self.start_date.hour, self.start_date.minute,
                         tzinfo=self.start_date.tzinfo)
        clone = CalendarEntry(start, None, self.message, self.text_color, self.bg_color)
        clone.original_start_date = self.start_date
        return clone
