"""
Appointment source adapter.

Turns calendar-service records (calendars with a color, appointments with a
caption, note, visibility and tags) into builder categories and entries.
Fetching the records is left to the caller; ``load_source`` reads them from a
JSON export with the service's camelCase field names.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from monthgrid.builder import CalendarBuilder
from monthgrid.colors import contrast_hex
from monthgrid.dates import (first_day_of_month, format_month_year, is_date_in_range,
                             last_day_of_month)
from monthgrid.errors import SourceFormatError

logger = logging.getLogger(__name__)


class Visibility(str, Enum):
    ALL = "all"
    PUBLIC = "public"
    PRIVATE = "private"


@dataclass(frozen=True)
class SourceCalendar:
    id: int
    name: str
    color: str
    is_public: bool = True
    is_private: bool = False


@dataclass
class Appointment:
    id: int
    caption: str
    start: datetime
    end: Optional[datetime]
    calendar_id: int
    note: str = ""
    is_public: bool = True
    is_private: bool = False
    tag_ids: List[int] = field(default_factory=list)


# =============================================================================
# FILTERS
# =============================================================================

def filter_by_visibility(appointments: Iterable[Appointment],
                         visibility: Union[Visibility, str]) -> List[Appointment]:
    visibility = Visibility(visibility)
    if visibility is Visibility.PUBLIC:
        return [a for a in appointments if a.is_public]
    if visibility is Visibility.PRIVATE:
        return [a for a in appointments if a.is_private or not a.is_public]
    return list(appointments)


def filter_by_tags(appointments: Iterable[Appointment], tag_ids: Sequence[int]) -> List[Appointment]:
    """Appointments carrying at least one of ``tag_ids``; no tags selected keeps all."""
    if not tag_ids:
        return list(appointments)
    wanted = set(tag_ids)
    return [a for a in appointments if wanted.intersection(a.tag_ids)]


def sort_appointments(appointments: Iterable[Appointment]) -> List[Appointment]:
    return sorted(appointments, key=lambda a: a.start)


def overlaps_range(appointment: Appointment, start: datetime, end: datetime) -> bool:
    """True if the appointment starts in, ends in, or runs through [start, end]."""
    return (is_date_in_range(appointment.start, start, end)
            or is_date_in_range(start, appointment.start, appointment.end or appointment.start))


def appointments_in_range(appointments: Iterable[Appointment], start: datetime,
                          end: datetime) -> List[Appointment]:
    return [a for a in appointments if overlaps_range(a, start, end)]


def appointments_for_month(appointments: Iterable[Appointment], month: int, year: int) -> List[Appointment]:
    return appointments_in_range(appointments, first_day_of_month(year, month),
                                 last_day_of_month(year, month))


def appointment_message(appointment: Appointment) -> str:
    """Caption, with the note in parentheses when there is one."""
    note = (appointment.note or "").strip()
    if note:
        return f"{appointment.caption} ({note})"
    return appointment.caption


# =============================================================================
# BUILDER POPULATION
# =============================================================================

def populate_builder(builder: CalendarBuilder, calendars: Sequence[SourceCalendar],
                     appointments: Sequence[Appointment], months: Sequence[Tuple[int, int]]) -> int:
    """Add categories, one page per month and each month's appointments.

    Returns the number of entries added.
    """
    config = builder.config
    if config.use_colors or config.show_legend:
        for cal in calendars:
            builder.add_category(str(cal.id), cal.name, contrast_hex(cal.color), cal.color)

    known = {cal.id for cal in calendars}
    added = 0
    for month, year in months:
        builder.add_month(month, year, format_month_year(month, year, builder.month_names))
        for apt in appointments_for_month(appointments, month, year):
            message = appointment_message(apt)
            if config.use_colors and apt.calendar_id in known:
                builder.add_entry_with_category(apt.start, apt.end, message, str(apt.calendar_id))
            else:
                builder.add_entry(apt.start, apt.end, message)
            added += 1
        logger.debug("%s: %d entries", builder.pages[-1].title, len(builder.pages[-1].entries))
    return added


# =============================================================================
# JSON SOURCE
# =============================================================================

def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """ISO-8601 timestamp to a naive local datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        raise SourceFormatError(f"Invalid timestamp: {value!r}") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _calendar_from_dict(raw: Dict[str, Any]) -> SourceCalendar:
    try:
        return SourceCalendar(
            id=int(raw["id"]),
            name=raw.get("nameTranslated") or raw["name"],
            color=raw.get("color") or "#ffffff",
            is_public=bool(raw.get("isPublic", True)),
            is_private=bool(raw.get("isPrivate", False)),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise SourceFormatError(f"Invalid calendar record {raw!r}: {e}") from e


def _appointment_from_dict(raw: Dict[str, Any], calendars: Dict[int, SourceCalendar]) -> Appointment:
    try:
        cal_info = raw.get("calendar") or {}
        calendar_id = int(cal_info.get("id", raw.get("calendarId")))
        calendar = calendars.get(calendar_id)
        start = parse_timestamp(raw["startDate"])
        if start is None:
            raise ValueError("missing startDate")
        return Appointment(
            id=int(raw.get("id", 0)),
            caption=raw["caption"],
            start=start,
            end=parse_timestamp(raw.get("endDate")),
            calendar_id=calendar_id,
            note=raw.get("note") or "",
            is_public=bool(cal_info.get("isPublic", calendar.is_public if calendar else True)),
            is_private=bool(cal_info.get("isPrivate", calendar.is_private if calendar else False)),
            tag_ids=[int(tag["id"]) for tag in raw.get("tags") or []],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise SourceFormatError(f"Invalid appointment record {raw.get('caption', raw)!r}: {e}") from e


def load_source(path: Union[str, Path]) -> Tuple[List[SourceCalendar], List[Appointment]]:
    """Read calendars and appointments from a JSON export."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SourceFormatError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SourceFormatError(f"{path} must hold an object with calendars and appointments")

    calendars = [_calendar_from_dict(c) for c in data.get("calendars", [])]
    by_id = {c.id: c for c in calendars}
    appointments = [_appointment_from_dict(a, by_id) for a in data.get("appointments", [])]
    logger.info("Loaded %d calendars and %d appointments from %s",
                len(calendars), len(appointments), path)
    return calendars, appointments
