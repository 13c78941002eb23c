"""Business-hours math in the business's local wall-clock time."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"
# 0 = Sunday ... 6 = Saturday (same convention the settings UI stores)
DEFAULT_DAYS = (1, 2, 3, 4, 5)

_HH_MM = re.compile(r"^(\d{1,2})(?::(\d{2}))?$")
_OFFICE_HOURS = re.compile(
    r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\s*-\s*(\d{1,2})(?::(\d{2}))?\s*(am|pm)?",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class HoursWindow:
    start: int  # minutes since midnight
    end: int
    days: tuple[int, ...] = DEFAULT_DAYS

    @property
    def overnight(self) -> bool:
        return self.start > self.end

    def contains(self, weekday: int, minutes: int) -> bool:
        if weekday not in self.days:
            return False
        if self.overnight:
            return minutes >= self.start or minutes <= self.end
        return self.start <= minutes <= self.end


def parse_time_value(value: Optional[str]) -> Optional[int]:
    """'9', '09:30', '22:00' -> minutes since midnight; None when unparseable."""
    if not value:
        return None
    match = _HH_MM.match(value.strip())
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2) or 0)
    if hours > 24 or minutes > 59:
        return None
    return hours * 60 + minutes


def _meridiem_minutes(hour: str, minute: Optional[str], meridiem: Optional[str]) -> int:
    h = int(hour)
    m = int(minute or 0)
    if meridiem:
        lower = meridiem.lower()
        if lower == "pm" and h < 12:
            h += 12
        if lower == "am" and h == 12:
            h = 0
    return h * 60 + m


def parse_office_hours(text: Optional[str]) -> Optional[tuple[int, int]]:
    """Free text like '9:00am - 6:00pm' -> (start, end) minutes."""
    if not text:
        return None
    match = _OFFICE_HOURS.search(text)
    if not match:
        return None
    start = _meridiem_minutes(match.group(1), match.group(2), match.group(3))
    end = _meridiem_minutes(match.group(4), match.group(5), match.group(6))
    return start, end


def resolve_window(
    start: Optional[str],
    end: Optional[str],
    days: Optional[Sequence[int]] = None,
    office_hours: Optional[str] = None,
) -> Optional[HoursWindow]:
    """Structured HH:MM bounds win; free-text office hours are the fallback."""
    start_minutes = parse_time_value(start)
    end_minutes = parse_time_value(end)
    if start_minutes is None or end_minutes is None:
        parsed = parse_office_hours(office_hours)
        if parsed is None:
            return None
        start_minutes, end_minutes = parsed
    active_days = tuple(days) if days else DEFAULT_DAYS
    return HoursWindow(start=start_minutes, end=end_minutes, days=active_days)


def resolve_timezone(name: Optional[str]) -> ZoneInfo:
    try:
        return ZoneInfo(name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", name)
        return ZoneInfo(DEFAULT_TIMEZONE)


def local_parts(now: datetime, tz_name: Optional[str]) -> tuple[int, int]:
    """(weekday with Sunday=0, minutes since local midnight)."""
    local = now.astimezone(resolve_timezone(tz_name))
    weekday = (local.weekday() + 1) % 7
    return weekday, local.hour * 60 + local.minute


def is_outside_business_hours(
    window: Optional[HoursWindow],
    now: datetime,
    tz_name: Optional[str],
) -> bool:
    """No configured window means the business is never considered closed."""
    if window is None:
        return False
    weekday, minutes = local_parts(now, tz_name)
    return not window.contains(weekday, minutes)
