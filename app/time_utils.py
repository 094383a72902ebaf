# app/time_utils.py
"""
Calendar-day resolution for fixed UTC offsets.

Every function takes the offset (in minutes east of UTC) explicitly; nothing
here looks at the server's local timezone. A calendar day is stored as the UTC
instant at 00:00:00 of that date, whatever the user's offset is.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterator, Optional

from .exceptions import InvalidDate, InvalidTarget

MIN_OFFSET_MINUTES = -12 * 60
MAX_OFFSET_MINUTES = 14 * 60

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class TimezonePreset:
    id: str
    name: str
    offset: int  # minutes from UTC
    abbreviation: str
    is_default: bool = False

    @property
    def utc_offset(self) -> str:
        return format_utc_offset(self.offset)


TIMEZONE_PRESETS: Dict[str, TimezonePreset] = {
    preset.id: preset
    for preset in (
        TimezonePreset("vietnam", "Vietnam (ICT)", 7 * 60, "ICT", is_default=True),
        TimezonePreset("us_eastern", "US Eastern (EST/EDT)", -5 * 60, "EST"),
        TimezonePreset("us_central", "US Central (CST/CDT)", -6 * 60, "CST"),
        TimezonePreset("us_mountain", "US Mountain (MST/MDT)", -7 * 60, "MST"),
        TimezonePreset("us_pacific", "US Pacific (PST/PDT)", -8 * 60, "PST"),
    )
}


def get_timezone_preset(preset_id: str) -> TimezonePreset:
    preset = TIMEZONE_PRESETS.get(preset_id)
    if preset is None:
        raise InvalidTarget(f"Unknown timezone '{preset_id}'")
    return preset


def find_preset_for_offset(offset_minutes: int) -> Optional[TimezonePreset]:
    for preset in TIMEZONE_PRESETS.values():
        if preset.offset == offset_minutes:
            return preset
    return None


def validate_offset(offset_minutes: int) -> int:
    if not MIN_OFFSET_MINUTES <= offset_minutes <= MAX_OFFSET_MINUTES:
        raise InvalidTarget(
            f"Timezone offset must be between {MIN_OFFSET_MINUTES} and {MAX_OFFSET_MINUTES} minutes"
        )
    return offset_minutes


def format_utc_offset(offset_minutes: int) -> str:
    sign = "+" if offset_minutes >= 0 else "-"
    hours, minutes = divmod(abs(offset_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(instant: datetime) -> datetime:
    # naive datetimes are UTC throughout the app
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def to_calendar_date(instant: datetime, tz_offset: int) -> date:
    """Calendar day on which ``instant`` falls for a user at ``tz_offset``."""
    return (_as_utc(instant) + timedelta(minutes=tz_offset)).date()


def today(tz_offset: int, now: Optional[datetime] = None) -> date:
    return to_calendar_date(now or utc_now(), tz_offset)


def calendar_date_to_utc_midnight(day: date) -> datetime:
    if isinstance(day, datetime):
        day = day.date()
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def storage_key(day: date) -> datetime:
    """Naive UTC-midnight value written to ``DateTime`` columns."""
    return calendar_date_to_utc_midnight(day).replace(tzinfo=None)


def parse_calendar_date(value: str) -> date:
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        raise InvalidDate(f"Invalid date '{value}', expected YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidDate(f"Invalid date '{value}', expected YYYY-MM-DD")


def format_calendar_date(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def iter_days(start: date, end: date) -> Iterator[date]:
    """Inclusive ascending walk from ``start`` to ``end``."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def sunday_based_weekday(day: date) -> int:
    """Weekday numbered 0=Sunday .. 6=Saturday."""
    return (day.weekday() + 1) % 7
