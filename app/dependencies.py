# app/dependencies.py
from datetime import date
from typing import Optional, Tuple

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from . import config, crud
from .database import get_db
from .exceptions import InvalidDate
from .time_utils import parse_calendar_date, today, validate_offset

MAX_RANGE_DAYS = 366

__all__ = ["get_db", "get_user_id", "get_tz_offset", "resolve_day", "parse_range"]


def get_user_id(user_id: Optional[str] = Query(None, alias="userId")) -> str:
    """The caller's identity is resolved upstream and passed through as ``userId``."""
    return user_id or config.DEFAULT_USER_ID


def get_tz_offset(
    tz_offset: Optional[int] = Query(None, alias="tzOffset"),
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
) -> int:
    if tz_offset is not None:
        return validate_offset(tz_offset)
    return crud.get_timezone_offset(db, user_id)


def resolve_day(value: Optional[str], tz_offset: int) -> date:
    """Parse a ``YYYY-MM-DD`` string, or fall back to the user's today."""
    if value:
        return parse_calendar_date(value)
    return today(tz_offset)


def parse_range(start_date: str, end_date: str) -> Tuple[date, date]:
    start = parse_calendar_date(start_date)
    end = parse_calendar_date(end_date)
    if start > end:
        raise InvalidDate("startDate must not be after endDate")
    if (end - start).days >= MAX_RANGE_DAYS:
        raise InvalidDate(f"Date ranges are limited to {MAX_RANGE_DAYS} days")
    return start, end
