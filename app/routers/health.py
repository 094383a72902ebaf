# app/routers/health.py
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app import crud
from app.dependencies import get_db, get_tz_offset, get_user_id, parse_range, resolve_day
from app.exceptions import InvalidDate
from app.schemas import HealthCreate, HealthList, HealthRead
from app.time_utils import today

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=HealthRead)
def create_health_record(
    body: HealthCreate,
    user_id: str = Depends(get_user_id),
    tz_offset: int = Depends(get_tz_offset),
    db: Session = Depends(get_db),
):
    """Store one set of health metrics, e.g. an Apple Health export for a day"""
    day = resolve_day(body.date, tz_offset)
    return crud.create_health_record(db, user_id, body, day)


@router.get("", response_model=HealthList)
def get_health_records(
    days: Optional[int] = Query(None, ge=1, le=366),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    source: Optional[str] = None,
    user_id: str = Depends(get_user_id),
    tz_offset: int = Depends(get_tz_offset),
    db: Session = Depends(get_db),
):
    """
    Records between ``startDate`` and ``endDate``, or over the last ``days``
    days. Without either, every record of the user.
    """
    start = end = None
    if start_date or end_date:
        if not (start_date and end_date):
            raise InvalidDate("startDate and endDate must be given together")
        start, end = parse_range(start_date, end_date)
    elif days:
        end = today(tz_offset)
        start = end - timedelta(days=days - 1)

    records = crud.list_health_records(db, user_id, start, end, source)
    return HealthList(records=records, count=len(records))
