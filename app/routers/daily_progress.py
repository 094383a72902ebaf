# app/routers/daily_progress.py
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app import crud, stats
from app.dependencies import get_db, get_tz_offset, get_user_id, parse_range, resolve_day
from app.exceptions import InvalidDate
from app.schemas import (DailyProgressRange, DailyProgressRecord, DailyStats, ProgressResult, QuickLog,
                         SnapshotResult)

router = APIRouter(
    tags=["Daily Progress"],
)


@router.get("/daily-progress", response_model=Union[DailyProgressRecord, DailyProgressRange])
def get_daily_progress(
    date: Optional[str] = None,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    user_id: str = Depends(get_user_id),
    tz_offset: int = Depends(get_tz_offset),
    db: Session = Depends(get_db),
):
    """
    One day's record (``date``, default today) or every stored record between
    ``startDate`` and ``endDate`` inclusive, newest first.
    """
    if start_date or end_date:
        if not (start_date and end_date):
            raise InvalidDate("startDate and endDate must be given together")
        start, end = parse_range(start_date, end_date)
        return DailyProgressRange(start_date=start, end_date=end, records=crud.get_range(db, user_id, start, end))

    day = resolve_day(date, tz_offset)
    record = crud.get_record(db, user_id, day)
    return record or DailyProgressRecord(user_id=user_id, date=day)


@router.get("/daily-progress/heatmap", response_model=List[DailyStats])
def get_heatmap(
    start_date: str = Query(..., alias="startDate"),
    end_date: str = Query(..., alias="endDate"),
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """One entry per calendar day, zero for days without activity"""
    start, end = parse_range(start_date, end_date)
    return stats.heatmap(db, user_id, start, end)


@router.post("/daily-progress/snapshot", response_model=SnapshotResult)
def save_snapshot(
    date: Optional[str] = None,
    user_id: str = Depends(get_user_id),
    tz_offset: int = Depends(get_tz_offset),
    db: Session = Depends(get_db),
):
    """Make sure the day's record lists every active habit"""
    day = resolve_day(date, tz_offset)
    saved = crud.save_daily_snapshot(db, user_id, day)
    return SnapshotResult(user_id=user_id, date=day, saved_count=saved)


@router.post("/log", response_model=ProgressResult)
def quick_log(
    body: QuickLog,
    user_id: str = Depends(get_user_id),
    tz_offset: int = Depends(get_tz_offset),
    db: Session = Depends(get_db),
):
    """
    One-tap logging: without an amount, minute habits get 15 minutes and
    everything else gets 1.
    """
    amount = body.amount
    if amount is None:
        habit = crud.get_habit(db, body.habit_id, user_id)
        amount = 15 if habit is not None and habit.target_type == "minutes" else 1
    day = resolve_day(body.date, tz_offset)
    snapshot = crud.add_progress(db, user_id, body.habit_id, amount, day)
    return ProgressResult(date=day, progress=snapshot)
