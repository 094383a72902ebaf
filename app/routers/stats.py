# app/routers/stats.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app import stats
from app.dependencies import get_db, get_tz_offset, get_user_id, resolve_day
from app.schemas import DailyStats, StatsSummaryRead

router = APIRouter(
    prefix="/stats",
    tags=["Stats"],
)


@router.get("", response_model=StatsSummaryRead)
def get_stats(
    days: Optional[int] = Query(None, ge=1, le=365),
    date: Optional[str] = None,
    refresh: bool = False,
    user_id: str = Depends(get_user_id),
    tz_offset: int = Depends(get_tz_offset),
    db: Session = Depends(get_db),
):
    """Summary for a day, served from the cache unless it is missing or ``refresh`` is set"""
    day = resolve_day(date, tz_offset)
    return stats.get_or_recompute_summary(db, user_id, day, window_days=days, refresh=refresh)


@router.post("/recompute", response_model=StatsSummaryRead)
def recompute_stats(
    days: Optional[int] = Query(None, ge=1, le=365),
    lookback_days: Optional[int] = Query(None, alias="lookbackDays", ge=1, le=366),
    date: Optional[str] = None,
    user_id: str = Depends(get_user_id),
    tz_offset: int = Depends(get_tz_offset),
    db: Session = Depends(get_db),
):
    day = resolve_day(date, tz_offset)
    return stats.recompute_summary(db, user_id, day, window_days=days, lookback_days=lookback_days)


@router.get("/daily", response_model=DailyStats)
def get_daily_stats(
    date: Optional[str] = None,
    user_id: str = Depends(get_user_id),
    tz_offset: int = Depends(get_tz_offset),
    db: Session = Depends(get_db),
):
    day = resolve_day(date, tz_offset)
    return stats.aggregate_daily_stats(db, user_id, day)
