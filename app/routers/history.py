# app/routers/history.py
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app import stats
from app.dependencies import get_db, get_tz_offset, get_user_id
from app.schemas import HistoryResponse, StreakRead
from app.time_utils import today

router = APIRouter(
    prefix="/history",
    tags=["History"],
)


@router.get("", response_model=Union[StreakRead, HistoryResponse])
def get_history(
    habit_id: Optional[str] = Query(None, alias="habitId"),
    days: int = Query(7, ge=1, le=366),
    user_id: str = Depends(get_user_id),
    tz_offset: int = Depends(get_tz_offset),
    db: Session = Depends(get_db),
):
    """Streak of one habit when ``habitId`` is given, otherwise per-day totals for the last ``days`` days"""
    current_day = today(tz_offset)
    if habit_id:
        return stats.current_and_best_streak(db, user_id, habit_id, current_day)
    return HistoryResponse(summary=stats.progress_summary(db, user_id, days, current_day))
