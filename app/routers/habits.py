# app/routers/habits.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app import crud, stats
from app.exceptions import NotFound
from app.dependencies import get_db, get_tz_offset, get_user_id, resolve_day
from app.schemas import (HabitCreate, HabitRead, HabitStatsRead, HabitUpdate, ProgressAdd, ProgressResult)
from app.time_utils import today

router = APIRouter(
    prefix="/habits",
    tags=["Habits"],
)


@router.get("", response_model=List[HabitRead])
def get_habits(
    frequency: Optional[str] = Query(None, pattern="^(daily|weekly|monthly)$"),
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Active habits of the user, newest first"""
    return crud.list_active_habits(db, user_id, frequency)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=HabitRead)
def create_habit(
    habit_data: HabitCreate,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    return crud.create_habit(db, user_id, habit_data)


@router.get("/{habit_id}", response_model=HabitRead)
def get_habit(
    habit_id: str,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    habit = crud.get_habit(db, habit_id, user_id)
    if not habit:
        raise NotFound(f"Habit {habit_id} not found")
    return habit


@router.patch("/{habit_id}", response_model=HabitRead)
def update_habit(
    habit_id: str,
    habit_data: HabitUpdate,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """
    Edit a habit definition. Days already recorded keep the definition they
    were snapshotted with; only days touched from now on see the change.
    """
    return crud.update_habit(db, habit_id, habit_data, user_id)


@router.delete("/{habit_id}", response_model=HabitRead)
def delete_habit(
    habit_id: str,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Deactivate a habit; its history stays in place"""
    return crud.deactivate_habit(db, habit_id, user_id)


@router.patch("/{habit_id}/progress", response_model=ProgressResult)
def add_habit_progress(
    habit_id: str,
    body: ProgressAdd,
    user_id: str = Depends(get_user_id),
    tz_offset: int = Depends(get_tz_offset),
    db: Session = Depends(get_db),
):
    """
    Add (or with a negative amount, undo) progress for one day.
    Without a date the user's current day is used.
    """
    day = resolve_day(body.date, tz_offset)
    snapshot = crud.add_progress(db, user_id, habit_id, body.progress_to_add, day)
    return ProgressResult(date=day, progress=snapshot)


@router.get("/{habit_id}/stats", response_model=HabitStatsRead)
def get_habit_stats(
    habit_id: str,
    user_id: str = Depends(get_user_id),
    tz_offset: int = Depends(get_tz_offset),
    db: Session = Depends(get_db),
):
    if not crud.get_habit(db, habit_id, user_id):
        raise NotFound(f"Habit {habit_id} not found")
    return stats.habit_stats(db, user_id, habit_id, today(tz_offset))
