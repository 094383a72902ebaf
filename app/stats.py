# app/stats.py
"""
Streaks, completion rates and daily aggregates.

Everything here is derived from the per-day progress records; a day without a
record, or a record without a habit's snapshot, simply counts as no activity.
Store failures propagate unchanged.
"""
import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from . import config, crud, schemas
from .time_utils import iter_days, utc_now

logger = logging.getLogger(__name__)


def _percentage(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part / whole * 100, 2)


def _window_start(end: date, days: int) -> date:
    return end - timedelta(days=max(days, 1) - 1)


def _snapshots_by_date(
    records: Iterable[schemas.DailyProgressRecord], habit_id: str
) -> Dict[date, schemas.HabitProgressSnapshot]:
    return {
        record.date: record.habits_by_id[habit_id]
        for record in records
        if habit_id in record.habits_by_id
    }


def _cadence_source(habit, snapshots: Dict[date, schemas.HabitProgressSnapshot]):
    """Definition used for days that have no snapshot of their own."""
    if habit is not None:
        return habit
    if snapshots:
        return snapshots[max(snapshots)]
    return None


# =============================================================================
# Per-day aggregates
# =============================================================================

def aggregate_record(record: Optional[schemas.DailyProgressRecord], day: date) -> schemas.DailyStats:
    """Totals over the snapshots of habits that were due on ``day``."""
    snapshots = [
        snapshot for snapshot in (record.habits_by_id.values() if record else [])
        if crud.is_eligible_on(snapshot, day)
    ]
    completed = sum(1 for snapshot in snapshots if snapshot.is_completed)
    return schemas.DailyStats(
        date=day,
        total_habits=len(snapshots),
        completed_habits=completed,
        completion_rate=_percentage(completed, len(snapshots)),
    )


def aggregate_daily_stats(db: Session, user_id: str, day: date) -> schemas.DailyStats:
    return aggregate_record(crud.get_record(db, user_id, day), day)


# =============================================================================
# Streaks
# =============================================================================

def _streak_from_snapshots(
    habit,
    snapshots: Dict[date, schemas.HabitProgressSnapshot],
    today: date,
) -> schemas.StreakRead:
    source = _cadence_source(habit, snapshots)
    past = [day for day in snapshots if day <= today]
    if source is None or not past:
        return schemas.StreakRead(current=0, best=0, last_completed=None)

    current = None
    best = 0
    run = 0
    last_completed = None
    first_eligible = True

    day = today
    earliest = min(past)
    while day >= earliest:
        snapshot = snapshots.get(day)
        if crud.is_eligible_on(snapshot or source, day):
            if snapshot is not None and snapshot.is_completed:
                run += 1
                best = max(best, run)
                if last_completed is None:
                    last_completed = day
            elif first_eligible and day == today:
                # today is still open, it cannot break the streak yet
                pass
            else:
                if current is None:
                    current = run
                run = 0
            first_eligible = False
        day -= timedelta(days=1)

    if current is None:
        current = run
    return schemas.StreakRead(current=current, best=best, last_completed=last_completed)


def current_and_best_streak(db: Session, user_id: str, habit_id: str, today: date) -> schemas.StreakRead:
    habit = crud.get_habit(db, habit_id, user_id)
    history = crud.get_history(db, user_id, until=today)
    return _streak_from_snapshots(habit, _snapshots_by_date(history, habit_id), today)


# =============================================================================
# Completion rates
# =============================================================================

def _habit_completion_counts(
    habit,
    snapshots: Dict[date, schemas.HabitProgressSnapshot],
    start: date,
    end: date,
) -> tuple:
    source = _cadence_source(habit, snapshots)
    if source is None:
        return 0, 0
    eligible = completed = 0
    for day in iter_days(start, end):
        snapshot = snapshots.get(day)
        if not crud.is_eligible_on(snapshot or source, day):
            continue
        eligible += 1
        if snapshot is not None and snapshot.is_completed:
            completed += 1
    return completed, eligible


def completion_rate(db: Session, user_id: str, habit_id: str, window_days: int, today: date) -> float:
    start = _window_start(today, window_days)
    habit = crud.get_habit(db, habit_id, user_id)
    records = crud.get_range(db, user_id, start, today)
    completed, eligible = _habit_completion_counts(habit, _snapshots_by_date(records, habit_id), start, today)
    return _percentage(completed, eligible)


def _overall_completion_rate(
    habits: List, records: List[schemas.DailyProgressRecord], start: date, end: date
) -> float:
    habits_by_id = {habit.id: habit for habit in habits}
    for record in records:
        for habit_id in record.habits_by_id:
            habits_by_id.setdefault(habit_id, None)

    completed_total = eligible_total = 0
    for habit_id, habit in habits_by_id.items():
        completed, eligible = _habit_completion_counts(habit, _snapshots_by_date(records, habit_id), start, end)
        completed_total += completed
        eligible_total += eligible
    return _percentage(completed_total, eligible_total)


def habit_stats(db: Session, user_id: str, habit_id: str, today: date) -> schemas.HabitStatsRead:
    streak = current_and_best_streak(db, user_id, habit_id, today)
    return schemas.HabitStatsRead(
        habit_id=habit_id,
        current_streak=streak.current,
        best_streak=streak.best,
        last_completed=streak.last_completed,
        completion_rate_7_days=completion_rate(db, user_id, habit_id, 7, today),
        completion_rate_30_days=completion_rate(db, user_id, habit_id, 30, today),
    )


# =============================================================================
# Summary
# =============================================================================

def _day_stat(stats: schemas.DailyStats) -> schemas.DayStat:
    return schemas.DayStat(
        date=stats.date,
        completion_rate=stats.completion_rate,
        completed_count=stats.completed_habits,
        total_count=stats.total_habits,
    )


def _best_and_worst_days(records: List[schemas.DailyProgressRecord]) -> tuple:
    best = worst = None
    # newest first, so strict comparisons keep the most recent day on ties
    for record in sorted(records, key=lambda r: r.date, reverse=True):
        stats = aggregate_record(record, record.date)
        if stats.total_habits == 0:
            continue
        if best is None or stats.completion_rate > best.completion_rate:
            best = stats
        if worst is None or stats.completion_rate < worst.completion_rate:
            worst = stats
    return (
        _day_stat(best) if best else None,
        _day_stat(worst) if worst else None,
    )


def recompute_summary(
    db: Session,
    user_id: str,
    day: date,
    window_days: Optional[int] = None,
    lookback_days: Optional[int] = None,
) -> schemas.StatsSummaryRead:
    window_days = window_days or config.STATS_WINDOW_DAYS
    lookback_days = lookback_days or config.STATS_LOOKBACK_DAYS
    cacheable = window_days == config.STATS_WINDOW_DAYS and lookback_days == config.STATS_LOOKBACK_DAYS

    habits = crud.list_active_habits(db, user_id)
    history = crud.get_history(db, user_id, until=day)
    by_date = {record.date: record for record in history}

    day_stats = aggregate_record(by_date.get(day), day)

    window_start = _window_start(day, window_days)
    window_records = [record for record in history if record.date >= window_start]
    seven_day_rate = _overall_completion_rate(habits, window_records, window_start, day)

    best_streak = 0
    for habit in habits:
        streak = _streak_from_snapshots(habit, _snapshots_by_date(history, habit.id), day)
        best_streak = max(best_streak, streak.best)

    lookback_start = _window_start(day, lookback_days)
    best_day, worst_day = _best_and_worst_days(
        [record for record in history if record.date >= lookback_start]
    )

    summary = schemas.StatsSummaryRead(
        user_id=user_id,
        date=day,
        total_habits=day_stats.total_habits,
        completed_habits=day_stats.completed_habits,
        completion_rate=day_stats.completion_rate,
        seven_day_completion_rate=seven_day_rate,
        best_streak=best_streak,
        best_day=best_day,
        worst_day=worst_day,
        last_updated=utc_now(),
    )
    logger.info(
        "Recomputed stats for %s on %s: %d/%d done, %s%% over %d days",
        user_id, day, day_stats.completed_habits, day_stats.total_habits, seven_day_rate, window_days,
    )
    if not cacheable:
        # the cache only ever holds default-window summaries
        return summary
    return crud.upsert_stats_summary(db, summary)


def get_or_recompute_summary(
    db: Session, user_id: str, day: date, window_days: Optional[int] = None, refresh: bool = False
) -> schemas.StatsSummaryRead:
    """
    Serve the cached summary for default windows. Writes to a day drop the
    cached rows from that day on, so a hit is never older than the data.
    """
    use_cache = not refresh and (window_days is None or window_days == config.STATS_WINDOW_DAYS)
    if use_cache:
        cached = crud.get_stats_summary(db, user_id, day)
        if cached is not None:
            return cached
    return recompute_summary(db, user_id, day, window_days=window_days)


# =============================================================================
# History views
# =============================================================================

def progress_summary(db: Session, user_id: str, days: int, today: date) -> List[schemas.ProgressSummaryDay]:
    records = crud.get_range(db, user_id, _window_start(today, days), today)
    summary = []
    for record in records:
        stats = aggregate_record(record, record.date)
        summary.append(schemas.ProgressSummaryDay(
            **stats.model_dump(),
            habits=list(record.habits_by_id.values()),
        ))
    return summary


def heatmap(db: Session, user_id: str, start: date, end: date) -> List[schemas.DailyStats]:
    by_date = {record.date: record for record in crud.get_range(db, user_id, start, end)}
    return [aggregate_record(by_date.get(day), day) for day in iter_days(start, end)]
