# app/crud.py
import calendar
import logging
import threading
from datetime import date
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from . import config, models, schemas, utils
from .exceptions import (ConcurrencyConflict, DuplicateName, HabitNotFound, InvalidTarget, NotFound,
                         PersistenceUnavailable)
from .time_utils import (get_timezone_preset, storage_key, sunday_based_weekday, utc_now, validate_offset)

logger = logging.getLogger(__name__)

FREQUENCIES = ("daily", "weekly", "monthly")
TARGET_TYPES = ("count", "minutes", "boolean")

# add_progress serialises on these, keyed by (user_id, date)
_RECORD_LOCK_STRIPES = 64
_record_locks = [threading.Lock() for _ in range(_RECORD_LOCK_STRIPES)]


def _record_lock(user_id: str, day: date) -> threading.Lock:
    return _record_locks[hash((user_id, day)) % _RECORD_LOCK_STRIPES]


def _commit(db: Session):
    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        raise ConcurrencyConflict(f"Record was modified concurrently: {e}")
    except OperationalError as e:
        db.rollback()
        logger.error("Database unavailable during commit: %s", e)
        raise PersistenceUnavailable("Database is unavailable")


# =============================================================================
# Habit registry
# =============================================================================

def _validate_definition(frequency: str, weekly_days: Optional[List[int]], target_type: str, target_value: int):
    if frequency not in FREQUENCIES:
        raise InvalidTarget(f"Unknown frequency '{frequency}'")
    if target_type not in TARGET_TYPES:
        raise InvalidTarget(f"Unknown target type '{target_type}'")
    if target_value is None or target_value < 1:
        raise InvalidTarget("targetValue must be at least 1")
    if frequency == "weekly":
        if weekly_days is None:
            raise InvalidTarget("Weekly habits require weeklyDays")
        if any(not isinstance(day, int) or not 0 <= day <= 6 for day in weekly_days):
            raise InvalidTarget("weeklyDays must only contain weekdays 0-6")


def _normalize_definition(values: dict) -> dict:
    if values["frequency"] == "weekly":
        values["weekly_days"] = sorted(set(values["weekly_days"]))
    else:
        values["weekly_days"] = None
    # a boolean habit is either done or not
    if values["target_type"] == "boolean":
        values["target_value"] = 1
    return values


def _find_active_by_name(db: Session, user_id: str, name: str) -> Optional[models.Habit]:
    return db.query(models.Habit).filter(
        models.Habit.user_id == user_id,
        models.Habit.name == name,
        models.Habit.is_active == True,
    ).first()


def create_habit(db: Session, user_id: str, habit_in: schemas.HabitCreate) -> models.Habit:
    values = habit_in.model_dump()
    _validate_definition(values["frequency"], values["weekly_days"], values["target_type"], values["target_value"])

    if _find_active_by_name(db, user_id, values["name"]):
        raise DuplicateName(f"Habit '{values['name']}' already exists")

    habit = models.Habit(
        id=utils.generate_habit_id(),
        user_id=user_id,
        is_active=True,
        **_normalize_definition(values),
    )
    db.add(habit)
    _invalidate_stats(db, user_id)
    try:
        _commit(db)
    except IntegrityError:
        # a concurrent create won the active-name index
        db.rollback()
        raise DuplicateName(f"Habit '{values['name']}' already exists")
    db.refresh(habit)
    logger.info("Created habit %s (%s) for user %s", habit.id, habit.name, user_id)
    return habit


def get_habit(db: Session, habit_id: str, user_id: Optional[str] = None) -> Optional[models.Habit]:
    query = db.query(models.Habit).filter(models.Habit.id == habit_id)
    if user_id is not None:
        query = query.filter(models.Habit.user_id == user_id)
    return query.first()


def update_habit(
    db: Session, habit_id: str, habit_in: schemas.HabitUpdate, user_id: Optional[str] = None
) -> models.Habit:
    habit = get_habit(db, habit_id, user_id)
    if not habit:
        raise NotFound(f"Habit {habit_id} not found")

    update_data = habit_in.model_dump(exclude_unset=True)
    values = {
        "frequency": update_data.get("frequency") or habit.frequency,
        "weekly_days": update_data.get("weekly_days", habit.weekly_days),
        "target_type": update_data.get("target_type") or habit.target_type,
        "target_value": update_data.get("target_value", habit.target_value),
    }
    _validate_definition(values["frequency"], values["weekly_days"], values["target_type"], values["target_value"])

    new_name = update_data.get("name")
    if new_name and new_name != habit.name and habit.is_active:
        if _find_active_by_name(db, habit.user_id, new_name):
            raise DuplicateName(f"Habit '{new_name}' already exists")

    for key in ("name", "emoji", "color"):
        if update_data.get(key) is not None:
            setattr(habit, key, update_data[key])
    for key, value in _normalize_definition(values).items():
        setattr(habit, key, value)

    _invalidate_stats(db, habit.user_id)
    name = habit.name
    try:
        _commit(db)
    except IntegrityError:
        db.rollback()
        raise DuplicateName(f"Habit '{name}' already exists")
    db.refresh(habit)
    return habit


def deactivate_habit(db: Session, habit_id: str, user_id: Optional[str] = None) -> models.Habit:
    """Soft delete: day records keep their snapshots of the habit."""
    habit = get_habit(db, habit_id, user_id)
    if not habit:
        raise NotFound(f"Habit {habit_id} not found")
    habit.is_active = False
    _invalidate_stats(db, habit.user_id)
    _commit(db)
    db.refresh(habit)
    logger.info("Deactivated habit %s for user %s", habit_id, habit.user_id)
    return habit


def list_active_habits(db: Session, user_id: str, frequency: Optional[str] = None) -> List[models.Habit]:
    query = db.query(models.Habit).filter(
        models.Habit.user_id == user_id,
        models.Habit.is_active == True,
    )
    if frequency:
        query = query.filter(models.Habit.frequency == frequency)
    return query.order_by(models.Habit.created_at.desc()).all()


def list_users_with_active_habits(db: Session) -> List[str]:
    rows = db.query(models.Habit.user_id).filter(models.Habit.is_active == True).distinct().all()
    return [row[0] for row in rows]


def _monthly_day(day: date, setting: str) -> Optional[int]:
    if setting.lower() == "any":
        return None
    last_day = calendar.monthrange(day.year, day.month)[1]
    return min(int(setting), last_day)


def is_eligible_on(habit, day: date, monthly_day_setting: Optional[str] = None) -> bool:
    """
    Whether ``habit`` is tracked on ``day``. Accepts a Habit row or a
    HabitProgressSnapshot, both expose frequency and weekly_days.
    """
    if habit.frequency == "daily":
        return True
    if habit.frequency == "weekly":
        return sunday_based_weekday(day) in set(habit.weekly_days or [])
    if habit.frequency == "monthly":
        designated = _monthly_day(day, monthly_day_setting or config.MONTHLY_ELIGIBLE_DAY)
        return designated is None or day.day == designated
    return False


# =============================================================================
# User settings
# =============================================================================

def get_user_settings(db: Session, user_id: str) -> Optional[models.UserSettings]:
    return db.query(models.UserSettings).filter(models.UserSettings.user_id == user_id).first()


def get_timezone_offset(db: Session, user_id: str) -> int:
    settings = get_user_settings(db, user_id)
    if settings is None:
        return config.DEFAULT_TIMEZONE_OFFSET_MINUTES
    return settings.timezone_offset_minutes


def set_user_timezone(
    db: Session, user_id: str, preset_id: Optional[str] = None, offset_minutes: Optional[int] = None
) -> models.UserSettings:
    if preset_id:
        offset_minutes = get_timezone_preset(preset_id).offset
    elif offset_minutes is None:
        raise InvalidTarget("Either timezone or offsetMinutes is required")
    validate_offset(offset_minutes)

    settings = get_user_settings(db, user_id)
    if settings is None:
        settings = models.UserSettings(user_id=user_id)
        db.add(settings)
    settings.timezone_id = preset_id
    settings.timezone_offset_minutes = offset_minutes
    _commit(db)
    db.refresh(settings)
    logger.info("Saved timezone %s (%s min) for user %s", preset_id or "custom", offset_minutes, user_id)
    return settings


# =============================================================================
# Daily progress store
# =============================================================================

def _get_record_row(db: Session, user_id: str, day: date) -> Optional[models.DailyProgress]:
    return db.query(models.DailyProgress).filter(
        models.DailyProgress.user_id == user_id,
        models.DailyProgress.date == storage_key(day),
    ).first()


def _get_or_create_record_row(db: Session, user_id: str, day: date) -> models.DailyProgress:
    row = _get_record_row(db, user_id, day)
    if row is not None:
        return row

    row = models.DailyProgress(user_id=user_id, date=storage_key(day), habits_data={})
    db.add(row)
    try:
        db.flush()
    except IntegrityError:
        # another writer created the same (user, date) first
        db.rollback()
        row = _get_record_row(db, user_id, day)
        if row is None:
            raise ConcurrencyConflict(f"Could not create progress record for {day}")
    return row


def get_or_create_record(db: Session, user_id: str, day: date) -> schemas.DailyProgressRecord:
    row = _get_or_create_record_row(db, user_id, day)
    _commit(db)
    return schemas.DailyProgressRecord.from_row(row)


def get_record(db: Session, user_id: str, day: date) -> Optional[schemas.DailyProgressRecord]:
    row = _get_record_row(db, user_id, day)
    return schemas.DailyProgressRecord.from_row(row) if row else None


def get_range(db: Session, user_id: str, start: date, end: date) -> List[schemas.DailyProgressRecord]:
    """Records with ``start <= date <= end``, newest first."""
    rows = db.query(models.DailyProgress).filter(
        models.DailyProgress.user_id == user_id,
        models.DailyProgress.date >= storage_key(start),
        models.DailyProgress.date <= storage_key(end),
    ).order_by(models.DailyProgress.date.desc()).all()
    return [schemas.DailyProgressRecord.from_row(row) for row in rows]


def get_history(db: Session, user_id: str, until: Optional[date] = None) -> List[schemas.DailyProgressRecord]:
    """Every record of the user up to ``until``, newest first."""
    query = db.query(models.DailyProgress).filter(models.DailyProgress.user_id == user_id)
    if until is not None:
        query = query.filter(models.DailyProgress.date <= storage_key(until))
    rows = query.order_by(models.DailyProgress.date.desc()).all()
    return [schemas.DailyProgressRecord.from_row(row) for row in rows]


def _seed_snapshot(habit: models.Habit) -> schemas.HabitProgressSnapshot:
    return schemas.HabitProgressSnapshot(
        habit_id=habit.id,
        name=habit.name,
        frequency=habit.frequency,
        weekly_days=habit.weekly_days,
        target_type=habit.target_type,
        target_value=habit.target_value,
        current_progress=0,
        last_updated=utc_now(),
    )


def _dump_snapshot(snapshot: schemas.HabitProgressSnapshot) -> dict:
    return snapshot.model_dump(mode="json", by_alias=True)


def _mutate_record(
    db: Session,
    user_id: str,
    day: date,
    mutate: Callable[[dict], object],
    max_retries: Optional[int] = None,
):
    """
    Read-modify-write of one day record.

    ``mutate`` receives a copy of the habit mapping, edits it in place and
    returns the operation's result. Writers of the same (user, date) are
    serialised in-process; a stale version from another process is retried.
    Cached summaries that cover a changed day are dropped in the same
    transaction.
    """
    retries = config.PROGRESS_MAX_RETRIES if max_retries is None else max_retries
    with _record_lock(user_id, day):
        attempt = 0
        while True:
            try:
                row = _get_or_create_record_row(db, user_id, day)
                before = row.habits_data or {}
                habits_data = dict(before)
                result = mutate(habits_data)
                if habits_data != before:
                    row.habits_data = habits_data
                    _invalidate_stats(db, user_id, day)
                _commit(db)
                return result
            except ConcurrencyConflict:
                db.rollback()
                attempt += 1
                if attempt > retries:
                    logger.error("Giving up on record %s/%s after %d attempts", user_id, day, attempt)
                    raise
                logger.warning("Write conflict on record %s/%s, retrying (%d/%d)", user_id, day, attempt, retries)


def add_progress(
    db: Session,
    user_id: str,
    habit_id: str,
    amount: int,
    day: date,
    max_retries: Optional[int] = None,
) -> schemas.HabitProgressSnapshot:
    habit = get_habit(db, habit_id, user_id)
    if not habit or not habit.is_active:
        raise HabitNotFound(f"Habit {habit_id} not found")

    def apply(habits_data: dict) -> schemas.HabitProgressSnapshot:
        if habit_id in habits_data:
            snapshot = schemas.HabitProgressSnapshot.model_validate(habits_data[habit_id])
        else:
            snapshot = _seed_snapshot(habit)

        new_progress = max(0, snapshot.current_progress + amount)
        if snapshot.target_type == "boolean":
            new_progress = min(new_progress, 1)

        updated = schemas.HabitProgressSnapshot.model_validate(
            {**snapshot.model_dump(), "current_progress": new_progress, "last_updated": utc_now()}
        )
        habits_data[habit_id] = _dump_snapshot(updated)
        return updated

    snapshot = _mutate_record(db, user_id, day, apply, max_retries)
    logger.info(
        "Added %s progress to habit %s for %s on %s (now %s/%s)",
        amount, snapshot.name, user_id, day, snapshot.current_progress, snapshot.target_value,
    )
    return snapshot


def save_daily_snapshot(db: Session, user_id: str, day: date) -> int:
    """Seed an empty snapshot for every habit due on ``day`` and missing from its record."""
    habits = [habit for habit in list_active_habits(db, user_id) if is_eligible_on(habit, day)]
    if not habits:
        return 0

    def seed(habits_data: dict) -> int:
        added = 0
        for habit in habits:
            if habit.id not in habits_data:
                habits_data[habit.id] = _dump_snapshot(_seed_snapshot(habit))
                added += 1
        return added

    added = _mutate_record(db, user_id, day, seed)
    logger.info("Saved daily snapshot for %s on %s: %d new habit entries", user_id, day, added)
    return added


# =============================================================================
# Stats cache
# =============================================================================

def _invalidate_stats(db: Session, user_id: str, day: Optional[date] = None):
    """Drop cached summaries of ``user_id`` from ``day`` on, or all of them."""
    query = db.query(models.StatsSummary).filter(models.StatsSummary.user_id == user_id)
    if day is not None:
        # summaries from this day on include it in their windows
        query = query.filter(models.StatsSummary.date >= storage_key(day))
    query.delete(synchronize_session=False)


def get_stats_summary(db: Session, user_id: str, day: date) -> Optional[schemas.StatsSummaryRead]:
    row = db.query(models.StatsSummary).filter(
        models.StatsSummary.user_id == user_id,
        models.StatsSummary.date == storage_key(day),
    ).first()
    return _summary_from_row(row) if row else None


def _summary_from_row(row: models.StatsSummary) -> schemas.StatsSummaryRead:
    return schemas.StatsSummaryRead(
        user_id=row.user_id,
        date=row.date.date(),
        total_habits=row.total_habits,
        completed_habits=row.completed_habits,
        completion_rate=row.completion_rate,
        seven_day_completion_rate=row.seven_day_completion_rate,
        best_streak=row.best_streak,
        best_day=row.best_day,
        worst_day=row.worst_day,
        last_updated=row.last_updated,
    )


def upsert_stats_summary(db: Session, summary: schemas.StatsSummaryRead) -> schemas.StatsSummaryRead:
    values = {
        "total_habits": summary.total_habits,
        "completed_habits": summary.completed_habits,
        "completion_rate": summary.completion_rate,
        "seven_day_completion_rate": summary.seven_day_completion_rate,
        "best_streak": summary.best_streak,
        "best_day": summary.best_day.model_dump(mode="json", by_alias=True) if summary.best_day else None,
        "worst_day": summary.worst_day.model_dump(mode="json", by_alias=True) if summary.worst_day else None,
        "last_updated": summary.last_updated.replace(tzinfo=None),
    }
    key = {"user_id": summary.user_id, "date": storage_key(summary.date)}

    for _ in range(2):
        row = db.query(models.StatsSummary).filter_by(**key).first()
        if row is None:
            row = models.StatsSummary(**key)
            db.add(row)
        for field, value in values.items():
            setattr(row, field, value)
        try:
            _commit(db)
            break
        except IntegrityError:
            # lost the insert race, update the winner's row instead
            db.rollback()
    else:
        raise ConcurrencyConflict(f"Could not store stats for {summary.user_id} on {summary.date}")

    db.refresh(row)
    return _summary_from_row(row)


# =============================================================================
# Health records
# =============================================================================

def create_health_record(
    db: Session, user_id: str, record_in: schemas.HealthCreate, day: date
) -> schemas.HealthRead:
    values = record_in.model_dump(exclude={"date"})
    if not any(value is not None for key, value in values.items() if key != "source"):
        raise InvalidTarget("A health record needs at least one metric or note")

    row = models.HealthRecord(user_id=user_id, date=storage_key(day), **values)
    db.add(row)
    _commit(db)
    db.refresh(row)
    logger.info("Saved %s health record for %s on %s", row.source, user_id, day)
    return schemas.HealthRead.from_row(row)


def list_health_records(
    db: Session,
    user_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    source: Optional[str] = None,
) -> List[schemas.HealthRead]:
    """Health records of the user, newest day first."""
    query = db.query(models.HealthRecord).filter(models.HealthRecord.user_id == user_id)
    if start is not None:
        query = query.filter(models.HealthRecord.date >= storage_key(start))
    if end is not None:
        query = query.filter(models.HealthRecord.date <= storage_key(end))
    if source:
        query = query.filter(models.HealthRecord.source == source)
    rows = query.order_by(models.HealthRecord.date.desc(), models.HealthRecord.id.desc()).all()
    return [schemas.HealthRead.from_row(row) for row in rows]
