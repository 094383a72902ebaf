# app/schemas.py
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

FREQUENCY_PATTERN = "^(daily|weekly|monthly)$"
TARGET_TYPE_PATTERN = "^(count|minutes|boolean)$"


class APIModel(BaseModel):
    """Base for every payload: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Habits ---


class HabitCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=255)
    emoji: Optional[str] = None
    color: Optional[str] = None
    frequency: str = Field("daily", pattern=FREQUENCY_PATTERN)
    weekly_days: Optional[List[int]] = None  # [0-6], 0=Sunday
    target_type: str = Field("count", pattern=TARGET_TYPE_PATTERN)
    target_value: int = 1


class HabitUpdate(APIModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    emoji: Optional[str] = None
    color: Optional[str] = None
    frequency: Optional[str] = Field(None, pattern=FREQUENCY_PATTERN)
    weekly_days: Optional[List[int]] = None
    target_type: Optional[str] = Field(None, pattern=TARGET_TYPE_PATTERN)
    target_value: Optional[int] = None


class HabitRead(APIModel):
    id: str
    user_id: str
    name: str
    emoji: Optional[str] = None
    color: Optional[str] = None
    frequency: str
    weekly_days: Optional[List[int]] = None
    target_type: str
    target_value: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


# --- Daily progress ---


class HabitProgressSnapshot(APIModel):
    """State of one habit on one day, with the definition it had on that day."""

    habit_id: str
    name: str
    frequency: str
    weekly_days: Optional[List[int]] = None
    target_type: str
    target_value: int
    current_progress: int = 0
    is_completed: bool = False
    last_updated: datetime

    @model_validator(mode="after")
    def _derive_completion(self):
        # isCompleted only ever follows currentProgress
        self.is_completed = self.current_progress >= self.target_value
        return self


class DailyProgressRecord(APIModel):
    user_id: str
    date: date
    habits_by_id: Dict[str, HabitProgressSnapshot] = Field(default_factory=dict)

    @classmethod
    def from_row(cls, row) -> "DailyProgressRecord":
        return cls(
            user_id=row.user_id,
            date=row.date.date(),
            habits_by_id={
                habit_id: HabitProgressSnapshot.model_validate(data)
                for habit_id, data in (row.habits_data or {}).items()
            },
        )


class DailyProgressRange(APIModel):
    start_date: date
    end_date: date
    records: List[DailyProgressRecord]


class ProgressResult(APIModel):
    date: date
    progress: HabitProgressSnapshot


class ProgressAdd(APIModel):
    progress_to_add: int
    date: Optional[str] = None  # YYYY-MM-DD, defaults to the user's today


class QuickLog(APIModel):
    habit_id: str
    amount: Optional[int] = None
    date: Optional[str] = None


class SnapshotResult(APIModel):
    user_id: str
    date: date
    saved_count: int


# --- Statistics ---


class StreakRead(APIModel):
    current: int
    best: int
    last_completed: Optional[date] = None


class HabitStatsRead(APIModel):
    habit_id: str
    current_streak: int
    best_streak: int
    last_completed: Optional[date] = None
    completion_rate_7_days: float
    completion_rate_30_days: float


class DailyStats(APIModel):
    date: date
    total_habits: int
    completed_habits: int
    completion_rate: float


class DayStat(APIModel):
    date: date
    completion_rate: float
    completed_count: int
    total_count: int


class StatsSummaryRead(APIModel):
    user_id: str
    date: date
    total_habits: int
    completed_habits: int
    completion_rate: float
    seven_day_completion_rate: float
    best_streak: int
    best_day: Optional[DayStat] = None
    worst_day: Optional[DayStat] = None
    last_updated: datetime


class ProgressSummaryDay(DailyStats):
    habits: List[HabitProgressSnapshot]


class HistoryResponse(APIModel):
    summary: List[ProgressSummaryDay]


# --- User settings ---


class TimezoneUpdate(APIModel):
    timezone: Optional[str] = None  # preset id
    offset_minutes: Optional[int] = None


class TimezoneRead(APIModel):
    user_id: str
    timezone: Optional[str] = None
    name: Optional[str] = None
    offset_minutes: int
    utc_offset: str


class ErrorResponse(BaseModel):
    error: str
    detail: str


# --- Health metrics ---


class HealthCreate(APIModel):
    date: Optional[str] = None  # YYYY-MM-DD, defaults to the user's today

    weight: Optional[float] = Field(None, gt=0)
    height: Optional[float] = Field(None, gt=0)
    bmi: Optional[float] = Field(None, gt=0)

    steps: Optional[int] = Field(None, ge=0)
    distance: Optional[float] = Field(None, ge=0)
    calories_burned: Optional[float] = Field(None, ge=0)
    active_energy: Optional[float] = Field(None, ge=0)
    resting_energy: Optional[float] = Field(None, ge=0)
    exercise_minutes: Optional[int] = Field(None, ge=0)
    stand_hours: Optional[float] = Field(None, ge=0, le=24)

    blood_pressure: Optional[str] = Field(None, pattern=r"^\d{2,3}/\d{2,3}$")
    heart_rate: Optional[int] = Field(None, gt=0)
    blood_oxygen: Optional[float] = Field(None, ge=0, le=100)
    body_temperature: Optional[float] = Field(None, gt=0)

    sleep_hours: Optional[float] = Field(None, ge=0, le=24)
    sleep_quality: Optional[str] = Field(None, pattern="^(good|fair|poor)$")

    water_intake: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    source: str = Field("apple_health", min_length=1, max_length=32)


class HealthRead(APIModel):
    id: int
    user_id: str
    date: date

    weight: Optional[float] = None
    height: Optional[float] = None
    bmi: Optional[float] = None

    steps: Optional[int] = None
    distance: Optional[float] = None
    calories_burned: Optional[float] = None
    active_energy: Optional[float] = None
    resting_energy: Optional[float] = None
    exercise_minutes: Optional[int] = None
    stand_hours: Optional[float] = None

    blood_pressure: Optional[str] = None
    heart_rate: Optional[int] = None
    blood_oxygen: Optional[float] = None
    body_temperature: Optional[float] = None

    sleep_hours: Optional[float] = None
    sleep_quality: Optional[str] = None

    water_intake: Optional[int] = None
    notes: Optional[str] = None
    source: str
    created_at: datetime

    @classmethod
    def from_row(cls, row) -> "HealthRead":
        data = {column: getattr(row, column) for column in cls.model_fields if column != "date"}
        return cls(date=row.date.date(), **data)


class HealthList(APIModel):
    records: List[HealthRead]
    count: int
