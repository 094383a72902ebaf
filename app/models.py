# app/models.py
from datetime import datetime

from sqlalchemy import (JSON, Boolean, Column, DateTime, Float, Index, Integer, String, Text, UniqueConstraint, text)

from .database import Base


# --- Habit definitions ---
class Habit(Base):
    __tablename__ = "habits"
    __table_args__ = (
        # names are unique among a user's active habits only
        Index(
            "uq_habits_user_active_name", "user_id", "name", unique=True,
            sqlite_where=text("is_active"), postgresql_where=text("is_active"),
        ),
    )

    id = Column(String(36), primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)

    # Basic info
    name = Column(String(255), nullable=False)
    emoji = Column(String(16), nullable=True)
    color = Column(String(32), nullable=True)

    # Cadence
    frequency = Column(String(20), nullable=False, index=True)  # 'daily', 'weekly', 'monthly'
    weekly_days = Column(JSON, nullable=True)  # List of weekday numbers, 0=Sunday

    # Target
    target_type = Column(String(20), nullable=False, default="count")  # 'count', 'minutes', 'boolean'
    target_value = Column(Integer, nullable=False, default=1)

    # Status
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# --- Per-user preferences ---
class UserSettings(Base):
    __tablename__ = "user_settings"

    user_id = Column(String(64), primary_key=True)
    timezone_id = Column(String(32), nullable=True)  # preset id, None for a custom offset
    timezone_offset_minutes = Column(Integer, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# --- One aggregate per (user, calendar day) ---
class DailyProgress(Base):
    __tablename__ = "daily_progress"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_daily_progress_user_date"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    date = Column(DateTime, nullable=False, index=True)  # UTC midnight of the calendar day
    habits_data = Column(JSON, nullable=False, default=dict)  # habit id -> snapshot
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}


# --- Cached statistics, rebuilt on demand ---
class StatsSummary(Base):
    __tablename__ = "stats_summaries"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_stats_summary_user_date"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    date = Column(DateTime, nullable=False)  # UTC midnight of the calendar day
    total_habits = Column(Integer, nullable=False, default=0)
    completed_habits = Column(Integer, nullable=False, default=0)
    completion_rate = Column(Float, nullable=False, default=0.0)
    seven_day_completion_rate = Column(Float, nullable=False, default=0.0)
    best_streak = Column(Integer, nullable=False, default=0)
    best_day = Column(JSON, nullable=True)
    worst_day = Column(JSON, nullable=True)
    last_updated = Column(DateTime, default=datetime.utcnow)


# --- Health metrics imported from a phone or entered by hand ---
class HealthRecord(Base):
    __tablename__ = "health_records"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    date = Column(DateTime, nullable=False, index=True)  # UTC midnight of the calendar day

    # Body
    weight = Column(Float, nullable=True)  # kg
    height = Column(Float, nullable=True)  # cm
    bmi = Column(Float, nullable=True)

    # Activity
    steps = Column(Integer, nullable=True)
    distance = Column(Float, nullable=True)  # meters
    calories_burned = Column(Float, nullable=True)  # kcal
    active_energy = Column(Float, nullable=True)  # kcal
    resting_energy = Column(Float, nullable=True)  # kcal
    exercise_minutes = Column(Integer, nullable=True)
    stand_hours = Column(Float, nullable=True)

    # Vital signs
    blood_pressure = Column(String(16), nullable=True)  # e.g. "120/80"
    heart_rate = Column(Integer, nullable=True)  # bpm
    blood_oxygen = Column(Float, nullable=True)  # percent
    body_temperature = Column(Float, nullable=True)  # celsius

    # Sleep
    sleep_hours = Column(Float, nullable=True)
    sleep_quality = Column(String(16), nullable=True)  # 'good', 'fair', 'poor'

    water_intake = Column(Integer, nullable=True)  # ml
    notes = Column(Text, nullable=True)
    source = Column(String(32), nullable=False, default="apple_health", index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
