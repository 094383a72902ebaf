# app/config.py
import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./habits.db")

# Identity comes from an upstream gateway; requests without a userId fall back to this one.
DEFAULT_USER_ID = os.getenv("DEFAULT_USER_ID", "default-user")

# Fixed UTC offset in minutes (UTC+7)
DEFAULT_TIMEZONE_OFFSET_MINUTES = int(os.getenv("DEFAULT_TIMEZONE_OFFSET_MINUTES", 420))

# Day of month on which monthly habits are tracked, or "any" for every day
MONTHLY_ELIGIBLE_DAY = os.getenv("MONTHLY_ELIGIBLE_DAY", "1")

PROGRESS_MAX_RETRIES = int(os.getenv("PROGRESS_MAX_RETRIES", 3))

STATS_WINDOW_DAYS = int(os.getenv("STATS_WINDOW_DAYS", 7))
STATS_LOOKBACK_DAYS = int(os.getenv("STATS_LOOKBACK_DAYS", 30))

ENABLE_SCHEDULER = os.getenv("ENABLE_SCHEDULER", "true").lower() in ("1", "true", "yes")

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",")]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
