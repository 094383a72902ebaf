import argparse
import logging
import random
from datetime import timedelta

from app import config, crud, schemas
from app.database import Base, SessionLocal, engine
from app.exceptions import DuplicateName
from app.time_utils import format_calendar_date, today

logger = logging.getLogger(__name__)

SAMPLE_HABITS = [
    {"name": "Morning Exercise", "emoji": "💪", "color": "#ef4444", "target_type": "minutes", "target_value": 30},
    {"name": "Read Books", "emoji": "📚", "color": "#3b82f6", "target_type": "minutes", "target_value": 45},
    {"name": "Drink Water", "emoji": "💧", "color": "#06b6d4", "target_type": "count", "target_value": 8},
    {"name": "Meditation", "emoji": "🧘", "color": "#8b5cf6", "target_type": "minutes", "target_value": 15},
    {"name": "Study Coding", "emoji": "🧠", "color": "#22c55e", "target_type": "minutes", "target_value": 60},
    {"name": "Walk 10,000 Steps", "emoji": "🚶", "color": "#f97316", "target_type": "count", "target_value": 10000},
    {"name": "Practice Guitar", "emoji": "🎵", "color": "#ec4899", "target_type": "minutes", "target_value": 20},
]


def create_sample_habits(db, user_id: str):
    """Creates the sample habits, reusing any that already exist for the user."""
    existing = {habit.name: habit for habit in crud.list_active_habits(db, user_id)}
    habits = []
    for sample in SAMPLE_HABITS:
        if sample["name"] in existing:
            habits.append(existing[sample["name"]])
            continue
        try:
            habits.append(crud.create_habit(db, user_id, schemas.HabitCreate(frequency="daily", **sample)))
        except DuplicateName:
            logger.warning("Skipping duplicate habit %s", sample["name"])
    return habits


def generate_progress(db, user_id: str, habits, days: int, completion_chance: float, seed=None):
    """Adds random progress for each habit over the last ``days`` days."""
    rng = random.Random(seed)
    current_day = today(crud.get_timezone_offset(db, user_id))
    for offset in range(days, 0, -1):
        day = current_day - timedelta(days=offset)
        for habit in habits:
            if rng.random() < completion_chance:
                amount = habit.target_value
            else:
                amount = rng.randint(0, max(habit.target_value - 1, 0))
            if amount:
                crud.add_progress(db, user_id, habit.id, amount, day)
        print(f"{format_calendar_date(day)}: progress generated for {len(habits)} habits")


def main():
    parser = argparse.ArgumentParser(description="Fill the database with demo habits and progress.")
    parser.add_argument("--user", type=str, default=config.DEFAULT_USER_ID, help="User id to seed.")
    parser.add_argument("--days", type=int, default=30, help="How many past days to fill.")
    parser.add_argument(
        "--completion-chance", type=float, default=0.7, help="Probability that a habit is completed on a day."
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data.")
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        habits = create_sample_habits(db, args.user)
        print(f"Using {len(habits)} habits for user {args.user}")
        generate_progress(db, args.user, habits, args.days, args.completion_chance, args.seed)
        print(f"Successfully generated {args.days} days of demo progress.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
