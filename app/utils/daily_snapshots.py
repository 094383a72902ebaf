"""
Background job that seeds each user's day record with every active habit.
Runs shortly after midnight so the day starts with a complete snapshot.
"""
import logging
from typing import Optional

from app import crud
from app.database import SessionLocal
from app.time_utils import today

logger = logging.getLogger(__name__)


def save_daily_snapshots(user_id: Optional[str] = None) -> int:
    """Seed today's record (in each user's own timezone) for one or all users"""
    db = SessionLocal()
    try:
        user_ids = [user_id] if user_id else crud.list_users_with_active_habits(db)

        total_added = 0
        for uid in user_ids:
            day = today(crud.get_timezone_offset(db, uid))
            total_added += crud.save_daily_snapshot(db, uid, day)

        logger.info("Daily snapshots saved: %d habit entries across %d users", total_added, len(user_ids))
        return total_added

    except Exception:
        db.rollback()
        logger.exception("Error while saving daily snapshots")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    # For manual runs
    logging.basicConfig(level=logging.INFO)
    save_daily_snapshots()
