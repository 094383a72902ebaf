import logging

from . import crud, stats
from .database import SessionLocal
from .time_utils import today

logger = logging.getLogger(__name__)


def refresh_stats_summaries():
    """
    Recompute the cached stats summary of every user with active habits,
    for their own current day.
    """
    db = SessionLocal()
    try:
        user_ids = crud.list_users_with_active_habits(db)
        if not user_ids:
            logger.info("No users with active habits, nothing to refresh.")
            return

        for user_id in user_ids:
            day = today(crud.get_timezone_offset(db, user_id))
            stats.recompute_summary(db, user_id, day)

        logger.info("Refreshed stats summaries for %d users.", len(user_ids))
    except Exception:
        logger.exception("Failed to refresh stats summaries")
        raise
    finally:
        db.close()
