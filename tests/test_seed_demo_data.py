"""
Tests for the demo data script
"""
from app import crud
from app.seed_demo_data import SAMPLE_HABITS, create_sample_habits, generate_progress


def test_sample_habits_are_created_once(db_session, user_id):
    first = create_sample_habits(db_session, user_id)
    second = create_sample_habits(db_session, user_id)
    assert len(first) == len(SAMPLE_HABITS)
    assert sorted(h.id for h in first) == sorted(h.id for h in second)


def test_generate_progress_fills_past_days(db_session, user_id):
    habits = create_sample_habits(db_session, user_id)
    generate_progress(db_session, user_id, habits, days=5, completion_chance=1.0, seed=42)

    records = crud.get_history(db_session, user_id)
    assert len(records) == 5
    for record in records:
        assert len(record.habits_by_id) == len(SAMPLE_HABITS)
        assert all(snapshot.is_completed for snapshot in record.habits_by_id.values())
