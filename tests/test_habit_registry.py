"""
Tests for habit definitions and day eligibility
"""
from datetime import date

import pytest

from app import crud, schemas
from app.exceptions import DuplicateName, InvalidTarget, NotFound


class TestCreateHabit:
    def test_create_daily_habit(self, make_habit, user_id):
        habit = make_habit("Drink water", target_value=8)
        assert len(habit.id) == 32
        assert habit.user_id == user_id
        assert habit.is_active
        assert habit.target_value == 8
        assert habit.weekly_days is None

    def test_duplicate_active_name_is_rejected(self, make_habit):
        make_habit("Read")
        with pytest.raises(DuplicateName):
            make_habit("Read")

    def test_racing_create_is_reported_as_duplicate(self, db_session, make_habit, monkeypatch):
        make_habit("Read")
        # the second writer did its name lookup before the first one committed
        monkeypatch.setattr(crud, "_find_active_by_name", lambda db, user_id, name: None)
        with pytest.raises(DuplicateName):
            make_habit("Read")
        assert len(crud.list_active_habits(db_session, "test-user-123")) == 1

    def test_racing_rename_is_reported_as_duplicate(self, db_session, make_habit, user_id, monkeypatch):
        make_habit("Read")
        habit = make_habit("Write")
        monkeypatch.setattr(crud, "_find_active_by_name", lambda db, user_id, name: None)
        with pytest.raises(DuplicateName):
            crud.update_habit(db_session, habit.id, schemas.HabitUpdate(name="Read"), user_id)
        assert crud.get_habit(db_session, habit.id).name == "Write"

    def test_same_name_allowed_for_other_user(self, make_habit):
        make_habit("Read")
        other = make_habit("Read", owner="someone-else")
        assert other.user_id == "someone-else"

    def test_name_can_be_reused_after_deactivation(self, db_session, make_habit, user_id):
        habit = make_habit("Read")
        crud.deactivate_habit(db_session, habit.id, user_id)
        again = make_habit("Read")
        assert again.id != habit.id

    @pytest.mark.parametrize("target_value", [0, -3])
    def test_target_below_one_is_rejected(self, make_habit, target_value):
        with pytest.raises(InvalidTarget):
            make_habit("Run", target_value=target_value)

    def test_weekly_requires_days(self, make_habit):
        with pytest.raises(InvalidTarget):
            make_habit("Gym", frequency="weekly")

    def test_weekly_days_out_of_range(self, make_habit):
        with pytest.raises(InvalidTarget):
            make_habit("Gym", frequency="weekly", weekly_days=[1, 7])

    def test_weekly_days_are_normalised(self, make_habit):
        habit = make_habit("Gym", frequency="weekly", weekly_days=[5, 1, 3, 1])
        assert habit.weekly_days == [1, 3, 5]

    def test_weekly_days_dropped_for_daily(self, make_habit):
        habit = make_habit("Stretch", weekly_days=[1, 2])
        assert habit.weekly_days is None

    def test_boolean_target_is_one(self, make_habit):
        habit = make_habit("Make bed", target_type="boolean", target_value=5)
        assert habit.target_value == 1


class TestUpdateHabit:
    def test_update_target(self, db_session, make_habit, user_id):
        habit = make_habit("Drink water", target_value=8)
        updated = crud.update_habit(db_session, habit.id, schemas.HabitUpdate(target_value=6), user_id)
        assert updated.target_value == 6
        assert updated.name == "Drink water"

    def test_rename_to_existing_name(self, db_session, make_habit, user_id):
        make_habit("Read")
        habit = make_habit("Write")
        with pytest.raises(DuplicateName):
            crud.update_habit(db_session, habit.id, schemas.HabitUpdate(name="Read"), user_id)

    def test_update_invalid_target(self, db_session, make_habit, user_id):
        habit = make_habit("Read")
        with pytest.raises(InvalidTarget):
            crud.update_habit(db_session, habit.id, schemas.HabitUpdate(target_value=0), user_id)

    def test_update_unknown_habit(self, db_session, user_id):
        with pytest.raises(NotFound):
            crud.update_habit(db_session, "missing", schemas.HabitUpdate(name="x"), user_id)

    def test_update_other_users_habit(self, db_session, make_habit):
        habit = make_habit("Read")
        with pytest.raises(NotFound):
            crud.update_habit(db_session, habit.id, schemas.HabitUpdate(name="Mine"), "intruder")


class TestListHabits:
    def test_inactive_habits_are_not_listed(self, db_session, make_habit, user_id):
        keep = make_habit("Read")
        drop = make_habit("Write")
        crud.deactivate_habit(db_session, drop.id, user_id)
        assert [h.id for h in crud.list_active_habits(db_session, user_id)] == [keep.id]

    def test_frequency_filter(self, db_session, make_habit, user_id):
        make_habit("Read")
        gym = make_habit("Gym", frequency="weekly", weekly_days=[1])
        assert [h.id for h in crud.list_active_habits(db_session, user_id, "weekly")] == [gym.id]

    def test_users_with_active_habits(self, db_session, make_habit):
        make_habit("Read")
        make_habit("Read", owner="second-user")
        assert sorted(crud.list_users_with_active_habits(db_session)) == ["second-user", "test-user-123"]


class TestEligibility:
    def test_daily_is_always_eligible(self, make_habit):
        habit = make_habit("Read")
        assert crud.is_eligible_on(habit, date(2024, 3, 10))

    def test_weekly_uses_sunday_based_days(self, make_habit):
        habit = make_habit("Gym", frequency="weekly", weekly_days=[1, 3, 5])
        assert crud.is_eligible_on(habit, date(2024, 1, 1))  # Monday
        assert not crud.is_eligible_on(habit, date(2024, 1, 2))  # Tuesday
        assert crud.is_eligible_on(habit, date(2024, 1, 5))  # Friday
        assert not crud.is_eligible_on(habit, date(2024, 1, 7))  # Sunday

    def test_weekly_with_no_days_is_never_eligible(self, make_habit):
        habit = make_habit("Gym", frequency="weekly", weekly_days=[])
        assert not any(crud.is_eligible_on(habit, date(2024, 1, d)) for d in range(1, 8))

    def test_monthly_default_first_day(self, make_habit):
        habit = make_habit("Budget", frequency="monthly")
        assert crud.is_eligible_on(habit, date(2024, 1, 1))
        assert not crud.is_eligible_on(habit, date(2024, 1, 15))

    def test_monthly_day_clamped_to_month_length(self, make_habit):
        habit = make_habit("Budget", frequency="monthly")
        assert crud.is_eligible_on(habit, date(2024, 2, 29), monthly_day_setting="31")
        assert not crud.is_eligible_on(habit, date(2024, 2, 28), monthly_day_setting="31")

    def test_monthly_any_day(self, make_habit):
        habit = make_habit("Budget", frequency="monthly")
        assert crud.is_eligible_on(habit, date(2024, 1, 17), monthly_day_setting="any")


class TestUserTimezone:
    def test_default_offset(self, db_session, user_id):
        assert crud.get_timezone_offset(db_session, user_id) == 420

    def test_set_preset(self, db_session, user_id):
        settings = crud.set_user_timezone(db_session, user_id, preset_id="us_eastern")
        assert settings.timezone_offset_minutes == -300
        assert crud.get_timezone_offset(db_session, user_id) == -300

    def test_set_custom_offset(self, db_session, user_id):
        settings = crud.set_user_timezone(db_session, user_id, offset_minutes=330)
        assert settings.timezone_id is None
        assert settings.timezone_offset_minutes == 330

    def test_set_requires_value(self, db_session, user_id):
        with pytest.raises(InvalidTarget):
            crud.set_user_timezone(db_session, user_id)

    def test_set_out_of_range_offset(self, db_session, user_id):
        with pytest.raises(InvalidTarget):
            crud.set_user_timezone(db_session, user_id, offset_minutes=-900)
