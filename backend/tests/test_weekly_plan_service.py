"""
Tests pour WeeklyPlanService (semaine réelle/prévue, grille DayTraining, repli).
"""
import asyncio
from datetime import date
from unittest.mock import AsyncMock

import pytest

from conftest import TODAY, make_planned, make_training
from app.domain.errors import AuthError, NetworkError, NotFoundError, ValidationError
from app.domain.services.record_store import MockDelays, MockRecordStore
from app.domain.services.training_queries import TrainingQueries
from app.domain.services.training_service import TrainingService
from app.domain.services.weekly_plan_service import WeeklyPlanService

WEEK = (date(2024, 6, 17), date(2024, 6, 23))


@pytest.fixture
def week_store():
    return MockRecordStore(
        trainings=[make_training(), make_training(id="t-old", date="2024-06-12")],
        planned_trainings=[make_planned()],
        delays=MockDelays.none(),
    )


@pytest.fixture
def weekly(week_store):
    return WeeklyPlanService(week_store, today=lambda: TODAY)


class TestWeekQueries:
    def test_trainings_for_week(self, weekly):
        trainings = asyncio.run(weekly.get_trainings_for_week(*WEEK))
        assert [t.id for t in trainings] == ["t-1"]

    def test_stats(self, weekly):
        stats = asyncio.run(weekly.get_weekly_stats(*WEEK))
        planned = asyncio.run(weekly.get_planned_weekly_stats(*WEEK))
        assert stats.total_distance == 8.5
        assert planned.total_planned_duration == 60

    def test_week_data_offset(self, weekly):
        data = asyncio.run(weekly.get_week_data(-1))
        assert data.week_start == date(2024, 6, 10)
        assert data.actual_stats.total_sessions == 1

    def test_week_data_rejects_non_integer_offset(self, weekly):
        with pytest.raises(ValidationError):
            asyncio.run(weekly.get_week_data("0"))

    def test_rescheduled_plan_leaves_the_week(self, week_store, weekly):
        """Plan créé puis déplacé la semaine suivante : il sort de la semaine courante."""
        queries = TrainingQueries(TrainingService(week_store), fallback=week_store)

        created = asyncio.run(queries.create_planned_training({
            "user_id": "user1", "title": "Tempo", "type": "running",
            "planned_date": "2024-06-20", "planned_duration": 40,
        }))
        in_week = asyncio.run(weekly.get_planned_trainings_for_week(*WEEK))
        assert created.data.id in [p.id for p in in_week]

        moved = asyncio.run(queries.reschedule_planned_training(created.data.id, date(2024, 6, 24)))
        assert moved.data.planned_date == date(2024, 6, 24)

        in_week = asyncio.run(weekly.get_planned_trainings_for_week(*WEEK))
        next_week = asyncio.run(weekly.get_planned_trainings_for_week(date(2024, 6, 24), date(2024, 6, 30)))
        assert created.data.id not in [p.id for p in in_week]
        assert created.data.id in [p.id for p in next_week]

    def test_inconsistent_plans(self, week_store, weekly):
        asyncio.run(week_store.update_planned_training("p-1", {"completed": True}))
        assert [p.id for p in asyncio.run(weekly.get_inconsistent_plans())] == ["p-1"]


class TestDayGrid:
    def test_empty_week_has_seven_empty_days(self, weekly):
        plan = asyncio.run(weekly.get_weekly_plan(0))
        assert plan.week_start == date(2024, 6, 17)
        assert plan.week_end == date(2024, 6, 23)
        assert list(plan.days) == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
        assert plan.summary.rest_days == 7

    def test_add_update_delete(self, weekly):
        added = asyncio.run(weekly.add_day_training(0, "Tuesday", {
            "activity_type": "Intervals", "duration": 50, "rpe": 8, "status": "completed",
        }))
        assert added.id.startswith("day-tuesday-")
        assert added.status.value == "planned"

        plan = asyncio.run(weekly.get_weekly_plan(0))
        assert plan.days["Tuesday"].id == added.id
        assert plan.summary.training_load == 400
        assert plan.summary.rest_days == 6

        done = added.model_copy(update={"status": "completed"})
        asyncio.run(weekly.update_day_training(0, done))
        plan = asyncio.run(weekly.get_weekly_plan(0))
        assert plan.summary.completed_training_days == 1
        assert plan.summary.completion_percentage == 100

        asyncio.run(weekly.delete_day_training(added.id))
        plan = asyncio.run(weekly.get_weekly_plan(0))
        assert plan.days["Tuesday"] is None
        with pytest.raises(NotFoundError):
            asyncio.run(weekly.delete_day_training(added.id))

    def test_weeks_are_isolated(self, weekly):
        asyncio.run(weekly.add_day_training(1, "Monday", {"activity_type": "Long Run", "duration": 90}))
        assert asyncio.run(weekly.get_weekly_plan(0)).days["Monday"] is None
        next_week = asyncio.run(weekly.get_weekly_plan_starting(date(2024, 6, 24)))
        assert next_week.week_offset == 1
        assert next_week.days["Monday"].duration == 90

    def test_adding_twice_replaces_the_slot(self, weekly):
        asyncio.run(weekly.add_day_training(0, "Friday", {"activity_type": "Easy Run"}))
        asyncio.run(weekly.add_day_training(0, "Friday", {"activity_type": "Rest"}))
        plan = asyncio.run(weekly.get_weekly_plan(0))
        assert plan.days["Friday"].activity_type.value == "Rest"
        assert plan.summary.total_training_days == 1

    def test_unknown_day_rejected(self, weekly):
        with pytest.raises(ValidationError):
            asyncio.run(weekly.add_day_training(0, "Funday", {"activity_type": "Rest"}))

    def test_week_start_must_be_a_monday(self, weekly):
        with pytest.raises(ValidationError):
            asyncio.run(weekly.get_weekly_plan_starting(date(2024, 6, 19)))
        slot = {"id": "day-x", "day": "Monday", "activity_type": "Rest"}
        with pytest.raises(ValidationError):
            asyncio.run(weekly.save_day_training(date(2024, 6, 23), slot))


class TestFallback:
    def test_failing_backend_falls_back_to_store(self, week_store):
        failing = AsyncMock()
        failing.name = "remote"
        failing.get_trainings.side_effect = NetworkError("down")
        weekly = WeeklyPlanService(failing, fallback=week_store, today=lambda: TODAY)

        trainings = asyncio.run(weekly.get_trainings_for_week(*WEEK))
        assert [t.id for t in trainings] == ["t-1"]

    def test_without_fallback_error_propagates(self):
        failing = AsyncMock()
        failing.name = "remote"
        failing.get_day_trainings.side_effect = NetworkError("down")
        weekly = WeeklyPlanService(failing, today=lambda: TODAY)
        with pytest.raises(NetworkError):
            asyncio.run(weekly.get_weekly_plan(0))

    def test_auth_error_is_not_masked_by_fallback(self, week_store):
        failing = AsyncMock()
        failing.name = "remote"
        failing.get_day_trainings.side_effect = AuthError("HTTP error! status: 401")
        weekly = WeeklyPlanService(failing, fallback=week_store, today=lambda: TODAY)

        with pytest.raises(AuthError):
            asyncio.run(weekly.get_weekly_plan(0))
