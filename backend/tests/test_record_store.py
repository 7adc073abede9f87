"""
Tests pour le MockRecordStore : CRUD, ordre, ids, horodatage, grille hebdomadaire.
"""
import asyncio
from datetime import date

import pytest

from app.domain.entities import DayTraining, TrainingType
from app.domain.errors import NotFoundError, ValidationError
from app.domain.services.record_store import (
    SEED_PLANNED_TRAININGS,
    SEED_TRAININGS,
    MockDelays,
    MockRecordStore,
)
from conftest import FixedClock, make_planned, make_training


NEW_TRAINING = {
    "user_id": "user1",
    "title": "Tempo",
    "type": "running",
    "date": "2024-06-18",
    "duration": 40,
    "distance": 8.0,
}


class TestSeedData:
    def test_seed_is_running_dominant(self, store):
        trainings = asyncio.run(store.get_trainings())
        running = [t for t in trainings if t.type == TrainingType.RUNNING]
        strength = [t for t in trainings if t.type == TrainingType.STRENGTH]
        assert len(trainings) == len(SEED_TRAININGS)
        assert len(running) > 2 * len(strength)
        assert len({t.type for t in trainings}) >= 4

    def test_seed_has_planned_training(self, store):
        planned = asyncio.run(store.get_planned_trainings())
        assert len(planned) == len(SEED_PLANNED_TRAININGS)
        assert len(planned) >= 1

    def test_each_store_owns_its_collection(self):
        first = MockRecordStore(delays=MockDelays.none())
        second = MockRecordStore(delays=MockDelays.none())
        asyncio.run(first.delete_training("1"))
        assert len(asyncio.run(second.get_trainings())) == len(SEED_TRAININGS)

    def test_default_delays(self):
        delays = MockDelays()
        assert 0.3 <= delays.read <= 0.8
        assert 0.3 <= delays.create <= 0.5
        assert MockDelays.none().read == 0


class TestGetTrainings:
    def test_single_seeded_record(self):
        """Un store avec une seule séance la renvoie telle quelle."""
        store = MockRecordStore(
            trainings=[make_training(id="only", date="2024-06-15", duration=45, distance=8.5)],
            planned_trainings=[],
            delays=MockDelays.none(),
        )
        trainings = asyncio.run(store.get_trainings())
        assert len(trainings) == 1
        assert trainings[0].id == "only"
        assert trainings[0].distance == 8.5
        assert trainings[0].duration == 45
        assert trainings[0].date == date(2024, 6, 15)

    def test_sorted_by_date_descending(self, store):
        trainings = asyncio.run(store.get_trainings())
        dates = [t.date for t in trainings]
        assert dates == sorted(dates, reverse=True)

    def test_limit_and_offset(self, store):
        everything = asyncio.run(store.get_trainings())
        window = asyncio.run(store.get_trainings(limit=3, offset=2))
        assert [t.id for t in window] == [t.id for t in everything[2:5]]

    def test_limit_zero_returns_empty(self, store):
        assert asyncio.run(store.get_trainings(limit=0)) == []

    def test_offset_beyond_end(self, store):
        assert asyncio.run(store.get_trainings(offset=100)) == []

    def test_negative_limit_rejected(self, store):
        with pytest.raises(ValidationError):
            asyncio.run(store.get_trainings(limit=-1))

    def test_returned_records_are_copies(self, store):
        first = asyncio.run(store.get_training_by_id("1"))
        first.title = "modifié"
        assert asyncio.run(store.get_training_by_id("1")).title == "Morning Run"


class TestTrainingCrud:
    def test_create_then_get_round_trip(self, empty_store):
        created = asyncio.run(empty_store.create_training(NEW_TRAINING))
        fetched = asyncio.run(empty_store.get_training_by_id(created.id))

        assert fetched == created
        assert fetched.title == "Tempo"
        assert fetched.distance == 8.0
        assert fetched.exercises == []
        assert fetched.created_at == fetched.updated_at

    def test_create_assigns_prefixed_unique_ids(self, empty_store):
        first = asyncio.run(empty_store.create_training(NEW_TRAINING))
        second = asyncio.run(empty_store.create_training(NEW_TRAINING))
        assert first.id.startswith("mock-")
        assert second.id.startswith("mock-")
        assert first.id != second.id

    def test_create_missing_required_field(self, empty_store):
        data = {k: v for k, v in NEW_TRAINING.items() if k != "duration"}
        with pytest.raises(ValidationError):
            asyncio.run(empty_store.create_training(data))

    def test_partial_update_keeps_other_fields(self):
        store = MockRecordStore(trainings=[], planned_trainings=[], delays=MockDelays.none(), clock=FixedClock())
        created = asyncio.run(store.create_training(NEW_TRAINING))

        updated = asyncio.run(store.update_training(created.id, {"duration": 50}))

        assert updated.duration == 50
        assert updated.title == created.title
        assert updated.distance == created.distance
        assert updated.created_at == created.created_at
        # Horloge figée : updated_at progresse quand même strictement
        assert updated.updated_at > created.updated_at

    def test_successive_updates_strictly_increase(self):
        store = MockRecordStore(trainings=[], planned_trainings=[], delays=MockDelays.none(), clock=FixedClock())
        created = asyncio.run(store.create_training(NEW_TRAINING))
        first = asyncio.run(store.update_training(created.id, {"rating": 6}))
        second = asyncio.run(store.update_training(created.id, {"rating": 7}))
        assert created.updated_at < first.updated_at < second.updated_at

    def test_update_unknown_id(self, store):
        with pytest.raises(NotFoundError):
            asyncio.run(store.update_training("nope", {"duration": 10}))

    def test_update_with_invalid_value(self, store):
        with pytest.raises(ValidationError):
            asyncio.run(store.update_training("1", {"rating": 42}))

    def test_delete_twice_raises_not_found(self, store):
        asyncio.run(store.delete_training("1"))
        with pytest.raises(NotFoundError):
            asyncio.run(store.delete_training("1"))
        with pytest.raises(NotFoundError):
            asyncio.run(store.get_training_by_id("1"))


class TestPlannedCrud:
    def test_create_and_get(self, empty_store):
        created = asyncio.run(empty_store.create_planned_training({
            "user_id": "user1", "title": "Intervals", "type": "running",
            "planned_date": "2024-06-17", "planned_duration": 45,
        }))
        assert created.id.startswith("planned-")
        assert created.completed is False
        assert asyncio.run(empty_store.get_planned_training_by_id(created.id)) == created

    def test_update_planned_date(self):
        store = MockRecordStore(
            trainings=[], planned_trainings=[make_planned()], delays=MockDelays.none(), clock=FixedClock()
        )
        updated = asyncio.run(store.update_planned_training("p-1", {"planned_date": "2024-06-21"}))
        assert updated.planned_date == date(2024, 6, 21)
        assert updated.title == "Long Run"

    def test_delete_twice(self, store):
        asyncio.run(store.delete_planned_training("p1"))
        with pytest.raises(NotFoundError):
            asyncio.run(store.delete_planned_training("p1"))


class TestDayTrainings:
    WEEK = date(2024, 6, 17)

    def _slot(self, slot_id, day="Monday", **extra):
        return DayTraining(id=slot_id, day=day, activity_type="Easy Run", duration=30, **extra)

    def test_empty_week_has_seven_none_slots(self, store):
        days = asyncio.run(store.get_day_trainings(self.WEEK))
        assert list(days) == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
        assert all(slot is None for slot in days.values())

    def test_save_replaces_slot_of_same_day(self, store):
        asyncio.run(store.save_day_training(self.WEEK, self._slot("day-a")))
        asyncio.run(store.save_day_training(self.WEEK, self._slot("day-b")))

        days = asyncio.run(store.get_day_trainings(self.WEEK))
        assert days["Monday"].id == "day-b"
        with pytest.raises(NotFoundError):
            asyncio.run(store.delete_day_training("day-a"))

    def test_weeks_are_partitioned(self, store):
        asyncio.run(store.save_day_training(self.WEEK, self._slot("day-a")))
        other = asyncio.run(store.get_day_trainings(date(2024, 6, 24)))
        assert other["Monday"] is None

    def test_unknown_day_rejected(self, store):
        with pytest.raises(ValidationError):
            asyncio.run(store.save_day_training(self.WEEK, self._slot("day-x", day="Funday")))

    def test_delete_slot(self, store):
        asyncio.run(store.save_day_training(self.WEEK, self._slot("day-a")))
        asyncio.run(store.delete_day_training("day-a"))
        assert asyncio.run(store.get_day_trainings(self.WEEK))["Monday"] is None
