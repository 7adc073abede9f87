"""
Fixtures partagées : store mock sans latence, services assemblés, dates fixes.
"""
from datetime import date, datetime

import pytest

from app.core.settings import Settings
from app.domain.services.record_store import MockDelays, MockRecordStore
from app.domain.services.training_service import TrainingService

# Mercredi : semaine courante = lundi 17 -> dimanche 23 juin 2024
TODAY = date(2024, 6, 19)


@pytest.fixture
def settings():
    return Settings(
        USE_MOCK_DATA=True,
        MOCK_READ_DELAY_MS=0,
        MOCK_DETAIL_DELAY_MS=0,
        MOCK_PLANNED_DELAY_MS=0,
        MOCK_WRITE_DELAY_MS=0,
        MOCK_CREATE_DELAY_MS=0,
    )


@pytest.fixture
def store():
    return MockRecordStore(delays=MockDelays.none())


@pytest.fixture
def empty_store():
    return MockRecordStore(trainings=[], planned_trainings=[], delays=MockDelays.none())


@pytest.fixture
def service(store):
    return TrainingService(store)


def make_training(**overrides):
    data = {
        "id": "t-1",
        "user_id": "user1",
        "title": "Run",
        "type": "running",
        "date": "2024-06-18",
        "duration": 45,
        "distance": 8.5,
        "created_at": "2024-06-18T08:00:00",
        "updated_at": "2024-06-18T08:00:00",
    }
    data.update(overrides)
    return data


def make_planned(**overrides):
    data = {
        "id": "p-1",
        "user_id": "user1",
        "title": "Long Run",
        "type": "running",
        "planned_date": "2024-06-20",
        "planned_duration": 60,
        "completed": False,
        "created_at": "2024-06-10T10:00:00",
        "updated_at": "2024-06-10T10:00:00",
    }
    data.update(overrides)
    return data


class FixedClock:
    """Horloge figée (pour vérifier que updated_at progresse quand même)."""

    def __init__(self, now: datetime = datetime(2024, 6, 19, 12, 0, 0)):
        self.now = now

    def __call__(self) -> datetime:
        return self.now
