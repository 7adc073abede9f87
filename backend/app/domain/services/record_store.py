"""
MockRecordStore - backend en mémoire simulant une base distante.

Utilisé pour le développement local, les démos et comme repli automatique
quand l'API distante est indisponible. Chaque opération attend un délai
artificiel (lectures ~300-800 ms, écritures ~300-500 ms) pour exercer les
états de chargement ; les délais sont configurables jusqu'à zéro pour les tests.

Le store possède sa propre collection : une instance par process (ou par test),
injectée dans le facade, jamais importée comme singleton de module.
"""
import asyncio
import itertools
import logging
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from app.core.settings import Settings
from app.domain.entities import (
    WEEK_DAYS,
    DayTraining,
    PlannedTraining,
    PlannedTrainingCreate,
    PlannedTrainingUpdate,
    Training,
    TrainingCreate,
    TrainingUpdate,
    parse_model,
)
from app.domain.errors import NotFoundError, ValidationError
from app.domain.services.backend import TrainingBackend

logger = logging.getLogger(__name__)

# Préfixes d'identifiants : jamais en collision avec les ids attribués par l'API
TRAINING_ID_PREFIX = "mock"
PLANNED_ID_PREFIX = "planned"
DAY_ID_PREFIX = "day"


# Jeu de données de démonstration, déterministe (course majoritaire, ~75/25 course/renfo)
SEED_TRAININGS: List[Dict[str, Any]] = [
    {
        "id": "1", "user_id": "user1", "title": "Morning Run", "type": "running",
        "date": "2025-01-15", "duration": 45, "distance": 8.5, "pace": "5:30",
        "calories": 420, "trainer_notes": "Good pace, maintain form",
        "trainee_notes": "Felt strong throughout", "heart_rate_avg": 150, "heart_rate_max": 165,
        "strava_link": "https://strava.com/activities/123",
        "garmin_link": "https://garmin.com/activities/456",
        "category": "aerobic", "rating": 8,
        "created_at": "2025-01-15T08:00:00", "updated_at": "2025-01-15T08:00:00",
    },
    {
        "id": "2", "user_id": "user1", "title": "Strength Training", "type": "strength",
        "date": "2025-01-14", "duration": 60, "calories": 300,
        "trainer_notes": "Focus on form over weight", "trainee_notes": "Challenging but manageable",
        "exercises": [
            {"id": "1", "name": "Squats", "sets": 3, "reps": 12, "weight": 80},
            {"id": "2", "name": "Bench Press", "sets": 3, "reps": 10, "weight": 70},
        ],
        "created_at": "2025-01-14T18:00:00", "updated_at": "2025-01-14T18:00:00",
    },
    {
        "id": "3", "user_id": "user1", "title": "Evening Jog", "type": "running",
        "date": "2025-01-13", "duration": 30, "distance": 5.0, "pace": "6:00", "calories": 280,
        "category": "aerobic",
        "created_at": "2025-01-13T19:00:00", "updated_at": "2025-01-13T19:00:00",
    },
    {
        "id": "4", "user_id": "user1", "title": "Yoga Session", "type": "yoga",
        "date": "2025-01-12", "duration": 45, "calories": 150,
        "trainee_notes": "Very relaxing session",
        "created_at": "2025-01-12T07:00:00", "updated_at": "2025-01-12T07:00:00",
    },
    {
        "id": "5", "user_id": "user1", "title": "Cycling", "type": "cycling",
        "date": "2025-01-11", "duration": 90, "distance": 25.0, "calories": 600,
        "created_at": "2025-01-11T16:00:00", "updated_at": "2025-01-11T16:00:00",
    },
    {
        "id": "6", "user_id": "user1", "title": "Interval Training", "type": "running",
        "date": "2025-01-10", "duration": 35, "distance": 6.0, "pace": "4:45",
        "calories": 420, "heart_rate_avg": 155, "heart_rate_max": 178,
        "trainee_notes": "6x800m intervals with 2min recovery", "category": "intervals", "rating": 9,
        "created_at": "2025-01-10T07:30:00", "updated_at": "2025-01-10T07:30:00",
    },
    {
        "id": "7", "user_id": "user1", "title": "Upper Body Workout", "type": "strength",
        "date": "2025-01-09", "duration": 60, "calories": 280,
        "trainee_notes": "Increased weight on bench press",
        "exercises": [
            {"id": "1", "name": "Bench Press", "sets": 4, "reps": 8, "weight": 80},
            {"id": "2", "name": "Pull-ups", "sets": 3, "reps": 12},
            {"id": "3", "name": "Shoulder Press", "sets": 3, "reps": 10, "weight": 25},
        ],
        "created_at": "2025-01-09T18:30:00", "updated_at": "2025-01-09T18:30:00",
    },
    {
        "id": "8", "user_id": "user1", "title": "Tempo Run", "type": "running",
        "date": "2025-01-08", "duration": 40, "distance": 8.0, "pace": "5:00",
        "calories": 450, "category": "tempo", "rating": 7,
        "created_at": "2025-01-08T07:00:00", "updated_at": "2025-01-08T07:00:00",
    },
    {
        "id": "9", "user_id": "user1", "title": "Hill Repeats", "type": "running",
        "date": "2025-01-07", "duration": 50, "distance": 7.5, "pace": "6:40",
        "calories": 510, "altitude_min": 120, "altitude_max": 210,
        "altitude_gain": 380, "altitude_loss": 375, "category": "hills",
        "created_at": "2025-01-07T07:00:00", "updated_at": "2025-01-07T07:00:00",
    },
    {
        "id": "10", "user_id": "user1", "title": "Long Run", "type": "running",
        "date": "2025-01-05", "duration": 95, "distance": 16.0, "pace": "5:56",
        "calories": 980, "heart_rate_avg": 142, "heart_rate_max": 158,
        "cadence_avg": 172, "cadence_max": 181, "category": "aerobic", "rating": 6,
        "created_at": "2025-01-05T09:00:00", "updated_at": "2025-01-05T09:00:00",
    },
]

SEED_PLANNED_TRAININGS: List[Dict[str, Any]] = [
    {
        "id": "p1", "user_id": "user1", "title": "Long Run", "type": "running",
        "planned_date": "2025-01-16", "planned_duration": 60, "planned_distance": 10.0,
        "category": "aerobic", "notes": "Build endurance", "completed": False,
        "created_at": "2025-01-10T10:00:00", "updated_at": "2025-01-10T10:00:00",
    },
    {
        "id": "p2", "user_id": "user1", "title": "Leg Day", "type": "strength",
        "planned_date": "2025-01-18", "planned_duration": 75,
        "notes": "Squats, deadlifts, lunges", "completed": False,
        "created_at": "2025-01-10T10:05:00", "updated_at": "2025-01-10T10:05:00",
    },
]


@dataclass(frozen=True)
class MockDelays:
    """Délais simulés par classe d'opération (secondes)."""
    read: float = 0.5
    detail: float = 0.3
    planned: float = 0.4
    write: float = 0.3
    create: float = 0.5

    @classmethod
    def from_settings(cls, settings: Settings) -> "MockDelays":
        return cls(
            read=settings.MOCK_READ_DELAY_MS / 1000,
            detail=settings.MOCK_DETAIL_DELAY_MS / 1000,
            planned=settings.MOCK_PLANNED_DELAY_MS / 1000,
            write=settings.MOCK_WRITE_DELAY_MS / 1000,
            create=settings.MOCK_CREATE_DELAY_MS / 1000,
        )

    @classmethod
    def none(cls) -> "MockDelays":
        return cls(read=0, detail=0, planned=0, write=0, create=0)


def _check_window(limit: Optional[int], offset: Optional[int]) -> None:
    if limit is not None and limit < 0:
        raise ValidationError("limit must be >= 0")
    if offset is not None and offset < 0:
        raise ValidationError("offset must be >= 0")


class MockRecordStore(TrainingBackend):
    """Store mock : collections en mémoire + latence simulée."""

    name = "mock"

    def __init__(
        self,
        trainings: Optional[Iterable[Any]] = None,
        planned_trainings: Optional[Iterable[Any]] = None,
        delays: Optional[MockDelays] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.delays = delays or MockDelays()
        self._clock = clock
        self._counter = itertools.count(1)
        seed_trainings = SEED_TRAININGS if trainings is None else trainings
        seed_planned = SEED_PLANNED_TRAININGS if planned_trainings is None else planned_trainings
        self._trainings: List[Training] = [parse_model(Training, t) for t in seed_trainings]
        self._planned: List[PlannedTraining] = [parse_model(PlannedTraining, p) for p in seed_planned]
        # id -> (lundi de la semaine, case)
        self._day_trainings: Dict[str, Tuple[date, DayTraining]] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "MockRecordStore":
        return cls(delays=MockDelays.from_settings(settings))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _new_id(self, prefix: str) -> str:
        """Identifiant horodaté + compteur : unique même pour deux créations dans la même ms."""
        return f"{prefix}-{int(time.time() * 1000)}-{next(self._counter)}"

    def _touch(self, previous: datetime) -> datetime:
        """Nouveau updated_at, strictement postérieur au précédent."""
        now = self._clock()
        if now <= previous:
            now = previous + timedelta(microseconds=1)
        return now

    @staticmethod
    def _index_of(items: List[Any], item_id: str) -> int:
        for i, item in enumerate(items):
            if item.id == item_id:
                return i
        return -1

    # ------------------------------------------------------------------
    # Trainings
    # ------------------------------------------------------------------

    async def get_trainings(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Training]:
        logger.debug(f"MockRecordStore.get_trainings limit={limit} offset={offset}")
        _check_window(limit, offset)
        await asyncio.sleep(self.delays.read)

        result = sorted(self._trainings, key=lambda t: t.date, reverse=True)
        if offset:
            result = result[offset:]
        if limit is not None:
            result = result[:limit]
        return [t.model_copy(deep=True) for t in result]

    async def get_training_by_id(self, training_id: str) -> Training:
        await asyncio.sleep(self.delays.detail)
        index = self._index_of(self._trainings, training_id)
        if index == -1:
            raise NotFoundError("Training not found")
        return self._trainings[index].model_copy(deep=True)

    async def create_training(self, data: TrainingCreate) -> Training:
        data = parse_model(TrainingCreate, data)
        await asyncio.sleep(self.delays.create)

        now = self._clock()
        fields = data.model_dump(exclude={"exercises"})
        training = Training(
            **fields,
            id=self._new_id(TRAINING_ID_PREFIX),
            exercises=data.exercises or [],
            created_at=now,
            updated_at=now,
        )
        self._trainings.append(training)
        logger.info(f"Séance créée (mock): {training.id}")
        return training.model_copy(deep=True)

    async def update_training(self, training_id: str, updates: TrainingUpdate) -> Training:
        updates = parse_model(TrainingUpdate, updates)
        await asyncio.sleep(self.delays.write)
        index = self._index_of(self._trainings, training_id)
        if index == -1:
            raise NotFoundError("Training not found")

        current = self._trainings[index]
        merged = {**current.model_dump(), **updates.model_dump(exclude_unset=True)}
        merged["id"] = current.id
        merged["created_at"] = current.created_at
        merged["updated_at"] = self._touch(current.updated_at)
        self._trainings[index] = parse_model(Training, merged)
        return self._trainings[index].model_copy(deep=True)

    async def delete_training(self, training_id: str) -> None:
        await asyncio.sleep(self.delays.write)
        index = self._index_of(self._trainings, training_id)
        if index == -1:
            raise NotFoundError("Training not found")
        del self._trainings[index]
        logger.info(f"Séance supprimée (mock): {training_id}")

    # ------------------------------------------------------------------
    # Planned trainings
    # ------------------------------------------------------------------

    async def get_planned_trainings(self) -> List[PlannedTraining]:
        await asyncio.sleep(self.delays.planned)
        result = sorted(self._planned, key=lambda p: p.planned_date, reverse=True)
        return [p.model_copy(deep=True) for p in result]

    async def get_planned_training_by_id(self, planned_id: str) -> PlannedTraining:
        await asyncio.sleep(self.delays.detail)
        index = self._index_of(self._planned, planned_id)
        if index == -1:
            raise NotFoundError("Planned training not found")
        return self._planned[index].model_copy(deep=True)

    async def create_planned_training(self, data: PlannedTrainingCreate) -> PlannedTraining:
        data = parse_model(PlannedTrainingCreate, data)
        await asyncio.sleep(self.delays.planned)

        now = self._clock()
        planned = PlannedTraining(
            **data.model_dump(),
            id=self._new_id(PLANNED_ID_PREFIX),
            created_at=now,
            updated_at=now,
        )
        self._planned.append(planned)
        logger.info(f"Séance planifiée créée (mock): {planned.id} le {planned.planned_date}")
        return planned.model_copy(deep=True)

    async def update_planned_training(self, planned_id: str, updates: PlannedTrainingUpdate) -> PlannedTraining:
        updates = parse_model(PlannedTrainingUpdate, updates)
        await asyncio.sleep(self.delays.write)
        index = self._index_of(self._planned, planned_id)
        if index == -1:
            raise NotFoundError("Planned training not found")

        current = self._planned[index]
        merged = {**current.model_dump(), **updates.model_dump(exclude_unset=True)}
        merged["id"] = current.id
        merged["created_at"] = current.created_at
        merged["updated_at"] = self._touch(current.updated_at)
        self._planned[index] = parse_model(PlannedTraining, merged)
        return self._planned[index].model_copy(deep=True)

    async def delete_planned_training(self, planned_id: str) -> None:
        await asyncio.sleep(self.delays.write)
        index = self._index_of(self._planned, planned_id)
        if index == -1:
            raise NotFoundError("Planned training not found")
        del self._planned[index]

    # ------------------------------------------------------------------
    # Grille hebdomadaire
    # ------------------------------------------------------------------

    async def get_day_trainings(self, week_start: date) -> Dict[str, Optional[DayTraining]]:
        await asyncio.sleep(self.delays.planned)
        days: Dict[str, Optional[DayTraining]] = {day: None for day in WEEK_DAYS}
        for slot_week, slot in self._day_trainings.values():
            if slot_week == week_start:
                days[slot.day] = slot.model_copy(deep=True)
        return days

    async def save_day_training(self, week_start: date, day_training: DayTraining) -> DayTraining:
        day_training = parse_model(DayTraining, day_training)
        if day_training.day not in WEEK_DAYS:
            raise ValidationError(f"Unknown week day: {day_training.day}")
        await asyncio.sleep(self.delays.write)

        # Une seule case par jour : on remplace l'éventuel occupant
        for slot_id, (slot_week, slot) in list(self._day_trainings.items()):
            if slot_week == week_start and slot.day == day_training.day and slot_id != day_training.id:
                del self._day_trainings[slot_id]

        previous = self._day_trainings.get(day_training.id)
        if previous is not None:
            day_training = day_training.model_copy(
                update={"updated_at": self._touch(previous[1].updated_at)}
            )
        self._day_trainings[day_training.id] = (week_start, day_training)
        return day_training.model_copy(deep=True)

    async def delete_day_training(self, day_training_id: str) -> None:
        await asyncio.sleep(self.delays.write)
        if day_training_id not in self._day_trainings:
            raise NotFoundError("Day training not found")
        del self._day_trainings[day_training_id]
