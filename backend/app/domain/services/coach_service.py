"""
Service coach : athlètes suivis, inscriptions en attente, objectifs.

Le roster distant est essayé en premier ; en cas d'échec (ou sans API) un
roster de démonstration en mémoire est utilisé. L'indicateur de progression
est dérivé du nombre de séances réalisées face à l'objectif hebdomadaire.
"""
import logging
from typing import Any, Dict, List, Optional

from app.domain.entities import AthleteWithStats, AuthUser, parse_model
from app.domain.errors import BACKEND_UNAVAILABLE, NotFoundError
from app.domain.services import aggregation_service as agg
from app.domain.services.remote_accessor import RemoteAccessor

logger = logging.getLogger(__name__)

DEFAULT_WEEKLY_SESSIONS_TARGET = 5

DEMO_ATHLETES: List[Dict[str, Any]] = [
    {
        "id": "athlete-1", "email": "john@example.com", "first_name": "John", "last_name": "Doe",
        "name": "John Doe", "role": "athlete", "pending": False,
        "registration_date": "2024-01-15T10:00:00Z", "assigned_coach": "coach-1",
        "goals": "Run 10km under 50 minutes",
        "weekly_training_stats": {"total_trainings": 4, "total_duration": 240, "last_training_date": "2025-01-07"},
    },
    {
        "id": "athlete-2", "email": "jane@example.com", "first_name": "Jane", "last_name": "Smith",
        "name": "Jane Smith", "role": "athlete", "pending": False,
        "registration_date": "2024-02-20T14:30:00Z", "assigned_coach": "coach-1",
        "goals": "Complete first half marathon",
        "weekly_training_stats": {"total_trainings": 3, "total_duration": 180, "last_training_date": "2025-01-08"},
    },
]

DEMO_PENDING_ATHLETES: List[Dict[str, Any]] = [
    {
        "id": "pending-1", "email": "newathlete@example.com", "first_name": "New", "last_name": "Athlete",
        "name": "New Athlete", "role": "athlete", "pending": True,
        "registration_date": "2025-01-09T09:00:00Z",
    },
]


def with_progress(athlete: AthleteWithStats, weekly_target: int = DEFAULT_WEEKLY_SESSIONS_TARGET) -> AthleteWithStats:
    """Complète l'indicateur de progression s'il est absent."""
    if athlete.progress_indicator is not None or athlete.weekly_training_stats is None:
        return athlete
    indicator = agg.progress_indicator(athlete.weekly_training_stats.total_trainings, weekly_target)
    return athlete.model_copy(update={"progress_indicator": indicator})


class CoachService:

    def __init__(self, remote: Optional[RemoteAccessor] = None, weekly_target: int = DEFAULT_WEEKLY_SESSIONS_TARGET):
        self.remote = remote
        self.weekly_target = weekly_target
        self._athletes = [parse_model(AthleteWithStats, a) for a in DEMO_ATHLETES]
        self._pending = [parse_model(AuthUser, a) for a in DEMO_PENDING_ATHLETES]

    async def get_athletes(self) -> List[AthleteWithStats]:
        athletes = self._athletes
        if self.remote is not None:
            try:
                athletes = await self.remote.get_athletes()
            except BACKEND_UNAVAILABLE as e:
                logger.warning(f"GET /coach/athletes en échec ({e}), roster de démonstration")
        return [with_progress(a, self.weekly_target) for a in athletes]

    async def get_pending_athletes(self) -> List[AuthUser]:
        if self.remote is not None:
            try:
                return await self.remote.get_pending_athletes()
            except BACKEND_UNAVAILABLE as e:
                logger.warning(f"GET /coach/pending-athletes en échec ({e}), liste de démonstration")
        return [p.model_copy(deep=True) for p in self._pending]

    def _pop_pending(self, athlete_id: str) -> AuthUser:
        for i, athlete in enumerate(self._pending):
            if athlete.id == athlete_id:
                return self._pending.pop(i)
        raise NotFoundError("Pending athlete not found")

    async def approve_athlete(self, athlete_id: str) -> None:
        if self.remote is not None:
            await self.remote.approve_athlete(athlete_id)
            return
        athlete = self._pop_pending(athlete_id)
        self._athletes.append(AthleteWithStats(**athlete.model_dump(exclude={"pending"}), pending=False))
        logger.info(f"Athlète {athlete_id} approuvé (démo)")

    async def reject_athlete(self, athlete_id: str) -> None:
        if self.remote is not None:
            await self.remote.reject_athlete(athlete_id)
            return
        self._pop_pending(athlete_id)
        logger.info(f"Inscription {athlete_id} rejetée (démo)")

    async def update_athlete_goals(self, athlete_id: str, goals: str) -> None:
        if self.remote is not None:
            await self.remote.update_athlete_goals(athlete_id, goals)
            return
        for i, athlete in enumerate(self._athletes):
            if athlete.id == athlete_id:
                self._athletes[i] = athlete.model_copy(update={"goals": goals})
                return
        raise NotFoundError("Athlete not found")
