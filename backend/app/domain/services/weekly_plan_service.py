"""
Service du plan hebdomadaire.

Séances réelles / planifiées d'une semaine, statistiques, et grille
DayTraining (une case par jour). Chaque appel au backend actif se replie sur
le store mock local en cas d'échec ; les agrégats sont recalculés à la lecture.
"""
import itertools
import logging
import time
from datetime import date, datetime, timedelta
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Tuple, TypeVar

from app.domain.entities import (
    WEEK_DAYS,
    DayTraining,
    PlannedTraining,
    PlannedWeekStats,
    Training,
    TrainingStatus,
    WeekData,
    WeeklyPlanData,
    WeekStats,
    parse_model,
)
from app.domain.errors import BACKEND_UNAVAILABLE, ValidationError
from app.domain.services import aggregation_service as agg
from app.domain.services.backend import TrainingBackend
from app.domain.services.record_store import DAY_ID_PREFIX

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WeeklyPlanService:
    """Vue hebdomadaire au-dessus du backend injecté."""

    def __init__(
        self,
        backend: TrainingBackend,
        fallback: Optional[TrainingBackend] = None,
        today: Callable[[], date] = date.today,
    ):
        self.backend = backend
        self.fallback = fallback
        self.today = today
        self._counter = itertools.count(1)

    async def _call(self, label: str, call: Callable[[TrainingBackend], Awaitable[T]]) -> T:
        try:
            return await call(self.backend)
        except BACKEND_UNAVAILABLE as e:
            if self.fallback is None or self.fallback is self.backend:
                raise
            logger.warning(f"WeeklyPlanService.{label}: backend {self.backend.name} en échec ({e}), repli sur le store mock")
            return await call(self.fallback)

    def week_boundaries(self, week_offset: int = 0) -> Tuple[date, date]:
        return agg.get_week_boundaries(week_offset, self.today())

    @staticmethod
    def _require_monday(week_start: date) -> None:
        if week_start.weekday() != 0:
            raise ValidationError(f"week_start must be a Monday: {week_start.isoformat()}")

    # ------------------------------------------------------------------
    # Réel / prévu
    # ------------------------------------------------------------------

    async def get_trainings_for_week(self, week_start: date, week_end: date) -> List[Training]:
        trainings = await self._call("get_trainings_for_week", lambda b: b.get_trainings())
        return agg.filter_trainings_for_week(trainings, week_start, week_end)

    async def get_planned_trainings_for_week(self, week_start: date, week_end: date) -> List[PlannedTraining]:
        planned = await self._call("get_planned_trainings_for_week", lambda b: b.get_planned_trainings())
        return agg.filter_planned_for_week(planned, week_start, week_end)

    async def get_weekly_stats(self, week_start: date, week_end: date) -> WeekStats:
        return agg.weekly_stats(await self.get_trainings_for_week(week_start, week_end))

    async def get_planned_weekly_stats(self, week_start: date, week_end: date) -> PlannedWeekStats:
        return agg.planned_weekly_stats(await self.get_planned_trainings_for_week(week_start, week_end))

    async def get_week_data(self, week_offset: int = 0) -> WeekData:
        agg.validate_week_offset(week_offset)
        trainings = await self._call("get_week_data", lambda b: b.get_trainings())
        planned = await self._call("get_week_data", lambda b: b.get_planned_trainings())
        return agg.build_week_data(week_offset, trainings, planned, self.today())

    async def get_inconsistent_plans(self) -> List[PlannedTraining]:
        """Plans "réalisés" dont la séance liée est absente ou introuvable."""
        trainings = await self._call("get_inconsistent_plans", lambda b: b.get_trainings())
        planned = await self._call("get_inconsistent_plans", lambda b: b.get_planned_trainings())
        return agg.find_inconsistent_plans(planned, trainings)

    # ------------------------------------------------------------------
    # Grille DayTraining
    # ------------------------------------------------------------------

    async def get_weekly_plan(self, week_offset: int = 0) -> WeeklyPlanData:
        week_start, _ = self.week_boundaries(week_offset)
        return await self.get_weekly_plan_starting(week_start)

    async def get_weekly_plan_starting(self, week_start: date) -> WeeklyPlanData:
        """Grille de la semaine commençant au lundi `week_start`."""
        self._require_monday(week_start)
        current_monday, _ = self.week_boundaries(0)
        week_offset = (week_start - current_monday).days // 7
        days = await self._call("get_weekly_plan", lambda b: b.get_day_trainings(week_start))
        return WeeklyPlanData(
            week_offset=week_offset,
            week_start=week_start,
            week_end=week_start + timedelta(days=6),
            days=days,
            summary=agg.summarize_week(days),
        )

    def _new_day_id(self, day: str) -> str:
        return f"{DAY_ID_PREFIX}-{day.lower()}-{int(time.time() * 1000)}-{next(self._counter)}"

    async def add_day_training(self, week_offset: int, day: str, data: Mapping[str, Any]) -> DayTraining:
        """Crée la case `day` (remplace l'éventuelle case existante), statut "planned"."""
        if day not in WEEK_DAYS:
            raise ValidationError(f"Unknown week day: {day}")
        week_start, _ = self.week_boundaries(week_offset)
        now = datetime.utcnow()
        day_training = parse_model(DayTraining, {
            **dict(data),
            "id": self._new_day_id(day),
            "day": day,
            "status": TrainingStatus.PLANNED,
            "created_at": now,
            "updated_at": now,
        })
        return await self._call("add_day_training", lambda b: b.save_day_training(week_start, day_training))

    async def update_day_training(self, week_offset: int, day_training: Any) -> DayTraining:
        """Remplace entièrement la case du jour de `day_training`."""
        week_start, _ = self.week_boundaries(week_offset)
        return await self.save_day_training(week_start, day_training)

    async def save_day_training(self, week_start: date, day_training: Any) -> DayTraining:
        self._require_monday(week_start)
        day_training = parse_model(DayTraining, day_training)
        if day_training.day not in WEEK_DAYS:
            raise ValidationError(f"Unknown week day: {day_training.day}")
        day_training = day_training.model_copy(update={"updated_at": datetime.utcnow()})
        return await self._call("save_day_training", lambda b: b.save_day_training(week_start, day_training))

    async def delete_day_training(self, day_training_id: str) -> None:
        await self._call("delete_day_training", lambda b: b.delete_day_training(day_training_id))
