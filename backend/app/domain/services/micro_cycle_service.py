"""
Micro-cycle : tendance de charge sur 5 semaines (-3 .. +1).

L'endpoint distant /micro-cycle est interrogé en premier quand un
RemoteAccessor est disponible ; sinon (ou en cas d'échec) le micro-cycle est
calculé localement à partir des séances et plans du store.
"""
import logging
from datetime import date
from typing import Callable, Optional

from app.domain.entities import MicroCycleData
from app.domain.errors import BACKEND_UNAVAILABLE
from app.domain.services import aggregation_service as agg
from app.domain.services.backend import TrainingBackend
from app.domain.services.remote_accessor import RemoteAccessor

logger = logging.getLogger(__name__)


class MicroCycleService:

    def __init__(
        self,
        local: TrainingBackend,
        remote: Optional[RemoteAccessor] = None,
        today: Callable[[], date] = date.today,
    ):
        self.local = local
        self.remote = remote
        self.today = today

    async def get_micro_cycle(self) -> MicroCycleData:
        if self.remote is not None:
            try:
                return await self.remote.get_micro_cycle()
            except BACKEND_UNAVAILABLE as e:
                logger.warning(f"MicroCycleService: /micro-cycle en échec ({e}), calcul local")
        return await self.compute_micro_cycle()

    async def compute_micro_cycle(self) -> MicroCycleData:
        """Calcul local à partir des séances réelles et planifiées."""
        trainings = await self.local.get_trainings()
        planned = await self.local.get_planned_trainings()
        data = agg.build_micro_cycle(trainings, planned, self.today())
        logger.debug(
            f"Micro-cycle local: charge semaine {data.current_week_load} min, "
            f"variation {data.week_over_week_change}"
        )
        return data
