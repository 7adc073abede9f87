"""
Facade de service des séances : un contrat CRUD unique quel que soit le backend.

Le backend (store mock ou API distante) est choisi une fois au démarrage par
`build_backend` puis injecté. Le facade valide les entrées à la frontière et
propage toutes les erreurs du backend sans les transformer.
"""
import logging
from typing import Any, List, Optional

from app.core.session_storage import SessionStorage
from app.core.settings import Settings
from app.domain.entities import (
    PlannedTraining,
    PlannedTrainingCreate,
    PlannedTrainingUpdate,
    Training,
    TrainingCreate,
    TrainingUpdate,
    parse_model,
)
from app.domain.services.backend import TrainingBackend
from app.domain.services.record_store import MockRecordStore
from app.domain.services.remote_accessor import RemoteAccessor

logger = logging.getLogger(__name__)


def build_backend(settings: Settings, session_storage: Optional[SessionStorage] = None) -> TrainingBackend:
    """Sélectionne le backend selon USE_MOCK_DATA (appelé une seule fois au démarrage)."""
    if settings.USE_MOCK_DATA:
        logger.info("Backend sélectionné: store mock en mémoire")
        return MockRecordStore.from_settings(settings)
    logger.info(f"Backend sélectionné: API distante ({settings.API_BASE_URL})")
    return RemoteAccessor.from_settings(settings, session_storage=session_storage)


class TrainingService:
    """Facade CRUD des séances réalisées et planifiées."""

    def __init__(self, backend: TrainingBackend):
        self.backend = backend

    @property
    def backend_name(self) -> str:
        return self.backend.name

    # ---- Trainings ----

    async def get_trainings(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Training]:
        """Liste des séances. L'ordre n'est garanti (date décroissante) qu'avec le store mock."""
        return await self.backend.get_trainings(limit=limit, offset=offset)

    async def get_training_by_id(self, training_id: str) -> Training:
        return await self.backend.get_training_by_id(training_id)

    async def create_training(self, data: Any) -> Training:
        training_data = parse_model(TrainingCreate, data)
        return await self.backend.create_training(training_data)

    async def update_training(self, training_id: str, updates: Any) -> Training:
        training_updates = parse_model(TrainingUpdate, updates)
        return await self.backend.update_training(training_id, training_updates)

    async def delete_training(self, training_id: str) -> None:
        await self.backend.delete_training(training_id)

    # ---- Planned trainings ----

    async def get_planned_trainings(self) -> List[PlannedTraining]:
        return await self.backend.get_planned_trainings()

    async def get_planned_training_by_id(self, planned_id: str) -> PlannedTraining:
        return await self.backend.get_planned_training_by_id(planned_id)

    async def create_planned_training(self, data: Any) -> PlannedTraining:
        planned_data = parse_model(PlannedTrainingCreate, data)
        return await self.backend.create_planned_training(planned_data)

    async def update_planned_training(self, planned_id: str, updates: Any) -> PlannedTraining:
        planned_updates = parse_model(PlannedTrainingUpdate, updates)
        return await self.backend.update_planned_training(planned_id, planned_updates)

    async def delete_planned_training(self, planned_id: str) -> None:
        await self.backend.delete_planned_training(planned_id)
