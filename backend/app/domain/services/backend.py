"""
Contrat commun des backends de données (store mock en mémoire ou API distante).

Le backend est choisi une seule fois au démarrage puis injecté ; les appelants
ne relisent jamais la configuration à chaque appel.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, List, Optional

from app.domain.entities import (
    DayTraining,
    PlannedTraining,
    PlannedTrainingCreate,
    PlannedTrainingUpdate,
    Training,
    TrainingCreate,
    TrainingUpdate,
)


class TrainingBackend(ABC):
    """Interface CRUD asynchrone implémentée par MockRecordStore et RemoteAccessor."""

    name: str = "backend"

    # ---- Trainings ----

    @abstractmethod
    async def get_trainings(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Training]:
        ...

    @abstractmethod
    async def get_training_by_id(self, training_id: str) -> Training:
        ...

    @abstractmethod
    async def create_training(self, data: TrainingCreate) -> Training:
        ...

    @abstractmethod
    async def update_training(self, training_id: str, updates: TrainingUpdate) -> Training:
        ...

    @abstractmethod
    async def delete_training(self, training_id: str) -> None:
        ...

    # ---- Planned trainings ----

    @abstractmethod
    async def get_planned_trainings(self) -> List[PlannedTraining]:
        ...

    @abstractmethod
    async def get_planned_training_by_id(self, planned_id: str) -> PlannedTraining:
        ...

    @abstractmethod
    async def create_planned_training(self, data: PlannedTrainingCreate) -> PlannedTraining:
        ...

    @abstractmethod
    async def update_planned_training(self, planned_id: str, updates: PlannedTrainingUpdate) -> PlannedTraining:
        ...

    @abstractmethod
    async def delete_planned_training(self, planned_id: str) -> None:
        ...

    # ---- Grille hebdomadaire ----

    @abstractmethod
    async def get_day_trainings(self, week_start: date) -> Dict[str, Optional[DayTraining]]:
        """Retourne les 7 cases de la semaine commençant au lundi `week_start`."""

    @abstractmethod
    async def save_day_training(self, week_start: date, day_training: DayTraining) -> DayTraining:
        """Remplace entièrement la case (week_start, day_training.day)."""

    @abstractmethod
    async def delete_day_training(self, day_training_id: str) -> None:
        ...

    async def aclose(self) -> None:
        """Libère les ressources éventuelles (client HTTP...)."""
