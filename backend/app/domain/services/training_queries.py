"""
Couche requêtes / mutations des séances au-dessus du facade.

Lectures : mises en cache par clé, dédupliquées, et repliées sur le store mock
local quand le backend actif est indisponible (réseau, statut 5xx, corps
inexploitable) ; 404, 401/403 et validation remontent tels quels.
Mutations : invalidation des clés concernées en cas de succès ; en cas
d'échec, pas d'invalidation, notification "destructive", pas de retry.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Generic, List, Optional, Protocol, TypeVar

from app.domain.entities import PlannedTraining, PlannedTrainingUpdate, Training, parse_model
from app.domain.errors import BACKEND_UNAVAILABLE, ServiceError
from app.domain.services.backend import TrainingBackend
from app.domain.services.query_client import InfiniteData, QueryClient, QueryKey, snapshot
from app.domain.services.training_service import TrainingService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TrainingQueryKeys:
    """Taxonomie des clés de cache (chaque niveau est préfixe des suivants)."""

    all: QueryKey = ("trainings",)
    planned: QueryKey = ("planned-trainings",)

    def lists(self) -> QueryKey:
        return self.all + ("list",)

    def list(self, limit: Optional[int]) -> QueryKey:
        return self.lists() + (limit,)

    def details(self) -> QueryKey:
        return self.all + ("detail",)

    def detail(self, training_id: str) -> QueryKey:
        return self.details() + (training_id,)

    def infinite(self) -> QueryKey:
        return self.all + ("infinite",)


TRAINING_KEYS = TrainingQueryKeys()


# ============================================================
# Notifications
# ============================================================

class Notifier(Protocol):
    def notify(self, kind: str, title: str, message: str) -> None:
        ...


class LoggingNotifier:
    """Notifier par défaut : écrit les notifications dans les logs."""

    def notify(self, kind: str, title: str, message: str) -> None:
        if kind == "destructive":
            logger.warning(f"[notification] {title}: {message}")
        else:
            logger.info(f"[notification] {title}: {message}")


@dataclass
class MutationResult(Generic[T]):
    data: Optional[T] = None
    error: Optional[ServiceError] = None

    @property
    def is_success(self) -> bool:
        return self.error is None


# (titre succès, message succès, action en cas d'échec)
MUTATION_MESSAGES = {
    "create_training": ("Training added", "Your training has been successfully recorded.", "add training"),
    "update_training": ("Training updated", "Your training has been successfully updated.", "update training"),
    "delete_training": ("Training deleted", "Your training has been successfully deleted.", "delete training"),
    "create_planned": ("Training planned", "Your training has been successfully planned.", "plan training"),
    "update_planned": ("Plan updated", "Your training plan has been successfully updated.", "update plan"),
    "delete_planned": ("Plan deleted", "Your training plan has been successfully deleted.", "delete plan"),
}


class TrainingQueries:
    """Point d'entrée de l'UI pour lire et modifier les séances."""

    def __init__(
        self,
        service: TrainingService,
        client: Optional[QueryClient] = None,
        fallback: Optional[TrainingBackend] = None,
        notifier: Optional[Notifier] = None,
        page_size: int = 10,
    ):
        self.service = service
        self.client = client or QueryClient()
        self.fallback = fallback
        self.notifier = notifier or LoggingNotifier()
        self.page_size = page_size

    # ------------------------------------------------------------------
    # Repli en lecture
    # ------------------------------------------------------------------

    async def _read(
        self,
        label: str,
        primary: Callable[[], Awaitable[T]],
        local: Callable[[TrainingBackend], Awaitable[T]],
    ) -> T:
        try:
            return await primary()
        except BACKEND_UNAVAILABLE as e:
            if self.fallback is None or self.fallback is self.service.backend:
                raise
            logger.warning(f"{label} a échoué sur le backend {self.service.backend_name} ({e}), repli sur les données locales")
            return await local(self.fallback)

    # ------------------------------------------------------------------
    # Requêtes
    # ------------------------------------------------------------------

    async def trainings(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Training]:
        if offset is not None:
            key = TRAINING_KEYS.list(limit) + (offset,)
        elif limit is not None:
            key = TRAINING_KEYS.list(limit)
        else:
            key = TRAINING_KEYS.lists()
        return await self.client.fetch_query(
            key,
            lambda: self._read(
                "get_trainings",
                lambda: self.service.get_trainings(limit=limit, offset=offset),
                lambda store: store.get_trainings(limit=limit, offset=offset),
            ),
        )

    async def training(self, training_id: str) -> Training:
        return await self.client.fetch_query(
            TRAINING_KEYS.detail(training_id),
            lambda: self._read(
                "get_training_by_id",
                lambda: self.service.get_training_by_id(training_id),
                lambda store: store.get_training_by_id(training_id),
            ),
        )

    async def _training_page(self, limit: int, offset: int) -> List[Training]:
        return await self._read(
            "get_trainings (page)",
            lambda: self.service.get_trainings(limit=limit, offset=offset),
            lambda store: store.get_trainings(limit=limit, offset=offset),
        )

    async def infinite_trainings(self) -> InfiniteData:
        return await self.client.fetch_infinite_query(
            TRAINING_KEYS.infinite(), self._training_page, self.page_size
        )

    async def fetch_next_trainings_page(self) -> InfiniteData:
        return await self.client.fetch_next_page(
            TRAINING_KEYS.infinite(), self._training_page, self.page_size
        )

    async def planned_trainings(self) -> List[PlannedTraining]:
        return await self.client.fetch_query(
            TRAINING_KEYS.planned,
            lambda: self._read(
                "get_planned_trainings",
                self.service.get_planned_trainings,
                lambda store: store.get_planned_trainings(),
            ),
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def _mutate(
        self,
        action: str,
        call: Callable[[], Awaitable[T]],
        invalidate: Callable[[Optional[T]], List[QueryKey]],
        on_error: Optional[Callable[[], None]] = None,
    ) -> MutationResult[T]:
        title, message, failed_action = MUTATION_MESSAGES[action]
        try:
            data = await call()
        except ServiceError as e:
            logger.error(f"Mutation {action} échouée: {e}")
            if on_error is not None:
                on_error()
            self.notifier.notify("destructive", "Error", f"Failed to {failed_action}. Please try again.")
            return MutationResult(error=e)

        for key in invalidate(data):
            self.client.invalidate_queries(key)
        self.notifier.notify("default", title, message)
        return MutationResult(data=data)

    def _training_keys(self, training_id: Optional[str] = None) -> List[QueryKey]:
        keys = [TRAINING_KEYS.lists(), TRAINING_KEYS.infinite()]
        if training_id is not None:
            keys.append(TRAINING_KEYS.detail(training_id))
        return keys

    async def create_training(self, data: Any) -> MutationResult[Training]:
        return await self._mutate(
            "create_training",
            lambda: self.service.create_training(data),
            lambda _: self._training_keys(),
        )

    async def update_training(self, training_id: str, updates: Any) -> MutationResult[Training]:
        return await self._mutate(
            "update_training",
            lambda: self.service.update_training(training_id, updates),
            lambda _: self._training_keys(training_id),
        )

    async def delete_training(self, training_id: str) -> MutationResult[None]:
        return await self._mutate(
            "delete_training",
            lambda: self.service.delete_training(training_id),
            lambda _: self._training_keys(training_id),
        )

    async def create_planned_training(self, data: Any) -> MutationResult[PlannedTraining]:
        return await self._mutate(
            "create_planned",
            lambda: self.service.create_planned_training(data),
            lambda _: [TRAINING_KEYS.planned],
        )

    async def update_planned_training(
        self, planned_id: str, updates: Any, optimistic: bool = False
    ) -> MutationResult[PlannedTraining]:
        """Mise à jour d'un plan ; `optimistic=True` patche la liste en cache avant l'appel."""
        rollbacks: List[Callable[[], None]] = []

        async def call() -> PlannedTraining:
            if optimistic:
                patch = parse_model(PlannedTrainingUpdate, updates)
                rollbacks.append(self._apply_optimistic_patch(planned_id, patch))
            return await self.service.update_planned_training(planned_id, updates)

        def on_error() -> None:
            for rollback in rollbacks:
                rollback()

        return await self._mutate(
            "update_planned", call, lambda _: [TRAINING_KEYS.planned], on_error=on_error
        )

    async def reschedule_planned_training(self, planned_id: str, new_date: date) -> MutationResult[PlannedTraining]:
        """Déplacement d'un plan vers une autre date (glisser-déposer)."""
        return await self.update_planned_training(planned_id, {"planned_date": new_date}, optimistic=True)

    async def delete_planned_training(self, planned_id: str) -> MutationResult[None]:
        return await self._mutate(
            "delete_planned",
            lambda: self.service.delete_planned_training(planned_id),
            lambda _: [TRAINING_KEYS.planned],
        )

    def _apply_optimistic_patch(self, planned_id: str, updates: PlannedTrainingUpdate) -> Callable[[], None]:
        key = TRAINING_KEYS.planned
        # Les fetchs en cours ne doivent pas écraser le patch
        self.client.cancel_queries(key)
        previous = snapshot(self.client, [key])[key]

        if previous is not None:
            changes = updates.model_dump(exclude_unset=True)
            self.client.set_query_data(key, [
                p.model_copy(update=changes) if p.id == planned_id else p for p in previous
            ])

        def rollback() -> None:
            logger.info(f"Rollback de la mise à jour optimiste du plan {planned_id}")
            if previous is None:
                self.client.remove_queries(key)
            else:
                self.client.set_query_data(key, previous)

        return rollback

