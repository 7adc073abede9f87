"""
Assemblage des services au démarrage (une seule fois par process).

Le backend est choisi ici selon USE_MOCK_DATA puis injecté partout ; un store
mock local est toujours créé pour servir de repli aux lectures.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from app.core.session_storage import SessionStorage
from app.core.settings import Settings
from app.domain.services.auth_service import AuthService
from app.domain.services.backend import TrainingBackend
from app.domain.services.coach_service import CoachService
from app.domain.services.micro_cycle_service import MicroCycleService
from app.domain.services.query_client import QueryClient
from app.domain.services.record_store import MockRecordStore
from app.domain.services.remote_accessor import RemoteAccessor
from app.domain.services.training_queries import LoggingNotifier, Notifier, TrainingQueries
from app.domain.services.training_service import TrainingService, build_backend
from app.domain.services.weekly_plan_service import WeeklyPlanService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    session_storage: SessionStorage
    backend: TrainingBackend
    fallback: MockRecordStore
    trainings: TrainingService
    queries: TrainingQueries
    weekly_plan: WeeklyPlanService
    micro_cycle: MicroCycleService
    auth: AuthService
    coach: CoachService

    async def aclose(self) -> None:
        await self.backend.aclose()


def build_container(
    settings: Settings,
    backend: Optional[TrainingBackend] = None,
    session_storage: Optional[SessionStorage] = None,
    notifier: Optional[Notifier] = None,
) -> ServiceContainer:
    session_storage = session_storage or SessionStorage()
    backend = backend or build_backend(settings, session_storage)
    # En mode mock, le store actif sert aussi de repli
    fallback = backend if isinstance(backend, MockRecordStore) else MockRecordStore.from_settings(settings)
    remote = backend if isinstance(backend, RemoteAccessor) else None

    training_service = TrainingService(backend)
    queries = TrainingQueries(
        training_service,
        client=QueryClient(
            max_entries=settings.QUERY_CACHE_MAX_ENTRIES, gc_time=settings.QUERY_CACHE_GC_TIME_S
        ),
        fallback=fallback,
        notifier=notifier or LoggingNotifier(),
        page_size=settings.INFINITE_PAGE_SIZE,
    )
    logger.info(f"Services initialisés (backend={backend.name})")
    return ServiceContainer(
        settings=settings,
        session_storage=session_storage,
        backend=backend,
        fallback=fallback,
        trainings=training_service,
        queries=queries,
        weekly_plan=WeeklyPlanService(backend, fallback=fallback),
        micro_cycle=MicroCycleService(fallback, remote=remote),
        auth=AuthService(session_storage, remote=remote),
        coach=CoachService(remote=remote),
    )
