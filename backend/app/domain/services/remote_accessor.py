"""
RemoteAccessor - backend HTTP vers l'API TrainLog distante.

JSON sur HTTP, header `Authorization: Bearer <token>` lu dans le stockage de
session, URL de base issue de la configuration. Toute réponse non-2xx lève une
erreur portant le code HTTP ; un corps 2xx non JSON ou mal formé lève
HttpError ; les erreurs réseau lèvent NetworkError.
Aucune erreur n'est avalée ici : le repli éventuel est décidé plus haut.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import httpx

from app.core.session_storage import SessionStorage
from app.core.settings import Settings
from app.domain.entities import (
    WEEK_DAYS,
    AthleteWithStats,
    AuthUser,
    DayTraining,
    LoginRequest,
    MicroCycleData,
    PlannedTraining,
    PlannedTrainingCreate,
    PlannedTrainingUpdate,
    ProfileUpdate,
    SignUpRequest,
    Training,
    TrainingCreate,
    TrainingUpdate,
    parse_model,
)
from app.domain.errors import AuthError, HttpError, NetworkError, NotFoundError, ValidationError
from app.domain.services.backend import TrainingBackend
from app.domain.services import wire_mapping as wire

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 15.0
# Corps 2xx inexploitable : traité comme une réponse invalide de la passerelle
INVALID_BODY_STATUS = 502

ModelT = TypeVar("ModelT")


class RemoteAccessor(TrainingBackend):
    """Accès à l'API distante via httpx.AsyncClient."""

    name = "remote"

    def __init__(
        self,
        base_url: str,
        session_storage: Optional[SessionStorage] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
    ):
        self.base_url = base_url.rstrip("/")
        self.session_storage = session_storage or SessionStorage()
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings: Settings, session_storage: Optional[SessionStorage] = None) -> "RemoteAccessor":
        return cls(settings.API_BASE_URL, session_storage=session_storage, timeout=settings.API_TIMEOUT_S)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        """Retourne le client HTTP (lazy init)."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.session_storage.auth_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"Requête API {method} {url}")

        try:
            resp = await self._get_client().request(
                method, url, json=json, params=params, headers=self._headers()
            )
        except httpx.RequestError as e:
            logger.warning(f"API erreur reseau {method} {endpoint}: {e}")
            raise NetworkError(f"Network error on {method} {endpoint}: {e}") from e

        if not resp.is_success:
            status = resp.status_code
            logger.warning(f"API HTTP {status} pour {method} {endpoint}")
            message = f"HTTP error! status: {status}"
            if status == 404:
                raise NotFoundError(message, status_code=status)
            if status in (401, 403):
                raise AuthError(message, status_code=status)
            raise HttpError(message, status_code=status)

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            logger.warning(f"API corps non JSON pour {method} {endpoint} (status {resp.status_code})")
            raise HttpError(f"Invalid JSON body from {method} {endpoint}", status_code=resp.status_code) from e

    # ------------------------------------------------------------------
    # Décodage des réponses
    # ------------------------------------------------------------------

    @staticmethod
    def _invalid_body(endpoint: str, detail: str) -> HttpError:
        logger.warning(f"API réponse mal formée pour {endpoint}: {detail}")
        return HttpError(f"Invalid response body from {endpoint}: {detail}", status_code=INVALID_BODY_STATUS)

    def _parse(self, model_cls: Type[ModelT], mapping: wire.EntityMapping, payload: Any, endpoint: str) -> ModelT:
        """Réponse 2xx -> modèle ; un corps mal formé est une panne du backend distant."""
        if not isinstance(payload, dict):
            raise self._invalid_body(endpoint, f"expected an object, got {type(payload).__name__}")
        try:
            return parse_model(model_cls, mapping.from_wire(payload))
        except ValidationError as e:
            raise self._invalid_body(endpoint, e.message) from e

    def _parse_list(
        self, model_cls: Type[ModelT], mapping: wire.EntityMapping, payload: Any, endpoint: str
    ) -> List[ModelT]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise self._invalid_body(endpoint, f"expected a list, got {type(payload).__name__}")
        return [self._parse(model_cls, mapping, item, endpoint) for item in payload]

    # ------------------------------------------------------------------
    # Trainings
    # ------------------------------------------------------------------

    async def get_trainings(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Training]:
        params = {}
        if limit is not None:
            params["limit"] = limit
        if offset:
            params["offset"] = offset
        payload = await self._request("GET", "/trainings", params=params or None)
        return self._parse_list(Training, wire.TRAINING, payload, "/trainings")

    async def get_training_by_id(self, training_id: str) -> Training:
        payload = await self._request("GET", f"/trainings/{training_id}")
        return self._parse(Training, wire.TRAINING, payload, "/trainings")

    async def create_training(self, data: TrainingCreate) -> Training:
        data = parse_model(TrainingCreate, data)
        payload = await self._request("POST", "/trainings", json=wire.TRAINING.model_to_wire(data))
        return self._parse(Training, wire.TRAINING, payload, "/trainings")

    async def update_training(self, training_id: str, updates: TrainingUpdate) -> Training:
        updates = parse_model(TrainingUpdate, updates)
        payload = await self._request(
            "PUT", f"/trainings/{training_id}", json=wire.TRAINING.model_to_wire(updates, partial=True)
        )
        return self._parse(Training, wire.TRAINING, payload, "/trainings")

    async def delete_training(self, training_id: str) -> None:
        await self._request("DELETE", f"/trainings/{training_id}")

    # ------------------------------------------------------------------
    # Planned trainings
    # ------------------------------------------------------------------

    async def get_planned_trainings(self) -> List[PlannedTraining]:
        payload = await self._request("GET", "/planned-trainings")
        return self._parse_list(PlannedTraining, wire.PLANNED_TRAINING, payload, "/planned-trainings")

    async def get_planned_training_by_id(self, planned_id: str) -> PlannedTraining:
        payload = await self._request("GET", f"/planned-trainings/{planned_id}")
        return self._parse(PlannedTraining, wire.PLANNED_TRAINING, payload, "/planned-trainings")

    async def create_planned_training(self, data: PlannedTrainingCreate) -> PlannedTraining:
        data = parse_model(PlannedTrainingCreate, data)
        payload = await self._request(
            "POST", "/planned-trainings", json=wire.PLANNED_TRAINING.model_to_wire(data)
        )
        return self._parse(PlannedTraining, wire.PLANNED_TRAINING, payload, "/planned-trainings")

    async def update_planned_training(self, planned_id: str, updates: PlannedTrainingUpdate) -> PlannedTraining:
        updates = parse_model(PlannedTrainingUpdate, updates)
        payload = await self._request(
            "PUT",
            f"/planned-trainings/{planned_id}",
            json=wire.PLANNED_TRAINING.model_to_wire(updates, partial=True),
        )
        return self._parse(PlannedTraining, wire.PLANNED_TRAINING, payload, "/planned-trainings")

    async def delete_planned_training(self, planned_id: str) -> None:
        await self._request("DELETE", f"/planned-trainings/{planned_id}")

    # ------------------------------------------------------------------
    # Grille hebdomadaire
    # ------------------------------------------------------------------

    async def get_day_trainings(self, week_start: date) -> Dict[str, Optional[DayTraining]]:
        payload = await self._request("GET", "/weekly-plan", params={"week_start": week_start.isoformat()})
        if payload is not None and not isinstance(payload, dict):
            raise self._invalid_body("/weekly-plan", f"expected an object, got {type(payload).__name__}")
        raw_days = (payload or {}).get("days") or {}
        if not isinstance(raw_days, dict):
            raise self._invalid_body("/weekly-plan", "days must be an object")
        days: Dict[str, Optional[DayTraining]] = {day: None for day in WEEK_DAYS}
        for day in WEEK_DAYS:
            slot = raw_days.get(day)
            if slot:
                days[day] = self._parse(DayTraining, wire.DAY_TRAINING, slot, "/weekly-plan")
        return days

    async def save_day_training(self, week_start: date, day_training: DayTraining) -> DayTraining:
        body = wire.DAY_TRAINING.model_to_wire(day_training)
        body["week_start"] = week_start.isoformat()
        payload = await self._request("PUT", f"/weekly-plan/days/{day_training.id}", json=body)
        return self._parse(DayTraining, wire.DAY_TRAINING, payload, "/weekly-plan/days")

    async def delete_day_training(self, day_training_id: str) -> None:
        await self._request("DELETE", f"/weekly-plan/days/{day_training_id}")

    # ------------------------------------------------------------------
    # Micro-cycle
    # ------------------------------------------------------------------

    async def get_micro_cycle(self) -> MicroCycleData:
        payload = await self._request("GET", "/micro-cycle")
        return self._parse(MicroCycleData, wire.MICRO_CYCLE, payload, "/micro-cycle")

    # ------------------------------------------------------------------
    # Authentification
    # ------------------------------------------------------------------

    def _parse_auth_response(self, payload: Any) -> Tuple[AuthUser, str]:
        if not isinstance(payload, dict) or not isinstance(payload.get("user", {}), dict):
            raise self._invalid_body("/auth", "expected {token, user}")
        token = payload.get("token", "")
        user = self._parse(AuthUser, wire.AUTH_USER, {**payload.get("user", {}), "token": token}, "/auth")
        return user, token

    async def login(self, credentials: LoginRequest) -> Tuple[AuthUser, str]:
        payload = await self._request(
            "POST", "/auth/login", json={"email": credentials.email, "password": credentials.password}
        )
        return self._parse_auth_response(payload)

    async def register(self, credentials: SignUpRequest) -> Tuple[AuthUser, str]:
        body = wire.AUTH_USER.to_wire(credentials.model_dump(mode="json", by_alias=True, exclude_none=True))
        payload = await self._request("POST", "/auth/register", json=body)
        return self._parse_auth_response(payload)

    async def logout(self) -> None:
        await self._request("POST", "/auth/logout")

    async def get_current_user(self) -> AuthUser:
        payload = await self._request("GET", "/auth/me")
        return self._parse(AuthUser, wire.AUTH_USER, payload, "/auth")

    async def update_profile(self, updates: ProfileUpdate) -> Optional[AuthUser]:
        body = wire.AUTH_USER.model_to_wire(updates, partial=True)
        payload = await self._request("PUT", "/auth/profile", json=body)
        if not payload:
            return None
        return self._parse(AuthUser, wire.AUTH_USER, payload, "/auth")

    # ------------------------------------------------------------------
    # Coach
    # ------------------------------------------------------------------

    async def get_athletes(self) -> List[AthleteWithStats]:
        payload = await self._request("GET", "/coach/athletes")
        return self._parse_list(AthleteWithStats, wire.ATHLETE, payload, "/coach/athletes")

    async def get_pending_athletes(self) -> List[AuthUser]:
        payload = await self._request("GET", "/coach/pending-athletes")
        return self._parse_list(AuthUser, wire.AUTH_USER, payload, "/coach/pending-athletes")

    async def approve_athlete(self, athlete_id: str) -> None:
        await self._request("POST", f"/coach/approve-athlete/{athlete_id}")

    async def reject_athlete(self, athlete_id: str) -> None:
        await self._request("POST", f"/coach/reject-athlete/{athlete_id}")

    async def update_athlete_goals(self, athlete_id: str, goals: str) -> None:
        await self._request("PATCH", f"/coach/athlete/{athlete_id}/goals", json={"goals": goals})
