"""
Routes des séances réalisées : CRUD au format wire snake_case.
Routes = validation + delegation a la couche requetes/mutations. Pas de logique metier ici.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Response, status

from app.api.routers._shared import from_wire, get_services, to_wire
from app.core.container import ServiceContainer
from app.domain.services import wire_mapping as wire

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/trainings")
async def get_trainings(
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    services: ServiceContainer = Depends(get_services),
) -> List[Dict[str, Any]]:
    """Liste des séances (date décroissante)"""
    trainings = await services.queries.trainings(limit=limit, offset=offset)
    return [to_wire(t, wire.TRAINING) for t in trainings]


@router.get("/trainings/{training_id}")
async def get_training(training_id: str, services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    training = await services.queries.training(training_id)
    return to_wire(training, wire.TRAINING)


@router.post("/trainings", status_code=status.HTTP_201_CREATED)
async def create_training(
    payload: Dict[str, Any] = Body(...),
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    """Enregistre une nouvelle séance"""
    result = await services.queries.create_training(from_wire(payload, wire.TRAINING))
    if not result.is_success:
        raise result.error
    return to_wire(result.data, wire.TRAINING)


@router.put("/trainings/{training_id}")
async def update_training(
    training_id: str,
    payload: Dict[str, Any] = Body(...),
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    """Mise a jour partielle : les champs absents restent inchangés"""
    result = await services.queries.update_training(training_id, from_wire(payload, wire.TRAINING))
    if not result.is_success:
        raise result.error
    return to_wire(result.data, wire.TRAINING)


@router.delete("/trainings/{training_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_training(training_id: str, services: ServiceContainer = Depends(get_services)) -> Response:
    result = await services.queries.delete_training(training_id)
    if not result.is_success:
        raise result.error
    return Response(status_code=status.HTTP_204_NO_CONTENT)
