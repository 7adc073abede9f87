"""
Routes des séances planifiées : CRUD et contrôle de cohérence plan/séance.
"""
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Response, status

from app.api.routers._shared import from_wire, get_services, to_wire
from app.core.container import ServiceContainer
from app.domain.services import wire_mapping as wire

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/planned-trainings")
async def get_planned_trainings(services: ServiceContainer = Depends(get_services)) -> List[Dict[str, Any]]:
    planned = await services.queries.planned_trainings()
    return [to_wire(p, wire.PLANNED_TRAINING) for p in planned]


@router.get("/planned-trainings/inconsistent")
async def get_inconsistent_planned_trainings(
    services: ServiceContainer = Depends(get_services),
) -> List[Dict[str, Any]]:
    """Plans marqués réalisés sans séance liée valide"""
    planned = await services.weekly_plan.get_inconsistent_plans()
    return [to_wire(p, wire.PLANNED_TRAINING) for p in planned]


@router.get("/planned-trainings/{planned_id}")
async def get_planned_training(planned_id: str, services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    planned = await services.trainings.get_planned_training_by_id(planned_id)
    return to_wire(planned, wire.PLANNED_TRAINING)


@router.post("/planned-trainings", status_code=status.HTTP_201_CREATED)
async def create_planned_training(
    payload: Dict[str, Any] = Body(...),
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    """Planifie une nouvelle séance"""
    result = await services.queries.create_planned_training(from_wire(payload, wire.PLANNED_TRAINING))
    if not result.is_success:
        raise result.error
    return to_wire(result.data, wire.PLANNED_TRAINING)


@router.put("/planned-trainings/{planned_id}")
async def update_planned_training(
    planned_id: str,
    payload: Dict[str, Any] = Body(...),
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    """Mise a jour partielle (ex: déplacement de date par glisser-déposer)"""
    result = await services.queries.update_planned_training(planned_id, from_wire(payload, wire.PLANNED_TRAINING))
    if not result.is_success:
        raise result.error
    return to_wire(result.data, wire.PLANNED_TRAINING)


@router.delete("/planned-trainings/{planned_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_planned_training(planned_id: str, services: ServiceContainer = Depends(get_services)) -> Response:
    result = await services.queries.delete_planned_training(planned_id)
    if not result.is_success:
        raise result.error
    return Response(status_code=status.HTTP_204_NO_CONTENT)
