"""
Routes du plan hebdomadaire (grille DayTraining, stats de semaine) et du micro-cycle.
"""
import logging
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Response, status

from app.api.routers._shared import from_wire, get_services, to_wire
from app.core.container import ServiceContainer
from app.domain.entities import WeeklyPlanData
from app.domain.errors import ValidationError
from app.domain.services import wire_mapping as wire

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_week_start(value: Any) -> date:
    try:
        week_start = date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid week_start: {value!r}")
    if week_start.weekday() != 0:
        raise ValidationError(f"week_start must be a Monday: {value}")
    return week_start


def _plan_to_wire(plan: WeeklyPlanData) -> Dict[str, Any]:
    return {
        "week_offset": plan.week_offset,
        "week_start": plan.week_start.isoformat(),
        "week_end": plan.week_end.isoformat(),
        "days": {
            day: to_wire(slot, wire.DAY_TRAINING) if slot is not None else None
            for day, slot in plan.days.items()
        },
        "summary": to_wire(plan.summary),
    }


@router.get("/weekly-plan")
async def get_weekly_plan(
    week_offset: int = 0,
    week_start: Optional[str] = None,
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    """Grille de la semaine (par décalage ou par lundi explicite) et son résumé"""
    if week_start is not None:
        plan = await services.weekly_plan.get_weekly_plan_starting(_parse_week_start(week_start))
    else:
        plan = await services.weekly_plan.get_weekly_plan(week_offset)
    return _plan_to_wire(plan)


@router.get("/weekly-plan/week-data")
async def get_week_data(week_offset: int = 0, services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    """Stats réelles et prévues d'une semaine"""
    week_data = await services.weekly_plan.get_week_data(week_offset)
    return to_wire(week_data)


@router.post("/weekly-plan/days", status_code=status.HTTP_201_CREATED)
async def add_day_training(
    week_offset: int = 0,
    payload: Dict[str, Any] = Body(...),
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    data = from_wire(payload, wire.DAY_TRAINING)
    day = data.pop("day", None)
    if not day:
        raise ValidationError("day is required")
    day_training = await services.weekly_plan.add_day_training(week_offset, day, data)
    return to_wire(day_training, wire.DAY_TRAINING)


@router.put("/weekly-plan/days/{day_training_id}")
async def save_day_training(
    day_training_id: str,
    payload: Dict[str, Any] = Body(...),
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    """Remplace entièrement la case d'un jour"""
    payload = dict(payload)
    week_start = _parse_week_start(payload.pop("week_start", None))
    data = {**from_wire(payload, wire.DAY_TRAINING), "id": day_training_id}
    day_training = await services.weekly_plan.save_day_training(week_start, data)
    return to_wire(day_training, wire.DAY_TRAINING)


@router.delete("/weekly-plan/days/{day_training_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_day_training(day_training_id: str, services: ServiceContainer = Depends(get_services)) -> Response:
    await services.weekly_plan.delete_day_training(day_training_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/micro-cycle")
async def get_micro_cycle(services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    """Tendance de charge sur 5 semaines"""
    micro_cycle = await services.micro_cycle.get_micro_cycle()
    return to_wire(micro_cycle, wire.MICRO_CYCLE)
