"""
Routers API pour TrainLog.

Ce module regroupe tous les sous-routers et expose un router principal
a inclure dans l'application FastAPI.
"""
from fastapi import APIRouter

from app.api.routers.training_router import router as training_router
from app.api.routers.plan_router import router as plan_router
from app.api.routers.weekly_plan_router import router as weekly_plan_router

router = APIRouter()

router.include_router(training_router)
router.include_router(plan_router)
router.include_router(weekly_plan_router)

__all__ = ["router"]
