"""
Initialisation des entités du domaine
"""

from .base import TrainLogModel, parse_model
from .training import (
    TrainingType, RunningCategory, Exercise,
    Training, TrainingCreate, TrainingUpdate,
    PlannedTraining, PlannedTrainingCreate, PlannedTrainingUpdate,
)
from .weekly_plan import (
    WEEK_DAYS, ActivityType, IntensityLevel, TrainingStatus, DayTraining,
    IntensityBreakdown, WeeklySummary, WeeklyPlanData,
    WeekStats, PlannedWeekStats, WeekData, MicroCycleWeek, MicroCycleData,
)
from .user import (
    UserRole, ProgressStatus, AuthUser, LoginRequest, SignUpRequest, ProfileUpdate,
    WeeklyTrainingStats, ProgressIndicator, AthleteWithStats,
)

__all__ = [
    "TrainLogModel", "parse_model",
    "TrainingType", "RunningCategory", "Exercise",
    "Training", "TrainingCreate", "TrainingUpdate",
    "PlannedTraining", "PlannedTrainingCreate", "PlannedTrainingUpdate",
    "WEEK_DAYS", "ActivityType", "IntensityLevel", "TrainingStatus", "DayTraining",
    "IntensityBreakdown", "WeeklySummary", "WeeklyPlanData",
    "WeekStats", "PlannedWeekStats", "WeekData", "MicroCycleWeek", "MicroCycleData",
    "UserRole", "ProgressStatus", "AuthUser", "LoginRequest", "SignUpRequest", "ProfileUpdate",
    "WeeklyTrainingStats", "ProgressIndicator", "AthleteWithStats",
]
