"""
Entités du plan hebdomadaire - Domain Layer
DayTraining = case d'un jour dans la grille, WeeklySummary = agrégat dérivé (jamais stocké)
"""
from sqlmodel import Field
from pydantic import field_validator
from typing import Optional, List, Dict
from datetime import datetime, date as date_type
from enum import Enum

from .base import TrainLogModel


WEEK_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class ActivityType(str, Enum):
    """Types d'activité de la grille hebdomadaire"""
    EASY_RUN = "Easy Run"
    INTERVALS = "Intervals"
    TEMPO_RUN = "Tempo Run"
    LONG_RUN = "Long Run"
    HILL_RUN = "Hill Run"
    STRENGTH_TRAINING = "Strength Training"
    CROSS_TRAINING = "Cross Training"
    REST = "Rest"


class IntensityLevel(str, Enum):
    """Niveau d'intensité ressenti/prévu"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TrainingStatus(str, Enum):
    """Statut d'une case de la grille"""
    PLANNED = "planned"
    COMPLETED = "completed"
    MISSED = "missed"


class DayTraining(TrainLogModel):
    """Séance d'un jour de la semaine (une seule par jour et par semaine)"""
    id: str
    day: str
    activity_type: ActivityType
    duration: Optional[int] = Field(default=None, ge=0)  # minutes
    distance: Optional[float] = Field(default=None, ge=0)  # km
    intensity: IntensityLevel = IntensityLevel.MEDIUM
    heart_rate_zone: Optional[str] = None
    rpe: Optional[int] = Field(default=None, ge=1, le=10)  # Rate of Perceived Exertion
    notes: Optional[str] = None
    status: TrainingStatus = TrainingStatus.PLANNED
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class IntensityBreakdown(TrainLogModel):
    low: int = 0
    medium: int = 0
    high: int = 0


class WeeklySummary(TrainLogModel):
    """Résumé dérivé d'une semaine de DayTraining"""
    total_training_days: int = 0
    planned_training_days: int = 0
    completed_training_days: int = 0
    missed_training_days: int = 0
    total_distance: float = 0.0
    total_duration: int = 0
    training_load: int = 0
    rest_days: int = 7
    completion_percentage: int = 0
    intensity_breakdown: IntensityBreakdown = Field(default_factory=IntensityBreakdown)
    activity_breakdown: Dict[str, int] = Field(default_factory=dict)


class WeeklyPlanData(TrainLogModel):
    """Grille complète d'une semaine et son résumé"""
    week_offset: int
    week_start: date_type
    week_end: date_type
    days: Dict[str, Optional[DayTraining]]
    summary: WeeklySummary


class WeekStats(TrainLogModel):
    """Statistiques réelles d'une semaine (séances réalisées)"""
    total_sessions: int = 0
    running_sessions: int = 0
    strength_sessions: int = 0
    total_distance: float = 0.0
    running_duration: int = 0
    strength_duration: int = 0
    total_duration: int = 0
    total_calories: int = 0
    training_load: int = 0


class PlannedWeekStats(TrainLogModel):
    """Statistiques prévues d'une semaine"""
    total_sessions: int = 0
    total_planned_distance: float = 0.0
    total_planned_duration: int = 0


class WeekData(TrainLogModel):
    """Semaine complète : bornes, réel et prévu"""
    week_offset: int
    week_start: date_type
    week_end: date_type
    actual_stats: WeekStats
    planned_stats: PlannedWeekStats
    completion_percentage: int = 0


class MicroCycleWeek(TrainLogModel):
    """Une semaine du micro-cycle (format renvoyé par /micro-cycle)"""
    week_offset: int
    week_start: date_type
    week_end: date_type
    total_sessions: int = 0
    running_sessions: int = 0
    strength_sessions: int = 0
    total_distance: float = 0.0
    running_duration: int = 0
    strength_duration: int = 0
    total_duration: int = 0
    total_load: int = 0
    total_calories: int = 0
    weight: Optional[str] = None


class MicroCycleData(TrainLogModel):
    """Tendance de charge sur plusieurs semaines"""
    weeks: List[MicroCycleWeek]
    current_week_load: int = 0
    next_week_planned: int = 0
    week_over_week_change: str = "0%"

    @field_validator("week_over_week_change", mode="before")
    @classmethod
    def format_change(cls, v):
        # L'API peut renvoyer la variation en nombre brut (ex: 26 ou -12)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = int(round(v))
            return f"+{v}%" if v > 0 else f"{v}%"
        return v
