"""
Entités Training et PlannedTraining - Domain Layer
Training = séance réalisée, PlannedTraining = séance prévue (à comparer avec le réel)
"""
from sqlmodel import Field
from typing import Optional, List
from datetime import datetime, date as date_type
from enum import Enum

from .base import TrainLogModel


class TrainingType(str, Enum):
    """Types de séances supportés"""
    RUNNING = "running"
    CYCLING = "cycling"
    SWIMMING = "swimming"
    STRENGTH = "strength"
    YOGA = "yoga"
    OTHER = "other"


class RunningCategory(str, Enum):
    """Catégories de course à pied"""
    AEROBIC = "aerobic"
    INTERVALS = "intervals"
    TEMPO = "tempo"
    HILLS = "hills"


RUNNING_CATEGORY_LABELS = {
    RunningCategory.AEROBIC: "Aerobic",
    RunningCategory.INTERVALS: "Intervals",
    RunningCategory.TEMPO: "Tempo",
    RunningCategory.HILLS: "Hills",
}


def category_display_name(category: Optional[RunningCategory]) -> str:
    """Libellé affiché pour une catégorie de course ("Running" par défaut)."""
    if category is None:
        return "Running"
    return RUNNING_CATEGORY_LABELS.get(RunningCategory(category), "Running")


class Exercise(TrainLogModel):
    """Exercice de renforcement (ordre conservé dans la séance)"""
    id: Optional[str] = None
    name: str
    sets: int = Field(ge=0)
    reps: int = Field(ge=0)
    weight: Optional[float] = Field(default=None, ge=0)  # kg


class TrainingBase(TrainLogModel):
    """Modèle de base pour Training"""
    user_id: str
    title: str = ""
    type: TrainingType
    date: date_type
    duration: int = Field(ge=0)  # minutes

    distance: Optional[float] = Field(default=None, ge=0)  # km
    pace: Optional[str] = None  # "mm:ss" par km
    calories: Optional[int] = None

    # Métriques cardio / cadence / altitude
    heart_rate_avg: Optional[int] = None
    heart_rate_max: Optional[int] = None
    cadence_avg: Optional[int] = None
    cadence_max: Optional[int] = None
    altitude_min: Optional[float] = None
    altitude_max: Optional[float] = None
    altitude_gain: Optional[float] = None
    altitude_loss: Optional[float] = None

    # Notes et ressenti
    trainer_notes: Optional[str] = None
    trainee_notes: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=10)

    # Liens externes
    strava_link: Optional[str] = None
    garmin_link: Optional[str] = None

    category: Optional[RunningCategory] = None


class Training(TrainingBase):
    """Séance réalisée, telle que stockée par le backend"""
    id: str
    exercises: List[Exercise] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class TrainingCreate(TrainingBase):
    """Schéma pour créer une séance (id et timestamps assignés par le backend)"""
    exercises: Optional[List[Exercise]] = None


class TrainingUpdate(TrainLogModel):
    """Schéma pour mettre à jour une séance (PATCH : seuls les champs fournis changent)"""
    title: Optional[str] = None
    type: Optional[TrainingType] = None
    date: Optional[date_type] = None
    duration: Optional[int] = Field(default=None, ge=0)
    distance: Optional[float] = Field(default=None, ge=0)
    pace: Optional[str] = None
    calories: Optional[int] = None
    heart_rate_avg: Optional[int] = None
    heart_rate_max: Optional[int] = None
    cadence_avg: Optional[int] = None
    cadence_max: Optional[int] = None
    altitude_min: Optional[float] = None
    altitude_max: Optional[float] = None
    altitude_gain: Optional[float] = None
    altitude_loss: Optional[float] = None
    exercises: Optional[List[Exercise]] = None
    trainer_notes: Optional[str] = None
    trainee_notes: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=10)
    strava_link: Optional[str] = None
    garmin_link: Optional[str] = None
    category: Optional[RunningCategory] = None


class PlannedTrainingBase(TrainLogModel):
    """Modèle de base pour PlannedTraining"""
    user_id: str
    title: str = ""
    type: TrainingType
    planned_date: date_type
    planned_duration: int = Field(ge=0)  # minutes
    planned_distance: Optional[float] = Field(default=None, ge=0)  # km
    category: Optional[RunningCategory] = None
    notes: Optional[str] = None
    completed: bool = False
    completed_training_id: Optional[str] = None


class PlannedTraining(PlannedTrainingBase):
    """Séance prévue, telle que stockée par le backend"""
    id: str
    created_at: datetime
    updated_at: datetime


class PlannedTrainingCreate(PlannedTrainingBase):
    """Schéma pour créer une séance prévue"""


class PlannedTrainingUpdate(TrainLogModel):
    """Schéma pour mettre à jour une séance prévue (ex: glisser-déposer vers un autre jour)"""
    title: Optional[str] = None
    type: Optional[TrainingType] = None
    planned_date: Optional[date_type] = None
    planned_duration: Optional[int] = Field(default=None, ge=0)
    planned_distance: Optional[float] = Field(default=None, ge=0)
    category: Optional[RunningCategory] = None
    notes: Optional[str] = None
    completed: Optional[bool] = None
    completed_training_id: Optional[str] = None
