"""
Entité User - Domain Layer
Session utilisateur (athlète ou coach) renvoyée par le collaborateur d'authentification
"""
from sqlmodel import Field
from pydantic import field_validator
from typing import Optional
from datetime import datetime, date as date_type
from enum import Enum

from .base import TrainLogModel


class UserRole(str, Enum):
    ATHLETE = "athlete"
    COACH = "coach"


class ProgressStatus(str, Enum):
    """Indicateur de progression affiché au coach"""
    ON_TRACK = "on-track"
    PARTIALLY_COMPLETED = "partially-completed"
    MISSED_MAJORITY = "missed-majority"


class AuthUser(TrainLogModel):
    """Session authentifiée"""
    id: str
    email: str
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    token: str = ""
    role: UserRole = UserRole.ATHLETE
    pending: bool = False
    age: Optional[int] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    goals: Optional[str] = None
    assigned_coach: Optional[str] = None
    registration_date: Optional[datetime] = None


class LoginRequest(TrainLogModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        import re
        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(email_pattern, v):
            raise ValueError('Invalid email format')
        return v.lower()


class SignUpRequest(LoginRequest):
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class ProfileUpdate(TrainLogModel):
    """Champs de profil modifiables par l'utilisateur"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0)
    height: Optional[float] = Field(default=None, ge=0)
    weight: Optional[float] = Field(default=None, ge=0)
    goals: Optional[str] = None


class WeeklyTrainingStats(TrainLogModel):
    total_trainings: int = 0
    total_duration: int = 0
    last_training_date: Optional[date_type] = None


class ProgressIndicator(TrainLogModel):
    percentage: int = 0
    status: ProgressStatus = ProgressStatus.MISSED_MAJORITY


class AthleteWithStats(AuthUser):
    """Athlète tel que vu par son coach"""
    weekly_training_stats: Optional[WeeklyTrainingStats] = None
    progress_indicator: Optional[ProgressIndicator] = None
