"""
Traduction camelCase (documents internes) <-> snake_case (format wire de l'API).

Une table explicite par entité, bijective et sans perte pour chaque champ du
modèle. Les clés inconnues sont transmises telles quelles.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from app.domain.entities import TrainLogModel

logger = logging.getLogger(__name__)


class EntityMapping:
    """Table de correspondance bidirectionnelle pour une entité."""

    def __init__(
        self,
        name: str,
        fields: Mapping[str, str],
        nested: Optional[Mapping[str, "EntityMapping"]] = None,
    ):
        self.name = name
        self.to_wire_keys: Dict[str, str] = dict(fields)
        self.from_wire_keys: Dict[str, str] = {v: k for k, v in fields.items()}
        if len(self.from_wire_keys) != len(self.to_wire_keys):
            raise ValueError(f"Table {name}: correspondance non bijective")
        # Sous-entités indexées par clé interne (camelCase)
        self.nested: Dict[str, EntityMapping] = dict(nested or {})

    def _convert(self, value: Any, mapping: "EntityMapping", to_wire: bool) -> Any:
        if isinstance(value, list):
            return [self._convert(v, mapping, to_wire) for v in value]
        if isinstance(value, Mapping):
            return mapping.to_wire(value) if to_wire else mapping.from_wire(value)
        return value

    def to_wire(self, document: Mapping[str, Any]) -> Dict[str, Any]:
        """Document camelCase -> payload snake_case."""
        payload: Dict[str, Any] = {}
        for key, value in document.items():
            if key in self.nested:
                value = self._convert(value, self.nested[key], to_wire=True)
            wire_key = self.to_wire_keys.get(key)
            if wire_key is None:
                logger.debug(f"{self.name}: clé non mappée transmise telle quelle: {key}")
                wire_key = key
            payload[wire_key] = value
        return payload

    def from_wire(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Payload snake_case -> document camelCase."""
        document: Dict[str, Any] = {}
        for wire_key, value in payload.items():
            key = self.from_wire_keys.get(wire_key, wire_key)
            if key in self.nested:
                value = self._convert(value, self.nested[key], to_wire=False)
            document[key] = value
        return document

    def model_to_wire(self, model: TrainLogModel, partial: bool = False) -> Dict[str, Any]:
        """Sérialise un modèle en payload wire (partial=True : seulement les champs fournis)."""
        document = model.model_dump(mode="json", by_alias=True, exclude_unset=partial)
        return self.to_wire(document)


EXERCISE = EntityMapping("Exercise", {
    "id": "id",
    "name": "name",
    "sets": "sets",
    "reps": "reps",
    "weight": "weight",
})

TRAINING = EntityMapping("Training", {
    "id": "id",
    "userId": "user_id",
    "title": "title",
    "type": "type",
    "date": "date",
    "duration": "duration",
    "distance": "distance",
    "pace": "pace",
    "calories": "calories",
    "heartRateAvg": "heart_rate_avg",
    "heartRateMax": "heart_rate_max",
    "cadenceAvg": "cadence_avg",
    "cadenceMax": "cadence_max",
    "altitudeMin": "altitude_min",
    "altitudeMax": "altitude_max",
    "altitudeGain": "altitude_gain",
    "altitudeLoss": "altitude_loss",
    "exercises": "exercises",
    "trainerNotes": "trainer_notes",
    "traineeNotes": "trainee_notes",
    "rating": "rating",
    "stravaLink": "strava_link",
    "garminLink": "garmin_link",
    "category": "category",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}, nested={"exercises": EXERCISE})

PLANNED_TRAINING = EntityMapping("PlannedTraining", {
    "id": "id",
    "userId": "user_id",
    "title": "title",
    "type": "type",
    "plannedDate": "planned_date",
    "plannedDuration": "planned_duration",
    "plannedDistance": "planned_distance",
    "category": "category",
    "notes": "notes",
    "completed": "completed",
    "completedTrainingId": "completed_training_id",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
})

DAY_TRAINING = EntityMapping("DayTraining", {
    "id": "id",
    "day": "day",
    "activityType": "activity_type",
    "duration": "duration",
    "distance": "distance",
    "intensity": "intensity",
    "heartRateZone": "heart_rate_zone",
    "rpe": "rpe",
    "notes": "notes",
    "status": "status",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
})

AUTH_USER = EntityMapping("AuthUser", {
    "id": "id",
    "email": "email",
    "name": "name",
    "firstName": "first_name",
    "lastName": "last_name",
    "token": "token",
    "role": "role",
    "pending": "pending",
    "age": "age",
    "height": "height",
    "weight": "weight",
    "goals": "goals",
    "assignedCoach": "assigned_coach",
    "registrationDate": "registration_date",
})

WEEKLY_TRAINING_STATS = EntityMapping("WeeklyTrainingStats", {
    "totalTrainings": "total_trainings",
    "totalDuration": "total_duration",
    "lastTrainingDate": "last_training_date",
})

PROGRESS_INDICATOR = EntityMapping("ProgressIndicator", {
    "percentage": "percentage",
    "status": "status",
})

ATHLETE = EntityMapping("AthleteWithStats", {
    **AUTH_USER.to_wire_keys,
    "weeklyTrainingStats": "weekly_training_stats",
    "progressIndicator": "progress_indicator",
}, nested={"weeklyTrainingStats": WEEKLY_TRAINING_STATS, "progressIndicator": PROGRESS_INDICATOR})

MICRO_CYCLE_WEEK = EntityMapping("MicroCycleWeek", {
    "weekOffset": "week_offset",
    "weekStart": "week_start",
    "weekEnd": "week_end",
    "totalSessions": "total_sessions",
    "runningSessions": "running_sessions",
    "strengthSessions": "strength_sessions",
    "totalDistance": "total_distance",
    "runningDuration": "running_duration",
    "strengthDuration": "strength_duration",
    "totalDuration": "total_duration",
    "totalLoad": "total_load",
    "totalCalories": "total_calories",
    "weight": "weight",
})

MICRO_CYCLE = EntityMapping("MicroCycleData", {
    "weeks": "weeks",
    "currentWeekLoad": "current_week_load",
    "nextWeekPlanned": "next_week_planned",
    "weekOverWeekChange": "week_over_week_change",
}, nested={"weeks": MICRO_CYCLE_WEEK})
