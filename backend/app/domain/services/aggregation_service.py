"""
Moteur d'agrégation - statistiques hebdomadaires et micro-cycle.

Fonctions pures : mêmes entrées => mêmes sorties, aucun état caché.
Les champs optionnels absents comptent pour zéro ; seule une semaine
structurellement invalide (offset non entier) lève une erreur.

Charge d'entraînement (session-RPE, Foster) : somme de RPE x durée.
  - DayTraining : (rpe ou 5) x (durée ou 30 min)
  - Training    : (rating ou 5) x durée
Croissante avec la durée et le nombre de séances ; à n'utiliser qu'en
comparaison relative d'une semaine à l'autre.
"""
import logging
import math
from datetime import date, timedelta
from functools import lru_cache
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from app.domain.entities import (
    WEEK_DAYS,
    ActivityType,
    DayTraining,
    IntensityBreakdown,
    IntensityLevel,
    MicroCycleData,
    MicroCycleWeek,
    PlannedTraining,
    PlannedWeekStats,
    ProgressIndicator,
    ProgressStatus,
    Training,
    TrainingStatus,
    TrainingType,
    WeekData,
    WeeklySummary,
    WeekStats,
)
from app.domain.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_RPE = 5
DEFAULT_SESSION_DURATION = 30  # minutes, pour une case sans durée

# Seuils de l'indicateur de progression (pourcentage de séances réalisées)
ON_TRACK_THRESHOLD = 80
PARTIAL_THRESHOLD = 50

# Semaines affichées dans le micro-cycle : 3 semaines passées -> semaine prochaine
MICRO_CYCLE_OFFSETS = (-3, -2, -1, 0, 1)


def _round_half_up(value: float) -> int:
    """Arrondi commercial (0.5 -> 1), différent de round() qui arrondit au pair."""
    return int(math.floor(value + 0.5))


# ============================================================
# Fenêtre hebdomadaire
# ============================================================

def validate_week_offset(week_offset) -> int:
    if isinstance(week_offset, bool) or not isinstance(week_offset, int):
        raise ValidationError(f"week_offset must be an integer, got {week_offset!r}")
    return week_offset


@lru_cache(maxsize=256)
def _week_boundaries(week_offset: int, today: date) -> Tuple[date, date]:
    # Jour de la semaine compté dimanche=0 .. samedi=6, lundi=1
    sunday_based_day = (today.weekday() + 1) % 7
    monday = today - timedelta(days=sunday_based_day) + timedelta(days=1 + week_offset * 7)
    return monday, monday + timedelta(days=6)


def get_week_boundaries(week_offset: int = 0, today: Optional[date] = None) -> Tuple[date, date]:
    """Retourne (lundi, dimanche) de la semaine décalée de `week_offset` par rapport à `today`.

    Lundi = today - jour(dimanche=0) + 1 + 7*offset, dimanche = lundi + 6.
    Un dimanche, la semaine "courante" est donc celle qui commence le lendemain.
    """
    validate_week_offset(week_offset)
    return _week_boundaries(week_offset, today or date.today())


def is_in_week(day: date, week_start: date, week_end: date) -> bool:
    """Comparaison inclusive sur les deux bornes."""
    return week_start <= day <= week_end


def filter_trainings_for_week(trainings: Iterable[Training], week_start: date, week_end: date) -> List[Training]:
    return [t for t in trainings if is_in_week(t.date, week_start, week_end)]


def filter_planned_for_week(
    planned: Iterable[PlannedTraining], week_start: date, week_end: date
) -> List[PlannedTraining]:
    return [p for p in planned if is_in_week(p.planned_date, week_start, week_end)]


# ============================================================
# Pourcentages
# ============================================================

def completion_percentage(completed_count: int, planned_count: int) -> int:
    """round(réalisées / prévues * 100), 0 si rien n'est prévu."""
    if not planned_count:
        return 0
    return _round_half_up(completed_count / planned_count * 100)


def week_over_week_delta(current: float, previous: float) -> int:
    """Variation en % d'une semaine sur l'autre.

    previous == 0 : +100 si current > 0, sinon 0 (pas de -inf trompeur).
    """
    if not previous:
        return 100 if current > 0 else 0
    return _round_half_up((current - previous) / previous * 100)


def format_percentage_change(delta: int) -> str:
    if delta > 0:
        return f"+{delta}%"
    return f"{delta}%"


def week_over_week_change(current: float, previous: float) -> str:
    """Variation formatée : "+100%", "0%", "-26%"..."""
    return format_percentage_change(week_over_week_delta(current, previous))


# ============================================================
# Charge d'entraînement
# ============================================================

def session_load(duration: Optional[int], rpe: Optional[int]) -> int:
    effort = rpe or DEFAULT_RPE
    minutes = DEFAULT_SESSION_DURATION if duration is None else duration
    return effort * minutes


def training_load_for_days(days: Iterable[DayTraining]) -> int:
    return sum(session_load(d.duration, d.rpe) for d in days)


def training_load_for_trainings(trainings: Iterable[Training]) -> int:
    return sum((t.rating or DEFAULT_RPE) * (t.duration or 0) for t in trainings)


def planned_training_load(planned: Iterable[PlannedTraining]) -> int:
    return sum(DEFAULT_RPE * (p.planned_duration or 0) for p in planned)


# ============================================================
# Grille hebdomadaire
# ============================================================

def _filled_slots(days: Mapping[str, Optional[DayTraining]]) -> List[DayTraining]:
    return [d for d in days.values() if d is not None]


def intensity_breakdown(days: Iterable[DayTraining]) -> IntensityBreakdown:
    counts = {level: 0 for level in IntensityLevel}
    for d in days:
        if d.intensity is not None:
            counts[IntensityLevel(d.intensity)] += 1
    return IntensityBreakdown(
        low=counts[IntensityLevel.LOW],
        medium=counts[IntensityLevel.MEDIUM],
        high=counts[IntensityLevel.HIGH],
    )


def activity_breakdown(days: Iterable[DayTraining]) -> Dict[str, int]:
    """Histogramme à schéma fixe : les 8 types sont toujours présents."""
    counts = {activity.value: 0 for activity in ActivityType}
    for d in days:
        counts[ActivityType(d.activity_type).value] += 1
    return counts


def rest_days(days: Mapping[str, Optional[DayTraining]]) -> int:
    """Jours sans case ou avec une case "Rest"."""
    training_days = [d for d in _filled_slots(days) if ActivityType(d.activity_type) != ActivityType.REST]
    return len(WEEK_DAYS) - len(training_days)


def summarize_week(days: Mapping[str, Optional[DayTraining]]) -> WeeklySummary:
    """Résumé d'une semaine de la grille (recalculé à chaque lecture)."""
    slots = _filled_slots(days)

    planned = sum(1 for d in slots if TrainingStatus(d.status) == TrainingStatus.PLANNED)
    completed = sum(1 for d in slots if TrainingStatus(d.status) == TrainingStatus.COMPLETED)
    missed = sum(1 for d in slots if TrainingStatus(d.status) == TrainingStatus.MISSED)

    return WeeklySummary(
        total_training_days=len(slots),
        planned_training_days=planned,
        completed_training_days=completed,
        missed_training_days=missed,
        total_distance=round(sum(d.distance or 0 for d in slots), 2),
        total_duration=sum(d.duration or 0 for d in slots),
        training_load=training_load_for_days(slots),
        rest_days=rest_days(days),
        completion_percentage=completion_percentage(completed, len(slots)),
        intensity_breakdown=intensity_breakdown(slots),
        activity_breakdown=activity_breakdown(slots),
    )


# ============================================================
# Statistiques réelles / prévues
# ============================================================

def weekly_stats(trainings: Sequence[Training]) -> WeekStats:
    """Stats réelles d'une semaine ; la distance totale ne compte que la course."""
    running = [t for t in trainings if TrainingType(t.type) == TrainingType.RUNNING]
    strength = [t for t in trainings if TrainingType(t.type) == TrainingType.STRENGTH]

    return WeekStats(
        total_sessions=len(trainings),
        running_sessions=len(running),
        strength_sessions=len(strength),
        total_distance=round(sum(t.distance or 0 for t in running), 2),
        running_duration=sum(t.duration or 0 for t in running),
        strength_duration=sum(t.duration or 0 for t in strength),
        total_duration=sum(t.duration or 0 for t in trainings),
        total_calories=sum(t.calories or 0 for t in trainings),
        training_load=training_load_for_trainings(trainings),
    )


def planned_weekly_stats(planned: Sequence[PlannedTraining]) -> PlannedWeekStats:
    return PlannedWeekStats(
        total_sessions=len(planned),
        total_planned_distance=round(sum(p.planned_distance or 0 for p in planned), 2),
        total_planned_duration=sum(p.planned_duration or 0 for p in planned),
    )


def build_week_data(
    week_offset: int,
    trainings: Iterable[Training],
    planned: Iterable[PlannedTraining],
    today: Optional[date] = None,
) -> WeekData:
    """Semaine complète (réel + prévu) pour un décalage donné."""
    week_start, week_end = get_week_boundaries(week_offset, today)
    week_trainings = filter_trainings_for_week(trainings, week_start, week_end)
    week_planned = filter_planned_for_week(planned, week_start, week_end)

    return WeekData(
        week_offset=week_offset,
        week_start=week_start,
        week_end=week_end,
        actual_stats=weekly_stats(week_trainings),
        planned_stats=planned_weekly_stats(week_planned),
        completion_percentage=completion_percentage(
            sum(1 for p in week_planned if p.completed), len(week_planned)
        ),
    )


def build_micro_cycle(
    trainings: Sequence[Training],
    planned: Sequence[PlannedTraining],
    today: Optional[date] = None,
    offsets: Sequence[int] = MICRO_CYCLE_OFFSETS,
) -> MicroCycleData:
    """Tendance de charge : semaines passées/courante en réel, futures en prévu."""
    weeks: List[MicroCycleWeek] = []
    durations: Dict[int, int] = {}
    planned_durations: Dict[int, int] = {}

    for offset in offsets:
        week_start, week_end = get_week_boundaries(offset, today)
        week_planned = filter_planned_for_week(planned, week_start, week_end)
        planned_durations[offset] = sum(p.planned_duration or 0 for p in week_planned)

        if offset <= 0:
            stats = weekly_stats(filter_trainings_for_week(trainings, week_start, week_end))
            week = MicroCycleWeek(
                week_offset=offset,
                week_start=week_start,
                week_end=week_end,
                total_sessions=stats.total_sessions,
                running_sessions=stats.running_sessions,
                strength_sessions=stats.strength_sessions,
                total_distance=stats.total_distance,
                running_duration=stats.running_duration,
                strength_duration=stats.strength_duration,
                total_duration=stats.total_duration,
                total_load=stats.training_load,
                total_calories=stats.total_calories,
            )
        else:
            running = [p for p in week_planned if TrainingType(p.type) == TrainingType.RUNNING]
            strength = [p for p in week_planned if TrainingType(p.type) == TrainingType.STRENGTH]
            week = MicroCycleWeek(
                week_offset=offset,
                week_start=week_start,
                week_end=week_end,
                total_sessions=len(week_planned),
                running_sessions=len(running),
                strength_sessions=len(strength),
                total_distance=round(sum(p.planned_distance or 0 for p in running), 2),
                running_duration=sum(p.planned_duration or 0 for p in running),
                strength_duration=sum(p.planned_duration or 0 for p in strength),
                total_duration=planned_durations[offset],
                total_load=planned_training_load(week_planned),
            )
        durations[offset] = week.total_duration
        weeks.append(week)

    return MicroCycleData(
        weeks=weeks,
        current_week_load=durations.get(0, 0),
        next_week_planned=planned_durations.get(1, 0),
        week_over_week_change=week_over_week_change(durations.get(0, 0), durations.get(-1, 0)),
    )


# ============================================================
# Suivi coach / cohérence
# ============================================================

def progress_indicator(completed_count: int, planned_count: int) -> ProgressIndicator:
    percentage = completion_percentage(completed_count, planned_count)
    if percentage >= ON_TRACK_THRESHOLD:
        status = ProgressStatus.ON_TRACK
    elif percentage >= PARTIAL_THRESHOLD:
        status = ProgressStatus.PARTIALLY_COMPLETED
    else:
        status = ProgressStatus.MISSED_MAJORITY
    return ProgressIndicator(percentage=percentage, status=status)


def find_inconsistent_plans(
    planned: Iterable[PlannedTraining], trainings: Iterable[Training]
) -> List[PlannedTraining]:
    """Plans marqués réalisés sans lien valide vers une séance (signalés, jamais levés)."""
    training_ids = {t.id for t in trainings}
    inconsistent = [
        p for p in planned
        if p.completed and (not p.completed_training_id or p.completed_training_id not in training_ids)
    ]
    for p in inconsistent:
        logger.warning(f"Plan {p.id} marqué réalisé sans séance liée valide ({p.completed_training_id})")
    return inconsistent
