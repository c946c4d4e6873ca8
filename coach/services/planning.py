"""Training plan generation.

Turns a race goal and a VDOT source into a dated, fully specified list of
workouts. The result is plain data for the persistence layer to store; nothing
here touches the database or the network.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional

from coach.config import get_settings
from coach.services.activity_analysis import ActivitySample
from coach.services.paces import TrainingPaces, calculate_training_paces
from coach.services.vdot import VdotEstimate, VdotSource, estimate, select_vdot_source
from coach.services.wearables.base import recent_window
from coach.services.workouts import (
    GeneratedWorkout,
    RandomSource,
    SeededRandomSource,
    determine_phase,
    generate_week,
    is_recovery_week,
)
from coach.validators import PlanValidationError, parse_plan_request

logger = logging.getLogger(__name__)

# Day offsets from the week start (Mon=0) keyed by sessions per week
SESSION_DAY_OFFSETS: dict[int, tuple[int, ...]] = {
    3: (0, 3, 6),            # Mon, Thu, Sun
    4: (0, 2, 4, 6),         # Mon, Wed, Fri, Sun
    5: (0, 2, 3, 5, 6),      # Mon, Wed, Thu, Sat, Sun
    6: (0, 1, 2, 4, 5, 6),   # Mon, Tue, Wed, Fri, Sat, Sun
}
DEFAULT_SESSIONS_PER_WEEK = 4


def plan_duration(race_distance_m: int) -> int:
    """Plan length in weeks for a race distance."""
    if race_distance_m >= 40000:
        return 16
    if race_distance_m >= 20000:
        return 12
    if race_distance_m >= 10000:
        return 8
    return 6


def day_offsets(sessions_per_week: int) -> tuple[int, ...]:
    # TODO: decide with product whether 7 sessions/week gets its own table
    return SESSION_DAY_OFFSETS.get(sessions_per_week, SESSION_DAY_OFFSETS[DEFAULT_SESSIONS_PER_WEEK])


@dataclass(frozen=True)
class PlanRequest:
    race_distance_m: int
    race_date: date
    vdot_source: VdotSource
    sessions_per_week: int = DEFAULT_SESSIONS_PER_WEEK
    name: str = "Training Plan"


@dataclass(frozen=True)
class TrainingPlanSpec:
    name: str
    total_weeks: int
    start_date: date
    race_date: date
    race_distance_m: int
    vdot: float
    vdot_source: str
    paces: TrainingPaces
    sessions_per_week: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "total_weeks": self.total_weeks,
            "start_date": self.start_date.isoformat(),
            "race_date": self.race_date.isoformat(),
            "race_distance": self.race_distance_m,
            "vdot": self.vdot,
            "vdot_source": self.vdot_source,
            "paces": self.paces.to_dict(),
            "sessions_per_week": self.sessions_per_week,
        }


@dataclass(frozen=True)
class ScheduledWorkout:
    week_number: int
    scheduled_date: date
    workout: GeneratedWorkout

    def to_dict(self) -> dict[str, Any]:
        out = self.workout.to_dict()
        out["week_number"] = self.week_number
        out["scheduled_date"] = self.scheduled_date.isoformat()
        return out


@dataclass(frozen=True)
class GeneratedPlan:
    spec: TrainingPlanSpec
    workouts: list[ScheduledWorkout] = field(default_factory=list)
    vdot_estimate: Optional[VdotEstimate] = None

    def week(self, week_number: int) -> list[ScheduledWorkout]:
        return [w for w in self.workouts if w.week_number == week_number]


def create_plan(
    request: PlanRequest,
    today: Optional[date] = None,
    rng: Optional[RandomSource] = None,
) -> GeneratedPlan:
    """Generate the complete plan for a race.

    Raises PlanValidationError when the race date is not strictly in the
    future or the VDOT source is out of range.
    """
    today = today or date.today()
    if request.race_date <= today:
        raise PlanValidationError("Race date must be in the future")

    total_weeks = plan_duration(request.race_distance_m)
    start_date = request.race_date - timedelta(weeks=total_weeks)

    vdot_estimate = estimate(request.vdot_source)
    paces = calculate_training_paces(vdot_estimate.vdot)
    rng = rng or SeededRandomSource()
    offsets = day_offsets(request.sessions_per_week)

    scheduled: list[ScheduledWorkout] = []
    for week in range(1, total_weeks + 1):
        week_start = start_date + timedelta(days=(week - 1) * 7)
        week_workouts = generate_week(
            week, total_weeks, request.race_distance_m, paces, request.sessions_per_week, rng
        )
        for idx, workout in enumerate(week_workouts):
            offset = offsets[idx % len(offsets)]
            scheduled.append(ScheduledWorkout(week, week_start + timedelta(days=offset), workout))

    spec = TrainingPlanSpec(
        name=request.name,
        total_weeks=total_weeks,
        start_date=start_date,
        race_date=request.race_date,
        race_distance_m=request.race_distance_m,
        vdot=vdot_estimate.vdot,
        vdot_source=vdot_estimate.source,
        paces=paces,
        sessions_per_week=request.sessions_per_week,
    )
    logger.info(
        "Generated %d-week plan (%d workouts) from %s VDOT %.1f",
        total_weeks, len(scheduled), vdot_estimate.source, vdot_estimate.vdot,
        extra={
            "ctx_race_distance": request.race_distance_m,
            "ctx_race_date": request.race_date.isoformat(),
            "ctx_vdot_source": vdot_estimate.source,
            "ctx_sessions_per_week": request.sessions_per_week,
        },
    )
    return GeneratedPlan(spec=spec, workouts=scheduled, vdot_estimate=vdot_estimate)


def create_plan_from_payload(
    payload: dict[str, Any],
    activities: Iterable[ActivitySample] = (),
    today: Optional[date] = None,
    rng: Optional[RandomSource] = None,
) -> GeneratedPlan:
    """Validate a raw plan request and generate the plan.

    ``activities`` is only consulted when the payload carries neither a
    manual VDOT nor a recent race result, and only the runs inside the
    configured history window count.
    """
    settings = get_settings()
    today = today or date.today()
    data = parse_plan_request(payload)
    history = recent_window(
        activities,
        settings.history_lookback_days,
        now=datetime.combine(today, datetime.max.time()),
    )
    source = select_vdot_source(
        manual_vdot=data.manual_vdot,
        recent_race_distance=data.recent_race_distance,
        recent_race_time=data.recent_race_time,
        activities=history,
    )
    if rng is None and settings.random_seed is not None:
        rng = SeededRandomSource(settings.random_seed)
    request = PlanRequest(
        race_distance_m=data.race_distance,
        race_date=data.race_date,
        vdot_source=source,
        sessions_per_week=data.training_intensity,
        name=data.name,
    )
    return create_plan(request, today=today, rng=rng)


# --- Reporting over a generated plan ---


def week_summary(plan: GeneratedPlan, week_number: int, completed_dates: Iterable[date] = ()) -> dict[str, Any]:
    """Date range, phase and completion totals for one plan week."""
    week_start = plan.spec.start_date + timedelta(days=(week_number - 1) * 7)
    week_end = week_start + timedelta(days=6)
    workouts = plan.week(week_number)
    done = set(completed_dates)
    return {
        "week_number": week_number,
        "phase": determine_phase(week_number, plan.spec.total_weeks).value,
        "recovery_week": is_recovery_week(week_number),
        "date_range": {"start": week_start.isoformat(), "end": week_end.isoformat()},
        "summary": {
            "total_workouts": len(workouts),
            "completed": sum(1 for w in workouts if w.scheduled_date in done),
            "total_distance": sum(w.workout.total_distance_m for w in workouts),
        },
        "workouts": workouts,
    }


def workout_for_day(plan: GeneratedPlan, day: date) -> tuple[Optional[ScheduledWorkout], Optional[ScheduledWorkout]]:
    """Return (workout scheduled on day, next upcoming workout if none is)."""
    for w in plan.workouts:
        if w.scheduled_date == day:
            return w, None
    upcoming = sorted((w for w in plan.workouts if w.scheduled_date > day), key=lambda w: w.scheduled_date)
    return None, (upcoming[0] if upcoming else None)
