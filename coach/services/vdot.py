"""VDOT estimation, after Jack Daniels' Running Formula.

VDOT is a single-number measure of aerobic fitness. A plan's VDOT comes from
exactly one source, chosen once when the plan is created:

- a manual value supplied by the runner,
- a recent race result, run through the Daniels/Gilbert equations,
- the runner's recent activity history (see ``activity_analysis``).

Reference: Daniels' Running Formula, 3rd Edition (2013).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from math import exp
from typing import Iterable, Optional, Union

from coach.services.activity_analysis import (
    ActivityAnalysis,
    ActivitySample,
    analyze_recent_activities,
)
from coach.validators import PlanValidationError

logger = logging.getLogger(__name__)

VDOT_MIN = 30
VDOT_MAX = 85

RACE_MIN_DISTANCE_M = 800
RACE_MAX_DISTANCE_M = 42195
RACE_MIN_TIME_SEC = 120

EQUIVALENT_DISTANCES_M = (5000, 10000, 21097, 42195)


def _vo2_from_velocity(v: float) -> float:
    """Daniels' oxygen cost equation: mL/kg/min from velocity in m/min."""
    return -4.6 + 0.182258 * v + 0.000104 * v * v


def _percent_max(t_min: float) -> float:
    """Fraction of VO2max sustainable for t_min minutes (Daniels' drop-off curve)."""
    return 0.8 + 0.1894393 * exp(-0.012778 * t_min) + 0.2989558 * exp(-0.1932605 * t_min)


def calculate_from_race(distance_m: float, time_seconds: float) -> float:
    """VDOT from a race distance (m) and finish time (s), to one decimal."""
    if distance_m <= 0 or time_seconds <= 0:
        raise ValueError("distance and time must be positive")
    velocity = distance_m / time_seconds * 60
    t_min = time_seconds / 60
    return round(_vo2_from_velocity(velocity) / _percent_max(t_min), 1)


def validate_race_input(distance_m: float, time_seconds: float) -> bool:
    return (
        RACE_MIN_DISTANCE_M <= distance_m <= RACE_MAX_DISTANCE_M
        and time_seconds >= RACE_MIN_TIME_SEC
    )


def predict_time(vdot: float, distance_m: float) -> int:
    """Finish time (s) at which a race over distance_m would score this VDOT.

    Scans in 10 s steps from 2:00 up to a 10 min/100 m ceiling.
    """
    best_time = 600
    min_diff = float("inf")
    max_time = distance_m / 100 * 60
    t = RACE_MIN_TIME_SEC
    while t <= max_time:
        diff = abs(calculate_from_race(distance_m, t) - vdot)
        if diff < min_diff:
            min_diff = diff
            best_time = t
        if diff < 0.1:
            break
        t += 10
    return best_time


def equivalent_times(vdot: float) -> dict[int, int]:
    """Predicted 5K/10K/half/marathon times for a VDOT, keyed by metres."""
    return {d: predict_time(vdot, d) for d in EQUIVALENT_DISTANCES_M}


# --- Source selection ---


@dataclass(frozen=True)
class ManualVdot:
    value: float
    kind: str = field(default="manual", init=False)


@dataclass(frozen=True)
class RaceResultVdot:
    distance_m: int
    time_seconds: int
    kind: str = field(default="race_result", init=False)


@dataclass(frozen=True)
class ActivityHistoryVdot:
    activities: tuple[ActivitySample, ...] = ()
    kind: str = field(default="activity_history", init=False)


VdotSource = Union[ManualVdot, RaceResultVdot, ActivityHistoryVdot]


@dataclass(frozen=True)
class VdotEstimate:
    vdot: float
    source: str
    analysis: Optional[ActivityAnalysis] = None


def select_vdot_source(
    manual_vdot: Optional[float] = None,
    recent_race_distance: Optional[int] = None,
    recent_race_time: Optional[int] = None,
    activities: Iterable[ActivitySample] = (),
) -> VdotSource:
    """Resolve the caller's inputs to one source: manual > race result > history."""
    if manual_vdot is not None:
        return ManualVdot(manual_vdot)
    if recent_race_distance is not None and recent_race_time is not None:
        return RaceResultVdot(recent_race_distance, recent_race_time)
    return ActivityHistoryVdot(tuple(activities))


def estimate(source: VdotSource) -> VdotEstimate:
    """Turn a VDOT source into a fitness score."""
    if isinstance(source, ManualVdot):
        if not VDOT_MIN <= source.value <= VDOT_MAX:
            raise PlanValidationError(f"manual VDOT must be between {VDOT_MIN} and {VDOT_MAX}")
        return VdotEstimate(vdot=float(source.value), source=source.kind)

    if isinstance(source, RaceResultVdot):
        if not validate_race_input(source.distance_m, source.time_seconds):
            raise PlanValidationError(
                f"race result must be {RACE_MIN_DISTANCE_M}-{RACE_MAX_DISTANCE_M} m "
                f"and at least {RACE_MIN_TIME_SEC} s"
            )
        raw = calculate_from_race(source.distance_m, source.time_seconds)
        vdot = min(VDOT_MAX, max(VDOT_MIN, raw))
        if vdot != raw:
            logger.info("Race VDOT %.1f outside supported range, using %d", raw, vdot)
        return VdotEstimate(vdot=float(vdot), source=source.kind)

    if isinstance(source, ActivityHistoryVdot):
        analysis = analyze_recent_activities(source.activities)
        return VdotEstimate(vdot=analysis.vdot, source=source.kind, analysis=analysis)

    raise TypeError(f"Unsupported VDOT source: {type(source).__name__}")
