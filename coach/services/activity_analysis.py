"""Fitness estimation from recent running history.

Filters noisy activity samples down to plausible runs, then matches their
distance-weighted average pace against the easy-pace band of candidate VDOT
scores. Used when the runner supplies neither a VDOT nor a race result.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from coach.services.paces import calculate_training_paces

logger = logging.getLogger(__name__)

MIN_VALID_RUNS = 3
MIN_DISTANCE_M = 2000
MIN_MOVING_TIME_SEC = 600
FASTEST_PLAUSIBLE_PACE = 180  # 3:00/km, faster is almost certainly bad GPS
SLOWEST_PLAUSIBLE_PACE = 480  # 8:00/km, slower is walking

VDOT_SEARCH_MIN = 30.0
VDOT_SEARCH_MAX = 85.0
VDOT_SEARCH_STEP = 0.5

# (target distance m, tolerance m)
RACE_DISTANCE_WINDOWS = [(5000, 200), (10000, 200), (21097, 500), (42195, 500)]


@dataclass(frozen=True)
class ActivitySample:
    """One synced activity as supplied by the activity-history provider."""

    sport_type: str
    distance_m: float
    moving_time_sec: int
    average_speed: Optional[float]
    is_manual: bool
    start_date_local: datetime

    def __post_init__(self):
        # Naive wall-clock time at the start location; an attached offset is dropped, not converted.
        if self.start_date_local.tzinfo is not None:
            object.__setattr__(self, "start_date_local", self.start_date_local.replace(tzinfo=None))

    @property
    def pace_sec_per_km(self) -> float:
        return self.moving_time_sec / (self.distance_m / 1000)


@dataclass(frozen=True)
class ActivityAnalysis:
    vdot: float
    average_pace: float
    weekly_volume: float
    activity_count: int
    longest_run: float


INSUFFICIENT_DATA = ActivityAnalysis(
    vdot=40.0,
    average_pace=360.0,
    weekly_volume=20000.0,
    activity_count=0,
    longest_run=5000.0,
)


def is_valid_run(activity: ActivitySample) -> bool:
    if activity.sport_type != "Run":
        return False
    if activity.is_manual:
        return False
    if activity.distance_m < MIN_DISTANCE_M:
        return False
    if activity.moving_time_sec < MIN_MOVING_TIME_SEC:
        return False
    if not activity.average_speed or activity.average_speed <= 0:
        return False
    pace = activity.pace_sec_per_km
    return FASTEST_PLAUSIBLE_PACE <= pace <= SLOWEST_PLAUSIBLE_PACE


def filter_valid_activities(activities: Iterable[ActivitySample]) -> list[ActivitySample]:
    return [a for a in activities if is_valid_run(a)]


def weighted_average_pace(runs: list[ActivitySample]) -> float:
    total_distance = sum(a.distance_m for a in runs)
    weighted = sum(a.pace_sec_per_km * a.distance_m for a in runs)
    return weighted / total_distance


def estimate_vdot_from_easy_pace(easy_pace_sec_per_km: float) -> float:
    """Find the VDOT whose easy-band midpoint is closest to the observed pace.

    Linear scan over 30-85 in 0.5 steps; ties keep the lower VDOT.
    """
    best_vdot = 40.0
    min_diff = math.inf
    steps = int(round((VDOT_SEARCH_MAX - VDOT_SEARCH_MIN) / VDOT_SEARCH_STEP))
    for i in range(steps + 1):
        vdot = VDOT_SEARCH_MIN + i * VDOT_SEARCH_STEP
        midpoint = calculate_training_paces(vdot).easy_midpoint
        diff = abs(midpoint - easy_pace_sec_per_km)
        if diff < min_diff:
            min_diff = diff
            best_vdot = vdot
    return best_vdot


def weeks_covered(activities: list[ActivitySample]) -> int:
    """Whole weeks spanned by the activities, at least 1."""
    if not activities:
        return 1
    dates = [a.start_date_local for a in activities]
    span_weeks = (max(dates) - min(dates)).total_seconds() / (7 * 24 * 3600)
    return max(1, math.ceil(span_weeks))


def analyze_recent_activities(activities: Iterable[ActivitySample]) -> ActivityAnalysis:
    """Estimate VDOT and training volume from 4-8 weeks of activities.

    Falls back to a conservative default when fewer than three usable runs
    remain after filtering.
    """
    valid_runs = filter_valid_activities(activities)
    if len(valid_runs) < MIN_VALID_RUNS:
        logger.info("Only %d valid runs in history, using default fitness estimate", len(valid_runs))
        return INSUFFICIENT_DATA

    total_distance = sum(a.distance_m for a in valid_runs)
    average_pace = weighted_average_pace(valid_runs)
    vdot = estimate_vdot_from_easy_pace(average_pace)

    analysis = ActivityAnalysis(
        vdot=vdot,
        average_pace=average_pace,
        weekly_volume=total_distance / weeks_covered(valid_runs),
        activity_count=len(valid_runs),
        longest_run=max(a.distance_m for a in valid_runs),
    )
    logger.debug(
        "Activity analysis: vdot=%.1f pace=%.0f weekly=%.0fm runs=%d",
        analysis.vdot, analysis.average_pace, analysis.weekly_volume, analysis.activity_count,
    )
    return analysis


def find_recent_races(activities: Iterable[ActivitySample]) -> list[ActivitySample]:
    """Pick out runs that look like races.

    A race is a run at a standard distance noticeably faster (under 85%)
    than the runner's plain average pace. Needs at least five valid runs.
    """
    valid_runs = filter_valid_activities(activities)
    if len(valid_runs) < 5:
        return []

    avg_pace = sum(a.pace_sec_per_km for a in valid_runs) / len(valid_runs)

    def at_race_distance(distance_m: float) -> bool:
        return any(abs(distance_m - target) < tol for target, tol in RACE_DISTANCE_WINDOWS)

    return [
        a for a in valid_runs
        if a.pace_sec_per_km < avg_pace * 0.85 and at_race_distance(a.distance_m)
    ]
