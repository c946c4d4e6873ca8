"""Training paces derived from VDOT, after Jack Daniels' Running Formula.

Each pace is a fixed fraction of velocity at VO2max (vVO2max), expressed in
seconds per kilometre. Lower numbers are faster.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

# Fraction of vVO2max for each training zone
EASY_FAST_FRACTION = 0.74
EASY_SLOW_FRACTION = 0.59
MARATHON_FRACTION = 0.80
THRESHOLD_FRACTION = 0.85
INTERVAL_FRACTION = 0.98
REPETITION_FRACTION = 1.10

PACE_ZONES = ("easy", "marathon", "threshold", "interval", "repetition")


@dataclass(frozen=True)
class TrainingPaces:
    """Daniels training paces in seconds per kilometre."""
    easy_min: int    # fast end of the easy band
    easy_max: int    # slow end of the easy band
    marathon: int
    threshold: int
    interval: int
    repetition: int

    @property
    def easy_midpoint(self) -> float:
        return (self.easy_min + self.easy_max) / 2

    def for_zone(self, zone: str) -> float:
        """Pace for a zone name; easy resolves to the band midpoint."""
        if zone == "easy":
            return self.easy_midpoint
        if zone not in PACE_ZONES:
            raise ValueError(f"Unknown pace zone: {zone}")
        return getattr(self, zone)

    def to_dict(self) -> dict:
        return {
            "easy": {"min": self.easy_min, "max": self.easy_max},
            "marathon": self.marathon,
            "threshold": self.threshold,
            "interval": self.interval,
            "repetition": self.repetition,
        }


def velocity_at_vo2max(vdot: float) -> float:
    """vVO2max in metres per minute."""
    return 29.54 + 5.000663 * vdot - 0.007546 * vdot * vdot


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, not to the even neighbour."""
    return math.floor(value + 0.5)


def _pace_at(v_vo2max: float, fraction: float) -> int:
    return round_half_up(60000 / (v_vo2max * fraction))


def calculate_training_paces(vdot: float) -> TrainingPaces:
    """Compute the full pace set for a VDOT score.

    VDOT is not clamped: values outside 30-85 still produce numbers, but the
    formula is only calibrated inside that range.
    """
    v = velocity_at_vo2max(vdot)
    return TrainingPaces(
        easy_min=_pace_at(v, EASY_FAST_FRACTION),
        easy_max=_pace_at(v, EASY_SLOW_FRACTION),
        marathon=_pace_at(v, MARATHON_FRACTION),
        threshold=_pace_at(v, THRESHOLD_FRACTION),
        interval=_pace_at(v, INTERVAL_FRACTION),
        repetition=_pace_at(v, REPETITION_FRACTION),
    )


def segment_duration(distance_m: float, pace_sec_per_km: float) -> int:
    """Seconds needed to cover distance_m at the given pace."""
    return round_half_up((distance_m / 1000) * pace_sec_per_km)


def format_pace(sec_per_km: float) -> str:
    """Format seconds-per-km as 'M:SS'."""
    minutes = int(sec_per_km // 60)
    seconds = round(sec_per_km % 60)
    if seconds == 60:
        minutes, seconds = minutes + 1, 0
    return f"{minutes}:{seconds:02d}"


def pace_display(sec_per_km: float) -> str:
    """Format seconds-per-km as 'M:SS/km' for display."""
    if sec_per_km <= 0:
        return "n/a"
    return f"{format_pace(sec_per_km)}/km"
