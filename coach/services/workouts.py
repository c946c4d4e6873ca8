"""Weekly workout generation with Daniels-style periodization.

Each week gets one long run, one quality session (tempo or intervals) when
there are at least three sessions, and easy runs in the remaining slots.
The quality session is chosen by training phase; every fourth week is a
recovery week with reduced distances.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from coach.services.paces import TrainingPaces, round_half_up, segment_duration

MARATHON_M = 42195
LONG_RUN_FLOOR_M = 8000
WARMUP_M = 2000
COOLDOWN_M = 1000
EASY_JITTER_M = 2000
RECOVERY_WEEK_INTERVAL = 4
RECOVERY_WEEK_FACTOR = 0.75


class TrainingPhase(str, Enum):
    BASE = "base"
    BUILD = "build"
    PEAK = "peak"
    TAPER = "taper"


class RandomSource(ABC):
    """Source of uniform floats in [0, 1) for workout variety."""

    @abstractmethod
    def next_float(self) -> float:
        ...


class SeededRandomSource(RandomSource):
    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def next_float(self) -> float:
        return self._random.random()


@dataclass(frozen=True)
class RecoverySpec:
    distance_m: int
    pace_zone: str = "easy"


@dataclass(frozen=True)
class WorkoutSegment:
    kind: str  # "continuous" | "interval"
    distance_m: int
    pace_zone: str
    repetitions: Optional[int] = None
    recovery: Optional[RecoverySpec] = None
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.kind, "distance": self.distance_m, "pace": self.pace_zone}
        if self.repetitions is not None:
            out["repetitions"] = self.repetitions
        if self.recovery is not None:
            out["recovery"] = {"distance": self.recovery.distance_m, "pace": self.recovery.pace_zone}
        if self.description:
            out["description"] = self.description
        return out


@dataclass(frozen=True)
class WorkoutStructure:
    main: list[WorkoutSegment]
    warmup: list[WorkoutSegment] = field(default_factory=list)
    cooldown: list[WorkoutSegment] = field(default_factory=list)

    def segments(self) -> list[WorkoutSegment]:
        return [*self.warmup, *self.main, *self.cooldown]

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"main": [s.to_dict() for s in self.main]}
        if self.warmup:
            out["warmup"] = [s.to_dict() for s in self.warmup]
        if self.cooldown:
            out["cooldown"] = [s.to_dict() for s in self.cooldown]
        return out


@dataclass(frozen=True)
class GeneratedWorkout:
    workout_type: str
    total_distance_m: int
    estimated_duration_sec: int
    description: str
    target_pace_sec_per_km: int
    pace_zone: str
    structure: WorkoutStructure

    def to_dict(self) -> dict[str, Any]:
        return {
            "workout_type": self.workout_type,
            "distance": self.total_distance_m,
            "duration_estimate": self.estimated_duration_sec,
            "description": self.description,
            "target_pace": self.target_pace_sec_per_km,
            "pace_zone": self.pace_zone,
            "structure": self.structure.to_dict(),
        }


def determine_phase(week_number: int, total_weeks: int) -> TrainingPhase:
    progress = week_number / total_weeks
    if progress < 0.4:
        return TrainingPhase.BASE
    if progress < 0.75:
        return TrainingPhase.BUILD
    if progress < 0.9:
        return TrainingPhase.PEAK
    return TrainingPhase.TAPER


def is_recovery_week(week_number: int) -> bool:
    return week_number % RECOVERY_WEEK_INTERVAL == 0


def _km(distance_m: float) -> str:
    return f"{distance_m / 1000:.1f}"


def _easy_workout(workout_type: str, distance: int, paces: TrainingPaces, segment_note: str, description: str) -> GeneratedWorkout:
    easy = paces.easy_midpoint
    structure = WorkoutStructure(
        main=[WorkoutSegment("continuous", distance, "easy", description=segment_note)],
    )
    return GeneratedWorkout(
        workout_type=workout_type,
        total_distance_m=distance,
        estimated_duration_sec=segment_duration(distance, easy),
        description=description,
        target_pace_sec_per_km=round_half_up(easy),
        pace_zone="easy",
        structure=structure,
    )


def long_run_distance(week_number: int, total_weeks: int, race_distance_m: int) -> int:
    phase = determine_phase(week_number, total_weeks)
    if phase is TrainingPhase.TAPER:
        distance = round_half_up(race_distance_m * 0.4)
    else:
        target_percent = 0.5 if race_distance_m >= MARATHON_M else 0.75
        progress = week_number / total_weeks
        distance = round_half_up(race_distance_m * target_percent * min(1, progress * 1.5))

    if is_recovery_week(week_number):
        distance = round_half_up(distance * RECOVERY_WEEK_FACTOR)

    return max(LONG_RUN_FLOOR_M, distance)


def generate_long_run(week_number: int, total_weeks: int, race_distance_m: int, paces: TrainingPaces) -> GeneratedWorkout:
    distance = long_run_distance(week_number, total_weeks, race_distance_m)
    return _easy_workout(
        "Long Run",
        distance,
        paces,
        "Long steady run at easy pace",
        f"Long run - {_km(distance)}km at easy pace",
    )


def generate_tempo_run(tempo_distance_m: int, paces: TrainingPaces, easy_tempo: bool = False) -> GeneratedWorkout:
    """Continuous tempo between a 2 km warmup and 1 km cooldown.

    An easy tempo (recovery weeks) runs at marathon pace instead of threshold.
    """
    zone = "marathon" if easy_tempo else "threshold"
    pace = paces.for_zone(zone)
    easy = paces.easy_midpoint

    structure = WorkoutStructure(
        warmup=[WorkoutSegment("continuous", WARMUP_M, "easy")],
        main=[WorkoutSegment("continuous", tempo_distance_m, zone, description=f"{_km(tempo_distance_m)}km at {zone} pace")],
        cooldown=[WorkoutSegment("continuous", COOLDOWN_M, "easy")],
    )
    duration = (
        segment_duration(WARMUP_M, easy)
        + segment_duration(tempo_distance_m, pace)
        + segment_duration(COOLDOWN_M, easy)
    )
    return GeneratedWorkout(
        workout_type="Tempo Run",
        total_distance_m=WARMUP_M + tempo_distance_m + COOLDOWN_M,
        estimated_duration_sec=duration,
        description=f"2km warmup + {_km(tempo_distance_m)}km @ {zone} + 1km cooldown",
        target_pace_sec_per_km=int(pace),
        pace_zone=zone,
        structure=structure,
    )


def generate_interval_workout(paces: TrainingPaces, interval_distance_m: int, repetitions: int) -> GeneratedWorkout:
    """Repetitions at interval pace with half-distance easy recoveries between them."""
    recovery_m = round_half_up(interval_distance_m * 0.5)
    total_interval_m = interval_distance_m * repetitions
    total_recovery_m = recovery_m * (repetitions - 1)
    easy = paces.easy_midpoint

    structure = WorkoutStructure(
        warmup=[WorkoutSegment("continuous", WARMUP_M, "easy")],
        main=[
            WorkoutSegment(
                "interval",
                interval_distance_m,
                "interval",
                repetitions=repetitions,
                recovery=RecoverySpec(recovery_m, "easy"),
                description=f"{repetitions}x{interval_distance_m}m @ interval pace with {recovery_m}m recovery",
            )
        ],
        cooldown=[WorkoutSegment("continuous", COOLDOWN_M, "easy")],
    )
    duration = (
        segment_duration(WARMUP_M, easy)
        + segment_duration(total_interval_m, paces.interval)
        + segment_duration(total_recovery_m, easy)
        + segment_duration(COOLDOWN_M, easy)
    )
    return GeneratedWorkout(
        workout_type="Intervals",
        total_distance_m=WARMUP_M + total_interval_m + total_recovery_m + COOLDOWN_M,
        estimated_duration_sec=duration,
        description=f"2km warmup + {repetitions}x{interval_distance_m}m @ interval pace + 1km cooldown",
        target_pace_sec_per_km=paces.interval,
        pace_zone="interval",
        structure=structure,
    )


def generate_quality_workout(phase: TrainingPhase, paces: TrainingPaces, recovery_week: bool, rng: RandomSource) -> GeneratedWorkout:
    if recovery_week:
        return generate_tempo_run(6000, paces, easy_tempo=True)
    if phase is TrainingPhase.BASE:
        return generate_tempo_run(8000, paces)
    if phase is TrainingPhase.BUILD:
        if rng.next_float() > 0.5:
            return generate_tempo_run(10000, paces)
        return generate_interval_workout(paces, 1000, 5)
    if phase is TrainingPhase.PEAK:
        return generate_interval_workout(paces, 1000, 6)
    return generate_interval_workout(paces, 400, 4)


def generate_easy_run(paces: TrainingPaces, recovery_week: bool, rng: RandomSource) -> GeneratedWorkout:
    base_distance = 6000 if recovery_week else 8000
    distance = base_distance + round_half_up(rng.next_float() * EASY_JITTER_M)
    return _easy_workout(
        "Easy Run",
        distance,
        paces,
        "Easy conversational pace",
        f"Easy run - {_km(distance)}km at comfortable pace",
    )


def generate_week(
    week_number: int,
    total_weeks: int,
    race_distance_m: int,
    paces: TrainingPaces,
    sessions_per_week: int = 4,
    rng: Optional[RandomSource] = None,
) -> list[GeneratedWorkout]:
    """Build one week of workouts: long run, quality session, then easy runs."""
    rng = rng or SeededRandomSource()
    phase = determine_phase(week_number, total_weeks)
    recovery_week = is_recovery_week(week_number)

    workouts = [generate_long_run(week_number, total_weeks, race_distance_m, paces)]
    if sessions_per_week >= 3:
        workouts.append(generate_quality_workout(phase, paces, recovery_week, rng))
    for _ in range(sessions_per_week - len(workouts)):
        workouts.append(generate_easy_run(paces, recovery_week, rng))
    return workouts
