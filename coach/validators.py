"""Pydantic validation models for plan-creation requests."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from coach.config import get_settings

TRAINING_INTENSITIES = {3, 4, 5, 6}


class PlanValidationError(ValueError):
    """Plan request rejected; no plan is created."""


class RaceResultInput(BaseModel):
    distance_m: int = Field(ge=800, le=42195)
    time_seconds: int = Field(ge=120)


class PlanCreateInput(BaseModel):
    name: str = Field(default="Training Plan", min_length=1, max_length=120)
    race_distance: int = Field(ge=1)
    race_date: date
    manual_vdot: Optional[float] = Field(default=None, ge=30, le=85)
    recent_race_distance: Optional[int] = Field(default=None, ge=800, le=42195)
    recent_race_time: Optional[int] = Field(default=None, ge=120)
    training_intensity: int = Field(
        default_factory=lambda: get_settings().default_sessions_per_week, validate_default=True
    )

    @field_validator("training_intensity")
    @classmethod
    def valid_intensity(cls, v):
        if v not in TRAINING_INTENSITIES:
            raise ValueError(f"training_intensity must be one of {sorted(TRAINING_INTENSITIES)}")
        return v

    @model_validator(mode="after")
    def race_result_pair(self):
        if (self.recent_race_distance is None) != (self.recent_race_time is None):
            raise ValueError("recent_race_distance and recent_race_time must be supplied together")
        return self

    @property
    def race_result(self) -> Optional[RaceResultInput]:
        if self.recent_race_distance is None or self.recent_race_time is None:
            return None
        return RaceResultInput(distance_m=self.recent_race_distance, time_seconds=self.recent_race_time)


def _format_errors(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def parse_plan_request(payload: dict[str, Any]) -> PlanCreateInput:
    """Validate a raw plan-creation payload, raising PlanValidationError on bad input."""
    try:
        return PlanCreateInput.model_validate(payload)
    except ValidationError as exc:
        raise PlanValidationError(_format_errors(exc)) from exc
