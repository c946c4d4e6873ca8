from datetime import date, datetime, timedelta, timezone

import pytest

from coach.services.activity_analysis import ActivitySample
from coach.services.planning import (
    SESSION_DAY_OFFSETS,
    PlanRequest,
    create_plan,
    create_plan_from_payload,
    day_offsets,
    plan_duration,
    week_summary,
    workout_for_day,
)
from coach.services.paces import calculate_training_paces
from coach.services.vdot import ActivityHistoryVdot, ManualVdot, RaceResultVdot
from coach.services.workouts import RandomSource
from coach.validators import PlanValidationError

TODAY = date(2026, 1, 1)


class FixedRandom(RandomSource):
    def __init__(self, value: float):
        self.value = value

    def next_float(self) -> float:
        return self.value


def _request(**overrides) -> PlanRequest:
    defaults = {
        "race_distance_m": 10000,
        "race_date": TODAY + timedelta(weeks=10),
        "vdot_source": ManualVdot(45),
        "sessions_per_week": 4,
    }
    defaults.update(overrides)
    return PlanRequest(**defaults)


# --- Plan length and schedule tables ---

@pytest.mark.parametrize(
    "distance,weeks",
    [(5000, 6), (9999, 6), (10000, 8), (21097, 12), (20000, 12), (42195, 16), (40000, 16)],
)
def test_plan_duration(distance, weeks):
    assert plan_duration(distance) == weeks


def test_day_offsets_tables():
    assert day_offsets(3) == (0, 3, 6)
    assert day_offsets(4) == (0, 2, 4, 6)
    assert day_offsets(5) == (0, 2, 3, 5, 6)
    assert day_offsets(6) == (0, 1, 2, 4, 5, 6)


def test_day_offsets_unmapped_falls_back_to_four():
    assert day_offsets(7) == SESSION_DAY_OFFSETS[4]
    assert day_offsets(2) == SESSION_DAY_OFFSETS[4]


# --- create_plan ---

def test_create_plan_10k_end_to_end():
    race_date = TODAY + timedelta(weeks=10)
    plan = create_plan(_request(race_date=race_date), today=TODAY, rng=FixedRandom(0.4))

    assert plan.spec.total_weeks == 8
    assert plan.spec.start_date == race_date - timedelta(days=56)
    assert plan.spec.vdot == 45
    assert plan.spec.vdot_source == "manual"
    assert plan.spec.paces == calculate_training_paces(45)
    assert len(plan.workouts) == 32

    for w in plan.workouts:
        assert w.workout.total_distance_m > 0
        assert w.workout.estimated_duration_sec > 0
        offset = (w.scheduled_date - plan.spec.start_date).days - (w.week_number - 1) * 7
        assert offset in (0, 2, 4, 6)

    for week in range(1, 9):
        workouts = plan.week(week)
        assert [(w.scheduled_date - plan.spec.start_date).days for w in workouts] == [
            (week - 1) * 7 + o for o in (0, 2, 4, 6)
        ]
        assert sum(1 for w in workouts if w.workout.workout_type == "Long Run") == 1


def test_create_plan_start_date_invariant():
    for distance in (5000, 10000, 21097, 42195):
        plan = create_plan(_request(race_distance_m=distance), today=TODAY)
        assert plan.spec.start_date == plan.spec.race_date - timedelta(days=7 * plan.spec.total_weeks)
        assert len(plan.workouts) == plan.spec.total_weeks * 4


def test_create_plan_three_sessions_schedule():
    plan = create_plan(_request(sessions_per_week=3), today=TODAY)
    first_week = plan.week(1)
    assert [(w.scheduled_date - plan.spec.start_date).days for w in first_week] == [0, 3, 6]


def test_create_plan_rejects_past_or_today_race():
    with pytest.raises(PlanValidationError, match="future"):
        create_plan(_request(race_date=TODAY), today=TODAY)
    with pytest.raises(PlanValidationError):
        create_plan(_request(race_date=TODAY - timedelta(days=1)), today=TODAY)


def test_create_plan_from_race_result():
    plan = create_plan(_request(vdot_source=RaceResultVdot(5000, 1200)), today=TODAY)
    assert plan.spec.vdot_source == "race_result"
    assert plan.spec.vdot == pytest.approx(49.8, abs=0.1)


def test_create_plan_from_thin_history_uses_default():
    plan = create_plan(_request(vdot_source=ActivityHistoryVdot(())), today=TODAY)
    assert plan.spec.vdot == 40
    assert plan.vdot_estimate.analysis.activity_count == 0


def test_create_plan_rejects_bad_manual_vdot():
    with pytest.raises(PlanValidationError):
        create_plan(_request(vdot_source=ManualVdot(90)), today=TODAY)


def test_fixed_random_source_gives_reproducible_plans():
    a = create_plan(_request(), today=TODAY, rng=FixedRandom(0.6))
    b = create_plan(_request(), today=TODAY, rng=FixedRandom(0.6))
    assert [w.to_dict() for w in a.workouts] == [w.to_dict() for w in b.workouts]


def test_scheduled_workout_to_dict():
    plan = create_plan(_request(), today=TODAY, rng=FixedRandom(0.0))
    d = plan.workouts[0].to_dict()
    assert d["week_number"] == 1
    assert d["scheduled_date"] == plan.spec.start_date.isoformat()
    assert d["workout_type"] == "Long Run"
    assert plan.spec.to_dict()["total_weeks"] == 8


# --- Payload entry point ---

def test_create_plan_from_payload_manual(monkeypatch):
    monkeypatch.delenv("PLAN_RANDOM_SEED", raising=False)
    payload = {
        "name": "Spring 10K",
        "race_distance": 10000,
        "race_date": "2026-03-12",
        "manual_vdot": 45,
        "recent_race_distance": 5000,
        "recent_race_time": 1200,
        "training_intensity": 5,
    }
    plan = create_plan_from_payload(payload, today=TODAY)
    assert plan.spec.name == "Spring 10K"
    assert plan.spec.vdot_source == "manual"
    assert plan.spec.sessions_per_week == 5
    assert len(plan.workouts) == 8 * 5


def test_create_plan_from_payload_history_window(monkeypatch):
    monkeypatch.setenv("HISTORY_LOOKBACK_DAYS", "28")
    recent = [
        ActivitySample("Run", 10000, 3600, 2.78, False, datetime(2025, 12, 31) - timedelta(days=d))
        for d in (1, 5, 9)
    ]
    stale = [
        ActivitySample("Run", 10000, 2400, 4.17, False, datetime(2025, 10, 1) + timedelta(days=d))
        for d in (1, 5, 9)
    ]
    payload = {"race_distance": 5000, "race_date": "2026-03-01"}

    plan = create_plan_from_payload(payload, activities=[*recent, *stale], today=TODAY)
    assert plan.spec.vdot_source == "activity_history"
    assert plan.vdot_estimate.analysis.activity_count == 3
    assert plan.vdot_estimate.analysis.average_pace == pytest.approx(360)


def test_create_plan_from_payload_offset_aware_history(monkeypatch):
    monkeypatch.delenv("HISTORY_LOOKBACK_DAYS", raising=False)
    runs = [
        ActivitySample("Run", 10000, 3600, 2.78, False, datetime(2025, 12, 30, 7, tzinfo=timezone.utc) - timedelta(days=d))
        for d in (0, 4, 8)
    ]
    payload = {"race_distance": 5000, "race_date": "2026-03-01"}

    plan = create_plan_from_payload(payload, activities=runs, today=TODAY)
    assert plan.spec.vdot_source == "activity_history"
    assert plan.vdot_estimate.analysis.activity_count == 3


def test_create_plan_from_payload_seed_from_settings(monkeypatch):
    monkeypatch.setenv("PLAN_RANDOM_SEED", "11")
    payload = {"race_distance": 21097, "race_date": "2026-06-01", "manual_vdot": 50}
    a = create_plan_from_payload(payload, today=TODAY)
    b = create_plan_from_payload(payload, today=TODAY)
    assert [w.to_dict() for w in a.workouts] == [w.to_dict() for w in b.workouts]


def test_create_plan_from_payload_invalid():
    with pytest.raises(PlanValidationError, match="training_intensity"):
        create_plan_from_payload(
            {"race_distance": 10000, "race_date": "2026-03-01", "training_intensity": 7}, today=TODAY
        )


# --- Reporting ---

def test_week_summary():
    plan = create_plan(_request(), today=TODAY, rng=FixedRandom(0.0))
    week2 = plan.week(2)
    summary = week_summary(plan, 2, completed_dates=[week2[0].scheduled_date])
    assert summary["date_range"]["start"] == (plan.spec.start_date + timedelta(days=7)).isoformat()
    assert summary["date_range"]["end"] == (plan.spec.start_date + timedelta(days=13)).isoformat()
    assert summary["phase"] == "base"
    assert summary["recovery_week"] is False
    assert summary["summary"]["total_workouts"] == 4
    assert summary["summary"]["completed"] == 1
    assert summary["summary"]["total_distance"] == sum(w.workout.total_distance_m for w in week2)


def test_workout_for_day():
    plan = create_plan(_request(), today=TODAY, rng=FixedRandom(0.0))
    start = plan.spec.start_date

    today_workout, upcoming = workout_for_day(plan, start)
    assert today_workout is plan.workouts[0]
    assert upcoming is None

    today_workout, upcoming = workout_for_day(plan, start + timedelta(days=1))
    assert today_workout is None
    assert upcoming.scheduled_date == start + timedelta(days=2)

    assert workout_for_day(plan, plan.spec.race_date) == (None, None)
