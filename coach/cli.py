"""Command-line plan generation.

    coach-plan request.json --activities strava_export.json --output plan.json

The request file holds the same fields as a plan-creation payload. The
optional activities file is a list of raw Strava activities, used only when
the request names neither a manual VDOT nor a recent race.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from typing import Any, Optional, Sequence

from coach.config import get_settings
from coach.logging_config import run_context, setup_logging
from coach.services.activity_analysis import ActivitySample
from coach.services.planning import GeneratedPlan, create_plan_from_payload
from coach.services.wearables.strava import parse_strava_activity
from coach.validators import PlanValidationError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_REJECTED = 2


def _load_json(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def load_activities(path: Optional[str]) -> list[ActivitySample]:
    if not path:
        return []
    samples = []
    for raw in _load_json(path):
        try:
            samples.append(parse_strava_activity(raw))
        except (ValueError, TypeError):
            logger.warning("Skipping unreadable activity: %s", raw.get("id", "unknown"))
    return samples


def plan_document(plan: GeneratedPlan) -> dict[str, Any]:
    return {
        "plan": plan.spec.to_dict(),
        "workouts": [w.to_dict() for w in plan.workouts],
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a VDOT-based training plan for a race")
    parser.add_argument("request", help="Plan request JSON file ('-' for stdin)")
    parser.add_argument("--activities", help="Raw Strava activities JSON file for history-based fitness")
    parser.add_argument("--today", type=date.fromisoformat, help="Plan as of this date (YYYY-MM-DD)")
    parser.add_argument("--output", help="Write the plan here instead of stdout")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(get_settings().log_level)

    with run_context():
        payload = _load_json(args.request)
        activities = load_activities(args.activities)
        try:
            plan = create_plan_from_payload(payload, activities=activities, today=args.today)
        except PlanValidationError as exc:
            logger.error("Plan request rejected: %s", exc)
            print(f"error: {exc}", file=sys.stderr)
            return EXIT_REJECTED

    text = json.dumps(plan_document(plan), indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text + "\n")
    else:
        print(text)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
