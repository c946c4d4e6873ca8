"""Strava API v3 activity provider."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from coach.config import Settings
from coach.services.activity_analysis import ActivitySample
from coach.services.wearables.base import ActivityProvider

logger = logging.getLogger(__name__)

STRAVA_API_BASE = "https://www.strava.com/api/v3"

PAGE_SIZE = 50


def _parse_local_date(value: Any) -> datetime:
    # start_date_local carries a misleading "Z"; the wall-clock time is what we want.
    text = str(value or "").replace("Z", "")
    return datetime.fromisoformat(text)


def parse_strava_activity(raw: dict[str, Any]) -> ActivitySample:
    """Convert a raw Strava activity JSON to ActivitySample."""
    speed = raw.get("average_speed")
    return ActivitySample(
        sport_type=raw.get("sport_type") or raw.get("type", ""),
        distance_m=float(raw.get("distance", 0)),
        moving_time_sec=int(raw.get("moving_time", 0)),
        average_speed=float(speed) if speed is not None else None,
        is_manual=bool(raw.get("manual", False)),
        start_date_local=_parse_local_date(raw.get("start_date_local") or raw.get("start_date")),
    )


class StravaProvider(ActivityProvider):
    """Strava REST API v3 provider."""

    SERVICE_NAME = "strava"

    def __init__(self, timeout: float = 30.0, client: Optional[httpx.Client] = None):
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "StravaProvider":
        return cls(timeout=settings.strava_timeout_sec)

    def _get(self, path: str, access_token: str, params: dict[str, Any]) -> httpx.Response:
        headers = {"Authorization": f"Bearer {access_token}"}
        url = f"{STRAVA_API_BASE}{path}"
        if self._client is not None:
            return self._client.get(url, params=params, headers=headers, timeout=self.timeout)
        return httpx.get(url, params=params, headers=headers, timeout=self.timeout)

    def fetch_activities(
        self, access_token: str, after: datetime | None = None, page: int = 1
    ) -> list[ActivitySample]:
        params: dict[str, Any] = {"per_page": PAGE_SIZE, "page": page}
        if after:
            params["after"] = int(after.timestamp())

        resp = self._get("/athlete/activities", access_token, params)
        resp.raise_for_status()

        results = []
        for raw in resp.json():
            try:
                results.append(parse_strava_activity(raw))
            except (ValueError, TypeError):
                logger.warning("Failed to parse Strava activity: %s", raw.get("id", "unknown"))
        return results
