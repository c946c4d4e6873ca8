"""Abstract activity-history provider.

Every provider (Strava today) implements this interface so plan creation can
read a runner's recent runs without knowing where they came from.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Iterable

from coach.services.activity_analysis import ActivitySample


def recent_window(samples: Iterable[ActivitySample], days: int, now: datetime) -> list[ActivitySample]:
    """Samples that started within the last ``days`` days, newest first.

    Sample dates are naive wall-clock times, so an aware ``now`` loses its offset too.
    """
    cutoff = now.replace(tzinfo=None) - timedelta(days=days)
    recent = [s for s in samples if s.start_date_local >= cutoff]
    return sorted(recent, key=lambda s: s.start_date_local, reverse=True)


def most_recent(samples: Iterable[ActivitySample], limit: int) -> list[ActivitySample]:
    return sorted(samples, key=lambda s: s.start_date_local, reverse=True)[:limit]


class ActivityProvider(ABC):
    """Interface that each activity-history service must implement."""

    SERVICE_NAME: str = ""

    @abstractmethod
    def fetch_activities(
        self, access_token: str, after: datetime | None = None, page: int = 1
    ) -> list[ActivitySample]:
        """Fetch a page of activities from the service.

        Args:
            access_token: Valid OAuth access token.
            after: Only return activities after this timestamp.
            page: Page number for pagination.
        """
