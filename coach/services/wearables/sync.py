"""Activity history sync.

Pages through a provider's activities and hands them to a callback. The
initial sync after a runner connects their account runs in the background so
login and plan creation never wait on it.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable

from coach.config import get_settings
from coach.logging_config import run_context
from coach.services.activity_analysis import ActivitySample
from coach.services.wearables.base import ActivityProvider
from coach.services.wearables.strava import PAGE_SIZE

logger = logging.getLogger(__name__)

# Maximum number of pages to fetch in a single sync run
MAX_PAGES = 10
# Default lookback window for first sync
DEFAULT_LOOKBACK_DAYS = 180


def fetch_all_activities(
    provider: ActivityProvider,
    access_token: str,
    after: datetime | None = None,
) -> list[ActivitySample]:
    """Fetch all available activities from the service, paginating as needed."""
    all_activities: list[ActivitySample] = []

    for page in range(1, MAX_PAGES + 1):
        batch = provider.fetch_activities(access_token, after=after, page=page)
        if not batch:
            break
        all_activities.extend(batch)
        if len(batch) < PAGE_SIZE:
            break

    return all_activities


def default_lookback(last_sync: datetime | None, days: int = DEFAULT_LOOKBACK_DAYS) -> datetime:
    """Determine the 'after' timestamp for fetching activities."""
    if last_sync:
        return last_sync
    return datetime.now(tz=timezone.utc) - timedelta(days=days)


def run_initial_sync(
    provider: ActivityProvider,
    access_token: str,
    on_synced: Callable[[list[ActivitySample]], None],
    after: datetime | None = None,
) -> bool:
    """Fetch history and pass it to on_synced. Failures are logged, never raised."""
    with run_context():
        try:
            if after is None:
                after = default_lookback(None, get_settings().initial_sync_lookback_days)
            activities = fetch_all_activities(provider, access_token, after=after)
            on_synced(activities)
        except Exception:
            logger.exception("Initial %s sync failed", provider.SERVICE_NAME or "activity")
            return False
        logger.info(
            "Initial %s sync imported %d activities", provider.SERVICE_NAME, len(activities),
            extra={"ctx_provider": provider.SERVICE_NAME, "ctx_activity_count": len(activities)},
        )
        return True


def trigger_initial_sync(
    provider: ActivityProvider,
    access_token: str,
    on_synced: Callable[[list[ActivitySample]], None],
    after: datetime | None = None,
) -> threading.Thread:
    """Start the initial sync on a daemon thread and return immediately."""
    thread = threading.Thread(
        target=run_initial_sync,
        args=(provider, access_token, on_synced, after),
        name=f"initial-sync-{provider.SERVICE_NAME or 'activity'}",
        daemon=True,
    )
    thread.start()
    return thread
