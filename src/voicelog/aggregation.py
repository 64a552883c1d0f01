"""Dense daily mood series over a clamped window of calendar days.

Days are UTC calendar days, matching the naive-UTC ``created_at`` the
datastore assigns. Days without any assessed entry report ``avg_mood = 0``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date, datetime, time, timedelta, timezone
from typing import TYPE_CHECKING

from voicelog.core.models import DailyMoodPoint

if TYPE_CHECKING:
    from voicelog.datastore import Datastore

MIN_DAYS = 1
MAX_DAYS = 90
DEFAULT_DAYS = 30


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def clamp_days(days: int) -> int:
    """Clamp a requested window into [MIN_DAYS, MAX_DAYS]; never rejects."""
    return max(MIN_DAYS, min(MAX_DAYS, days))


def calendar_window(days: int, today: date) -> list[date]:
    """``days`` consecutive calendar days ending at ``today``, oldest first."""
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def fill_daily_mood(
    window: list[date],
    samples: Iterable[tuple[datetime, int | None]],
) -> list[DailyMoodPoint]:
    """Left-join mood samples onto the window and average per day.

    Samples outside the window and samples without a mood are ignored.
    The output follows ``window`` order regardless of sample order.
    """
    buckets: dict[date, list[int]] = {day: [] for day in window}
    for created_at, mood in samples:
        bucket = buckets.get(created_at.date())
        if bucket is not None and mood is not None:
            bucket.append(mood)

    points = []
    for day in window:
        moods = buckets[day]
        avg = sum(moods) / len(moods) if moods else 0.0
        points.append(DailyMoodPoint(day=day, avg_mood=avg))
    return points


class MoodAggregator:
    """Builds gap-filled daily mood series from the datastore."""

    def __init__(self, datastore: Datastore, today: Callable[[], date] = utc_today) -> None:
        self.datastore = datastore
        self._today = today

    async def daily_mood(self, days: int, tenant_filter: str | None = None) -> list[DailyMoodPoint]:
        """Average mood per day for the last ``days`` days, oldest first.

        Issues a single read for the whole window.
        """
        window = calendar_window(clamp_days(days), self._today())
        start = datetime.combine(window[0], time.min)
        end = datetime.combine(window[-1] + timedelta(days=1), time.min)
        samples = await self.datastore.mood_samples(start, end, tenant_filter)
        return fill_daily_mood(window, samples)
