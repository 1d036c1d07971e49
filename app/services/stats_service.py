"""Read-only rollups over the event store (counts per window, leaderboard)."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone, tzinfo
from typing import Callable, List, Optional

from app.constants.events import EventType, StatsWindow
from app.core.windows import window_bounds
from app.schemas.stats import LeaderboardEntry, StatsSummary
from app.services.event_store import EventStore

LEADERBOARD_SIZE = 10


def _aware_utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StatsAggregator:
    """
    Derived views over the ledger. Nothing is cached; every call re-scans
    the store through the (type, created_at) and (type, set_date) indexes.

    Set events are windowed by their business set_date, all other types by
    created_at.
    """

    def __init__(
        self,
        store: EventStore,
        tz: tzinfo,
        clock: Callable[[], datetime] = _aware_utcnow,
    ) -> None:
        self._store = store
        self._tz = tz
        self._clock = clock

    def count_by_type_and_window(
        self,
        event_type: EventType,
        window: StatsWindow,
        now: Optional[datetime] = None,
    ) -> int:
        bounds = window_bounds(window, now or self._clock(), self._tz)
        if event_type == EventType.SET:
            return self._store.count_in_range(
                event_type, bounds.local_start, bounds.local_end, by_business_date=True
            )
        return self._store.count_in_range(event_type, bounds.utc_start, bounds.utc_end)

    def top_actors_today(
        self, limit: int = LEADERBOARD_SIZE, now: Optional[datetime] = None
    ) -> List[LeaderboardEntry]:
        """
        Actors with the most sets today, by business date.

        Counter keeps first-seen order and sorted() is stable, so ties go to
        the actor whose first set today was inserted earliest.
        """
        bounds = window_bounds(StatsWindow.TODAY, now or self._clock(), self._tz)
        actor_ids = self._store.actors_in_range(
            EventType.SET, bounds.local_start, bounds.local_end, by_business_date=True
        )
        counts = Counter(actor_ids)
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [
            LeaderboardEntry(actor_id=actor_id, count=count)
            for actor_id, count in ranked[:limit]
        ]

    def summary(self, now: Optional[datetime] = None) -> StatsSummary:
        """The /stats dashboard, computed against a single `now`."""
        now = now or self._clock()
        return StatsSummary(
            generated_at=now,
            daily_sets=self.count_by_type_and_window(
                EventType.SET, StatsWindow.TODAY, now
            ),
            weekly_closes=self.count_by_type_and_window(
                EventType.CLOSED, StatsWindow.TRAILING_7_DAYS, now
            ),
            monthly_closes=self.count_by_type_and_window(
                EventType.CLOSED, StatsWindow.MONTH_TO_DATE, now
            ),
            monthly_installs=self.count_by_type_and_window(
                EventType.INSTALL_SCHEDULED, StatsWindow.MONTH_TO_DATE, now
            ),
            leaderboard=self.top_actors_today(LEADERBOARD_SIZE, now),
        )
