"""Daily habit reset at local midnight.

The check compares today's local ``YYYY-MM-DD`` with the stored cursor, so
it fires once per calendar day no matter how often (or how late) it runs.
The cursor only moves after the habits were actually reset; a failed reset
is retried on the next check.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from habitumap.core.clock import date_string, local_now, next_local_midnight
from habitumap.core.habits import HabitSource
from habitumap.core.models import ResetCountdown
from habitumap.errors import PersistenceFailure
from habitumap.storage.repository import LocalRepository

log = logging.getLogger(__name__)


class DailyResetScheduler:
    def __init__(
        self,
        repository: LocalRepository,
        habits: HabitSource,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.repository = repository
        self.habits = habits
        self.clock = clock or local_now

    def today_string(self, now: Optional[datetime] = None) -> str:
        return date_string(now or self.clock())

    def last_reset_date(self) -> Optional[str]:
        return self.repository.get_last_reset_date()

    def check_and_reset(self) -> bool:
        """Reset habits if the local day changed since the last reset.

        Returns True only when a reset happened on this call.
        """
        today = self.today_string()
        try:
            last = self.repository.get_last_reset_date()
        except PersistenceFailure as exc:
            log.error("Cannot read reset cursor, skipping check: %s", exc)
            return False

        if last == today:
            return False

        log.info("New day detected (last reset %s, today %s), resetting habits", last, today)
        return self._reset(today)

    def force_reset(self) -> bool:
        """Reset now regardless of the cursor (manual reset)."""
        return self._reset(self.today_string())

    def _reset(self, today: str) -> bool:
        try:
            habits = self.habits.list_habits()
        except PersistenceFailure as exc:
            log.error("Cannot load habits for reset: %s", exc)
            return False
        try:
            ok = self.habits.set_all_incomplete(habits)
        except PersistenceFailure as exc:
            log.error("Habit reset failed: %s", exc)
            ok = False
        if not ok:
            return False

        try:
            self.repository.set_last_reset_date(today)
        except PersistenceFailure as exc:
            # Habits are reset; the next check will reset again.
            log.error("Habits reset but cursor not saved: %s", exc)
        else:
            log.info("Habits reset for %s (%d habits)", today, len(habits))
        return True

    def time_until_next_reset(self, now: Optional[datetime] = None) -> ResetCountdown:
        now = now or self.clock()
        diff = int(next_local_midnight(now).timestamp() - now.timestamp())
        diff = max(0, diff)
        return ResetCountdown(
            hours=diff // 3600,
            minutes=(diff % 3600) // 60,
            seconds=diff % 60,
        )

    def next_reset_string(self, now: Optional[datetime] = None) -> str:
        return self.time_until_next_reset(now).label

    def run(self, interval_s: float, stop_event: Optional[threading.Event] = None) -> None:
        """Check immediately, then every *interval_s* until *stop_event* is set."""
        stop_event = stop_event or threading.Event()
        log.info("Daily reset check running every %ss", interval_s)
        while not stop_event.is_set():
            try:
                self.check_and_reset()
            except Exception as exc:
                log.exception("Daily reset check error: %s", exc)
            stop_event.wait(interval_s)
