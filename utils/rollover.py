# utils/rollover.py
# Weekly reset of the ledger. Handlers call ensure_current() before touching
# the ledger and a cron job calls it at the week boundary; both end up in the
# same idempotent check.
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from utils.ledger_store import LedgerStore
from utils.week import CRON_DAY_NAMES, DEFAULT_TZ, now_local, to_iso, week_boundary

log = logging.getLogger(__name__)

ROLLOVER_JOB_ID = "quota_weekly_rollover"


class RolloverController:
    def __init__(
        self,
        store: LedgerStore,
        tz=DEFAULT_TZ,
        start_day: int = 0,
        hour: int = 0,
        minute: int = 0,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.tz = tz
        self.start_day = start_day
        self.hour = hour
        self.minute = minute
        self._clock = clock or (lambda: now_local(self.tz))

    def boundary(self, now: Optional[datetime] = None) -> datetime:
        return week_boundary(
            now or self._clock(), self.tz, self.start_day, self.hour, self.minute
        )

    def is_current(self, now: Optional[datetime] = None) -> bool:
        return self.store.week_start == self.boundary(now)

    def ensure_current(self, now: Optional[datetime] = None) -> bool:
        """Reset counters and sales if the stored week is not this week. True if reset."""
        fresh = self.boundary(now)
        with self.store.lock:
            stored = self.store.week_start
            if stored == fresh:
                return False
            self.store.reset_week(fresh)
        log.info("rollover: new week %s (was %s), counters and sales cleared", to_iso(fresh), to_iso(stored))
        return True

    def run_scheduled(self) -> None:
        """Entry point for the cron job; runs on the scheduler thread."""
        try:
            self.ensure_current()
        except Exception:
            log.exception("rollover: scheduled reset failed, will retry on next command")

    def schedule_weekly(self, scheduler) -> None:
        """Add the weekly cron job to an APScheduler scheduler."""
        scheduler.add_job(
            self.run_scheduled,
            trigger="cron",
            day_of_week=CRON_DAY_NAMES[self.start_day],
            hour=self.hour,
            minute=self.minute,
            timezone=self.tz,
            id=ROLLOVER_JOB_ID,
            replace_existing=True,
            misfire_grace_time=3600,
            coalesce=True,
        )
        log.info(
            "rollover: weekly job scheduled (%s %02d:%02d %s)",
            CRON_DAY_NAMES[self.start_day], self.hour, self.minute, self.tz,
        )
