from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from conftest import LAST_WEEK, PARIS, THIS_WEEK, paris
from utils.ledger_store import LedgerWriteError
from utils.rollover import ROLLOVER_JOB_ID, RolloverController

TUESDAY = paris(2026, 10, 20, 9, 15)


def _stale_store(make_store):
    store = make_store(week_start=LAST_WEEK)
    store.add_item_count("u1", "menu", 12)
    store.add_item_count("u2", "cheeseburger", 4)
    store.add_sales("u1", 120)
    store.set_goal("frites", 8)
    store.set_sales_goal(500)
    return store


def test_stale_week_is_reset(make_store) -> None:
    store = _stale_store(make_store)
    goals_before = store.goals()
    rollover = RolloverController(store, tz=PARIS, clock=lambda: TUESDAY)

    assert not rollover.is_current()
    assert rollover.ensure_current() is True

    doc = store.snapshot()
    assert doc.week_start == THIS_WEEK
    assert doc.item_counters == {}
    assert doc.sales_totals == {}
    assert doc.goals == goals_before
    assert doc.sales_goal == 500.0
    assert rollover.is_current()


def test_ensure_current_is_idempotent(make_store) -> None:
    store = _stale_store(make_store)
    rollover = RolloverController(store, tz=PARIS, clock=lambda: TUESDAY)

    rollover.ensure_current()
    after_first = store.snapshot()
    assert rollover.ensure_current() is False
    assert store.snapshot() == after_first


def test_current_week_is_left_alone(make_store) -> None:
    store = make_store(week_start=THIS_WEEK)
    store.add_item_count("u1", "menu", 3)
    rollover = RolloverController(store, tz=PARIS, clock=lambda: TUESDAY)

    assert rollover.ensure_current() is False
    assert store.get_item_count("u1", "menu") == 3


def test_explicit_now_overrides_clock(make_store) -> None:
    store = make_store(week_start=THIS_WEEK)
    store.add_sales("u1", 10)
    rollover = RolloverController(store, tz=PARIS, clock=lambda: TUESDAY)

    assert rollover.ensure_current(now=paris(2026, 10, 25, 0, 0)) is True
    assert store.week_start == paris(2026, 10, 25)
    assert store.sales_totals() == {}


def test_scheduled_run_logs_and_survives_write_errors(make_store, caplog) -> None:
    store = make_store(week_start=LAST_WEEK)

    def broken_reset(week_start):
        raise LedgerWriteError("disk full")

    store.reset_week = broken_reset
    rollover = RolloverController(store, tz=PARIS, clock=lambda: TUESDAY)

    with caplog.at_level(logging.ERROR, logger="utils.rollover"):
        rollover.run_scheduled()

    assert "scheduled reset failed" in caplog.text
    assert store.week_start == LAST_WEEK


def test_weekly_job_targets_sunday_midnight(make_store) -> None:
    rollover = RolloverController(make_store(), tz=PARIS)
    scheduler = BackgroundScheduler(timezone=PARIS)

    rollover.schedule_weekly(scheduler)

    job = scheduler.get_job(ROLLOVER_JOB_ID)
    assert job is not None
    assert "day_of_week='sun'" in str(job.trigger)
    assert "hour='0'" in str(job.trigger)


def test_monday_morning_schedule(make_store) -> None:
    calls = []

    class RecordingScheduler:
        def add_job(self, func, **kwargs):
            calls.append((func, kwargs))

    rollover = RolloverController(make_store(), tz=PARIS, start_day=1, hour=6, minute=30)
    rollover.schedule_weekly(RecordingScheduler())

    func, kwargs = calls[0]
    assert func == rollover.run_scheduled
    assert kwargs["trigger"] == "cron"
    assert (kwargs["day_of_week"], kwargs["hour"], kwargs["minute"]) == ("mon", 6, 30)
    assert kwargs["timezone"] is PARIS
