# utils/week.py
# Week boundary helpers. A tracking week starts on a fixed weekday at a fixed
# local wall-clock time in one reference time zone.
from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Optional

import pytz

DEFAULT_TZ = pytz.timezone("Europe/Paris")

# 0=Sunday ... 6=Saturday, as used in QUOTA_WEEK_START_DAY
CRON_DAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return pytz.utc.localize(dt)
    return dt


def now_local(tz=DEFAULT_TZ) -> datetime:
    return datetime.now(tz=pytz.utc).astimezone(tz)


def week_boundary(
    now: datetime,
    tz=DEFAULT_TZ,
    start_day: int = 0,
    hour: int = 0,
    minute: int = 0,
) -> datetime:
    """
    Start of the week containing `now`: the latest `start_day` at hour:minute
    local time that is not after `now`. Naive `now` is read as UTC.
    """
    local = _as_utc(now).astimezone(tz)
    # datetime.weekday(): Monday=0 ... Sunday=6
    days_back = (local.weekday() + 1 - start_day) % 7
    day = local.date() - timedelta(days=days_back)
    start = tz.localize(datetime.combine(day, time(hour, minute)))
    if start > local:
        start = tz.localize(datetime.combine(day - timedelta(days=7), time(hour, minute)))
    return start


def next_boundary(
    now: datetime,
    tz=DEFAULT_TZ,
    start_day: int = 0,
    hour: int = 0,
    minute: int = 0,
) -> datetime:
    current = week_boundary(now, tz, start_day, hour, minute)
    day = current.date() + timedelta(days=7)
    return tz.localize(datetime.combine(day, time(hour, minute)))


def to_iso(dt: datetime) -> str:
    return dt.isoformat()


def parse_iso(text: str) -> Optional[datetime]:
    """Parse a stored timestamp; returns None when it is not usable."""
    if not isinstance(text, str) or not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    return _as_utc(dt)
