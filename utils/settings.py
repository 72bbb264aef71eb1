# utils/settings.py
"""
Bot configuration, read from the environment (and a local .env if present).

Env:
  OWNER_ID or BOT_OWNER_ID        always allowed to run admin commands
  SUPER_ADMINS                    comma separated user ids
  QUOTA_STORE_PATH                (default: "data/quotas.json")
  QUOTA_TZ                        (default: "Europe/Paris")
  QUOTA_WEEK_START_DAY            0=Sunday ... 6=Saturday (default: 0)
  QUOTA_WEEK_START_HOUR / _MINUTE (default: 00:00)
  QUOTA_DEFAULT_GOALS             "item=qty,item=qty" used for a fresh ledger
  QUOTA_LEADERBOARD_LIMIT         (default: 10)
  QUOTA_CURRENCY                  (default: "$")
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Set

import pytz
from dotenv import load_dotenv

log = logging.getLogger(__name__)

DEFAULT_GOALS_RAW = "menu=50,cheeseburger=30,frites=30,boisson=30"


def _parse_id_list(val: Optional[str]) -> Set[int]:
    if not val:
        return set()
    out: Set[int] = set()
    for part in val.replace(" ", "").split(","):
        if not part:
            continue
        try:
            out.add(int(part))
        except ValueError:
            log.warning("settings: bad ID in list: %r", part)
    return out


def _parse_int(val: Optional[str], default: int, *, lo: int = 0, hi: Optional[int] = None) -> int:
    if val is None or not val.strip():
        return default
    try:
        n = int(val.strip())
    except ValueError:
        log.warning("settings: bad integer %r, using %s", val, default)
        return default
    if n < lo or (hi is not None and n > hi):
        log.warning("settings: %s out of range, using %s", n, default)
        return default
    return n


def parse_goals(val: Optional[str]) -> Dict[str, int]:
    """Parse "menu=50,frites=30" into {"menu": 50, "frites": 30}."""
    out: Dict[str, int] = {}
    if not val:
        return out
    for part in val.split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, qty = part.partition("=")
        name = " ".join(name.split()).casefold()
        if not sep or not name:
            log.warning("settings: bad goal entry %r", part)
            continue
        try:
            out[name] = max(0, int(qty.strip()))
        except ValueError:
            log.warning("settings: bad goal quantity in %r", part)
    return out


def _parse_tz(val: Optional[str], default: str):
    name = (val or "").strip() or default
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        log.warning("settings: unknown time zone %r, using %s", name, default)
        return pytz.timezone(default)


@dataclass(frozen=True)
class Settings:
    owner_id: int = 0
    super_admins: Set[int] = field(default_factory=set)
    store_path: str = "data/quotas.json"
    tz: pytz.BaseTzInfo = pytz.timezone("Europe/Paris")
    week_start_day: int = 0
    week_start_hour: int = 0
    week_start_minute: int = 0
    default_goals: Dict[str, int] = field(default_factory=lambda: parse_goals(DEFAULT_GOALS_RAW))
    leaderboard_limit: int = 10
    currency: str = "$"

    def privileged_ids(self) -> Set[int]:
        ids = set(self.super_admins)
        if self.owner_id:
            ids.add(self.owner_id)
        return ids


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from `env` (defaults to os.environ after loading .env)."""
    if env is None:
        load_dotenv()
        env = os.environ

    goals_raw = env.get("QUOTA_DEFAULT_GOALS")
    return Settings(
        owner_id=_parse_int(env.get("OWNER_ID", env.get("BOT_OWNER_ID")), 0),
        super_admins=_parse_id_list(env.get("SUPER_ADMINS")),
        store_path=(env.get("QUOTA_STORE_PATH") or "data/quotas.json").strip(),
        tz=_parse_tz(env.get("QUOTA_TZ"), "Europe/Paris"),
        week_start_day=_parse_int(env.get("QUOTA_WEEK_START_DAY"), 0, hi=6),
        week_start_hour=_parse_int(env.get("QUOTA_WEEK_START_HOUR"), 0, hi=23),
        week_start_minute=_parse_int(env.get("QUOTA_WEEK_START_MINUTE"), 0, hi=59),
        default_goals=parse_goals(goals_raw if goals_raw is not None else DEFAULT_GOALS_RAW),
        leaderboard_limit=_parse_int(env.get("QUOTA_LEADERBOARD_LIMIT"), 10, lo=1),
        currency=(env.get("QUOTA_CURRENCY") or "$").strip() or "$",
    )
