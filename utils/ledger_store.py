# utils/ledger_store.py
"""
Persistent weekly ledger: per-user item counters, per-item goals, per-user
sales totals, the shared sales goal and the week-start marker.

One JSON document, loaded once and written through on every mutation.
Older files that are a bare {user: {item: count}} mapping are imported as the
item counters and re-saved in the current shape.

Item keys are canonicalised on import, old files included: "Cheeseburger"
and "cheeseburger" end up as one counter holding their sum.
"""
from __future__ import annotations

import copy
import json
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from threading import RLock
from typing import Callable, Dict, Optional, Tuple

from utils.week import parse_iso, to_iso

log = logging.getLogger(__name__)

SCHEMA_VERSION = 2
_CURRENT_KEYS = ("schemaVersion", "weekStart", "itemCounters", "goals", "salesTotals", "salesGoal")


class LedgerError(Exception):
    """Base class for ledger errors."""


class CounterNotFound(LedgerError, KeyError):
    def __init__(self, user_id: str, item_id: str):
        super().__init__(f"no counter for item {item_id!r} of user {user_id}")
        self.user_id = user_id
        self.item_id = item_id


class SalesNotFound(LedgerError, KeyError):
    def __init__(self, user_id: str):
        super().__init__(f"no sales recorded for user {user_id}")
        self.user_id = user_id


class LedgerWriteError(LedgerError):
    """The ledger file could not be written."""


def canon_item(item_id: str) -> str:
    """Canonical item key: trimmed, single spaced, case-folded."""
    return " ".join(str(item_id).split()).casefold()


def _money(amount: float) -> float:
    return round(float(amount), 2)


@dataclass
class LedgerDocument:
    week_start: datetime
    item_counters: Dict[str, Dict[str, int]] = field(default_factory=dict)
    goals: Dict[str, int] = field(default_factory=dict)
    sales_totals: Dict[str, float] = field(default_factory=dict)
    sales_goal: float = 0.0

    def to_dict(self) -> dict:
        return {
            "schemaVersion": SCHEMA_VERSION,
            "weekStart": to_iso(self.week_start),
            "itemCounters": {uid: dict(items) for uid, items in self.item_counters.items()},
            "goals": dict(self.goals),
            "salesTotals": dict(self.sales_totals),
            "salesGoal": self.sales_goal,
        }


# ---------- import of on-disk shapes ----------

def _is_legacy_shape(raw: dict) -> bool:
    if any(k in raw for k in _CURRENT_KEYS):
        return False
    return all(isinstance(v, dict) for v in raw.values())


def _int_map(raw, where: str) -> Dict[str, int]:
    out: Dict[str, int] = {}
    if not isinstance(raw, dict):
        log.warning("ledger: %s is not a mapping, ignoring it", where)
        return out
    for k, v in raw.items():
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            log.warning("ledger: dropping non-numeric %s[%r]=%r", where, k, v)
            continue
        out[str(k)] = max(0, int(v))
    return out


def _counters(raw, where: str = "itemCounters") -> Dict[str, Dict[str, int]]:
    out: Dict[str, Dict[str, int]] = {}
    if not isinstance(raw, dict):
        log.warning("ledger: %s is not a mapping, ignoring it", where)
        return out
    for uid, items in raw.items():
        per_user: Dict[str, int] = {}
        for item, count in _int_map(items, f"{where}[{uid!r}]").items():
            key = canon_item(item)
            per_user[key] = per_user.get(key, 0) + count
        out[str(uid)] = per_user
    return out


def _sales(raw) -> Dict[str, float]:
    out: Dict[str, float] = {}
    if not isinstance(raw, dict):
        log.warning("ledger: salesTotals is not a mapping, ignoring it")
        return out
    for uid, v in raw.items():
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            log.warning("ledger: dropping non-numeric salesTotals[%r]=%r", uid, v)
            continue
        out[str(uid)] = max(0.0, _money(v))
    return out


def import_document(raw, defaults: LedgerDocument) -> Tuple[LedgerDocument, bool]:
    """
    Convert a decoded JSON value into a LedgerDocument.
    Returns (document, needs_save); needs_save is True when the input was not
    already in the current shape.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"ledger root must be an object, got {type(raw).__name__}")

    if _is_legacy_shape(raw):
        log.info("ledger: importing legacy counters for %d user(s)", len(raw))
        doc = copy.deepcopy(defaults)
        doc.item_counters = _counters(raw, "legacy")
        return doc, True

    needs_save = any(k not in raw for k in _CURRENT_KEYS)

    week_start = parse_iso(raw.get("weekStart")) if "weekStart" in raw else None
    if week_start is None:
        if "weekStart" in raw:
            log.warning("ledger: unreadable weekStart %r, using default", raw.get("weekStart"))
        week_start = defaults.week_start
        needs_save = True

    goals = dict(defaults.goals)
    if "goals" in raw:
        goals = {canon_item(k): v for k, v in _int_map(raw["goals"], "goals").items()}

    sales_goal = defaults.sales_goal
    if "salesGoal" in raw:
        v = raw["salesGoal"]
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            sales_goal = max(0.0, _money(v))
        else:
            log.warning("ledger: dropping non-numeric salesGoal=%r", v)
            needs_save = True

    doc = LedgerDocument(
        week_start=week_start,
        item_counters=_counters(raw.get("itemCounters", {})),
        goals=goals,
        sales_totals=_sales(raw.get("salesTotals", {})),
        sales_goal=sales_goal,
    )
    return doc, needs_save


class LedgerStore:
    """
    Thread-safe JSON-backed ledger. Every mutation saves before returning; if
    the save fails the in-memory document goes back to its last saved state.
    """

    def __init__(
        self,
        path: str,
        week_start_fn: Callable[[], datetime],
        default_goals: Optional[Dict[str, int]] = None,
    ):
        self._path = path
        self._week_start_fn = week_start_fn
        self._default_goals = {canon_item(k): max(0, int(v)) for k, v in (default_goals or {}).items()}
        self._lock = RLock()
        self._doc: Optional[LedgerDocument] = None

    @property
    def path(self) -> str:
        return self._path

    @property
    def lock(self) -> RLock:
        return self._lock

    def default_document(self) -> LedgerDocument:
        return LedgerDocument(
            week_start=self._week_start_fn(),
            goals=dict(self._default_goals),
        )

    # ---------- load/save ----------
    def load(self) -> LedgerDocument:
        with self._lock:
            if not os.path.isfile(self._path):
                log.info("ledger: %s not found, starting a fresh ledger", self._path)
                self._doc = self.default_document()
                self._save_unlocked()
                return copy.deepcopy(self._doc)

            try:
                with open(self._path, "r", encoding="utf-8") as f:
                    raw = json.load(f)
                doc, needs_save = import_document(raw, self.default_document())
            except (OSError, ValueError) as e:
                log.warning("ledger: could not read %s (%s); starting from defaults", self._path, e)
                self._keep_corrupt_copy()
                doc, needs_save = self.default_document(), True

            self._doc = doc
            if needs_save:
                self._save_unlocked()
            log.info(
                "ledger: loaded %s (week of %s, %d user(s), %d goal(s))",
                self._path, to_iso(doc.week_start), len(doc.item_counters), len(doc.goals),
            )
            return copy.deepcopy(self._doc)

    def save(self) -> None:
        with self._lock:
            self._save_unlocked()

    def _keep_corrupt_copy(self) -> None:
        try:
            os.replace(self._path, self._path + ".corrupt")
        except OSError as e:
            log.warning("ledger: could not keep a copy of the unreadable file: %s", e)

    def _save_unlocked(self) -> None:
        data = self._document().to_dict()
        tmp = self._path + ".tmp"
        try:
            parent = os.path.dirname(os.path.abspath(self._path))
            os.makedirs(parent, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self._path)
        except OSError as e:
            raise LedgerWriteError(f"could not write {self._path}: {e}") from e

    def _document(self) -> LedgerDocument:
        if self._doc is None:
            self.load()
        return self._doc

    @contextmanager
    def _mutation(self):
        """Yield the live document; save afterwards, roll back if the save fails."""
        with self._lock:
            doc = self._document()
            before = copy.deepcopy(doc)
            try:
                yield doc
                self._save_unlocked()
            except BaseException:
                self._doc = before
                raise

    # ---------- read views ----------
    def snapshot(self) -> LedgerDocument:
        with self._lock:
            return copy.deepcopy(self._document())

    @property
    def week_start(self) -> datetime:
        with self._lock:
            return self._document().week_start

    def get_item_count(self, user_id, item_id: str) -> int:
        with self._lock:
            return self._document().item_counters.get(str(user_id), {}).get(canon_item(item_id), 0)

    def user_counters(self, user_id) -> Dict[str, int]:
        with self._lock:
            return dict(self._document().item_counters.get(str(user_id), {}))

    def goals(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._document().goals)

    def sales_total(self, user_id) -> float:
        with self._lock:
            return self._document().sales_totals.get(str(user_id), 0.0)

    def sales_totals(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._document().sales_totals)

    @property
    def sales_goal(self) -> float:
        with self._lock:
            return self._document().sales_goal

    # ---------- item counters ----------
    def add_item_count(self, user_id, item_id: str, delta: int) -> int:
        uid, key = str(user_id), canon_item(item_id)
        with self._mutation() as doc:
            items = doc.item_counters.setdefault(uid, {})
            items[key] = max(0, items.get(key, 0) + int(delta))
            return items[key]

    def remove_item_count(self, user_id, item_id: str, qty: int) -> int:
        uid, key = str(user_id), canon_item(item_id)
        with self._lock:
            if key not in self._document().item_counters.get(uid, {}):
                raise CounterNotFound(uid, key)
            return self.add_item_count(uid, key, -int(qty))

    # ---------- goals ----------
    def set_goal(self, item_id: str, value: int) -> None:
        value = int(value)
        if value < 0:
            raise ValueError("goal must be >= 0")
        key = canon_item(item_id)
        with self._mutation() as doc:
            doc.goals[key] = value

    # ---------- sales ----------
    def add_sales(self, user_id, amount: float) -> float:
        uid = str(user_id)
        with self._mutation() as doc:
            total = _money(doc.sales_totals.get(uid, 0.0) + float(amount))
            doc.sales_totals[uid] = max(0.0, total)
            return doc.sales_totals[uid]

    def remove_sales(self, user_id, amount: float) -> float:
        uid = str(user_id)
        with self._lock:
            if uid not in self._document().sales_totals:
                raise SalesNotFound(uid)
            return self.add_sales(uid, -float(amount))

    def set_sales_goal(self, amount: float) -> None:
        amount = _money(amount)
        if amount < 0:
            raise ValueError("sales goal must be >= 0")
        with self._mutation() as doc:
            doc.sales_goal = amount

    # ---------- weekly reset ----------
    def reset_week(self, week_start: datetime) -> None:
        """Clear counters and sales and move the marker; goals are kept."""
        with self._mutation() as doc:
            doc.item_counters.clear()
            doc.sales_totals.clear()
            doc.week_start = week_start
