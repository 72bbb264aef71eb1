# utils/aggregation.py
"""
Progress numbers and rankings computed from a ledger snapshot.

Nothing here touches the store; every function takes a LedgerDocument (or
plain numbers) and returns new values. Rankings rely on sorted() being
stable, so ties keep the ledger's insertion order.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

from utils.ledger_store import LedgerDocument

FILLED = "█"
EMPTY = "░"


@dataclass(frozen=True)
class ItemProgress:
    item_id: str
    current: int
    goal: int
    percent: int


@dataclass(frozen=True)
class QuotaStanding:
    user_id: str
    total: int
    goal_total: int
    percent: int
    finished_all: bool


@dataclass(frozen=True)
class SalesStanding:
    user_id: str
    total: float


@dataclass(frozen=True)
class SalesOverview:
    total: float
    goal: float
    percent: int


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def percent_of(current: float, goal: float) -> int:
    if goal <= 0:
        return 0
    return _round_half_up(100 * current / goal)


def progress_bar(current: float, goal: float, width: int = 10) -> str:
    ratio = min(1.0, current / goal) if goal > 0 else 0.0
    filled = max(0, min(width, _round_half_up(ratio * width)))
    return FILLED * filled + EMPTY * (width - filled)


def _positive_goals(doc: LedgerDocument) -> List[Tuple[str, int]]:
    return [(item, goal) for item, goal in doc.goals.items() if goal > 0]


def user_item_breakdown(doc: LedgerDocument, user_id, include_completed: bool = True) -> List[ItemProgress]:
    counters = doc.item_counters.get(str(user_id), {})
    rows = []
    for item, goal in _positive_goals(doc):
        current = counters.get(item, 0)
        rows.append(ItemProgress(item, current, goal, percent_of(current, goal)))
    if not include_completed:
        rows = [r for r in rows if r.percent < 100]
    return sorted(rows, key=lambda r: r.percent)


def user_extra_items(doc: LedgerDocument, user_id) -> List[Tuple[str, int]]:
    """Counters the user has for items that carry no goal."""
    counters = doc.item_counters.get(str(user_id), {})
    return [(item, n) for item, n in counters.items() if doc.goals.get(item, 0) <= 0]


def quota_leaderboard(doc: LedgerDocument) -> List[QuotaStanding]:
    goals = _positive_goals(doc)
    goal_total = sum(g for _, g in goals)
    board = []
    for uid, counters in doc.item_counters.items():
        if not counters:
            continue
        total = sum(counters.get(item, 0) for item, _ in goals)
        finished = bool(goals) and all(counters.get(item, 0) >= g for item, g in goals)
        board.append(QuotaStanding(uid, total, goal_total, percent_of(total, goal_total), finished))
    return sorted(board, key=lambda s: (not s.finished_all, -s.percent))


def sales_leaderboard(doc: LedgerDocument, limit: int = 10) -> List[SalesStanding]:
    ranked = sorted(doc.sales_totals.items(), key=lambda kv: -kv[1])
    return [SalesStanding(uid, total) for uid, total in ranked[:limit]]


def sales_overview(doc: LedgerDocument) -> SalesOverview:
    total = round(sum(doc.sales_totals.values()), 2)
    return SalesOverview(total, doc.sales_goal, percent_of(total, doc.sales_goal))
