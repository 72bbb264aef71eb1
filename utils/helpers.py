# utils/helpers.py
# Argument parsing and text rendering shared by the ledger handlers.
# Kept free of pyrogram imports so it can be used (and tested) on its own.
from __future__ import annotations

import html
import re
from typing import Iterable, List, Optional

from utils.aggregation import (
    ItemProgress,
    QuotaStanding,
    SalesOverview,
    SalesStanding,
    progress_bar,
)

_AMOUNT_RE = re.compile(r"^\d+(?:[.,]\d{1,2})?$")
MEDALS = ("🥇", "🥈", "🥉")
ALL_WORDS = {"all", "tout", "tous"}


def parse_quantity(text: Optional[str], allow_zero: bool = False) -> Optional[int]:
    """Positive integer (or zero with allow_zero), or None."""
    if not text or not text.strip().isdecimal():
        return None
    n = int(text.strip())
    if n > 0 or (allow_zero and n == 0):
        return n
    return None


def split_without_span(text: str, offset: int, length: int) -> List[str]:
    """
    Words of a command's text with one entity cut out, minus the leading
    /command token. offset/length are Telegram's UTF-16 code unit positions.
    """
    raw = text.encode("utf-16-le")
    kept = raw[: offset * 2].decode("utf-16-le") + " " + raw[(offset + length) * 2:].decode("utf-16-le")
    words = kept.split()
    if words and words[0].startswith("/"):
        words = words[1:]
    return words


def parse_amount(text: Optional[str]) -> Optional[float]:
    """Positive amount with up to two decimals ("12", "12.5", "12,50"), or None."""
    if not text:
        return None
    s = text.strip().lstrip("$€").rstrip("$€").strip()
    if not _AMOUNT_RE.match(s):
        return None
    value = float(s.replace(",", "."))
    return value if value > 0 else None


def looks_like_user_ref(token: str) -> bool:
    """@username or a numeric user id."""
    token = token.strip()
    return (token.startswith("@") and len(token) > 1) or token.isdecimal()


def wants_all(args: Iterable[str]) -> bool:
    return any(a.strip().casefold() in ALL_WORDS for a in args)


def fmt_money(amount: float, currency: str = "$") -> str:
    return f"{currency}{amount:,.2f}"


def rank_label(i: int) -> str:
    return MEDALS[i - 1] if 1 <= i <= len(MEDALS) else f"{i}."


def esc(text) -> str:
    return html.escape(str(text), quote=False)


# ---------- reply bodies ----------

def render_breakdown(
    name: str,
    rows: List[ItemProgress],
    extras: List[tuple],
    include_completed: bool,
) -> str:
    lines = [f"📋 <b>Quotas de {esc(name)}</b>"]
    if not rows and not extras:
        lines.append("Aucun quota trouvé." if include_completed else "✅ Tous les objectifs sont atteints !")
        return "\n".join(lines)
    for r in rows:
        done = " ✅" if r.percent >= 100 else ""
        lines.append(
            f"• <b>{esc(r.item_id)}</b> {r.current}/{r.goal}\n"
            f"  <code>{progress_bar(r.current, r.goal)}</code> {r.percent}%{done}"
        )
    if extras:
        lines.append("")
        lines.append("<i>Sans objectif :</i>")
        for item, n in extras:
            lines.append(f"• {esc(item)} : {n}")
    return "\n".join(lines)


def render_quota_leaderboard(board: List[QuotaStanding], names: dict) -> str:
    if not board:
        return "Aucun quota enregistré cette semaine."
    lines = ["🏆 <b>Classement des quotas</b>"]
    for i, s in enumerate(board, start=1):
        flag = " ✅" if s.finished_all else ""
        lines.append(
            f"{rank_label(i)} {names.get(s.user_id, esc(s.user_id))} — "
            f"{s.total}/{s.goal_total} ({s.percent}%){flag}"
        )
    return "\n".join(lines)


def render_sales_leaderboard(
    board: List[SalesStanding],
    names: dict,
    overview: SalesOverview,
    currency: str = "$",
) -> str:
    if not board:
        return "Aucune vente enregistrée cette semaine."
    lines = ["💰 <b>Classement des ventes</b>"]
    for i, s in enumerate(board, start=1):
        lines.append(f"{rank_label(i)} {names.get(s.user_id, esc(s.user_id))} — {fmt_money(s.total, currency)}")
    lines.append("")
    lines.append(render_sales_overview(overview, currency))
    return "\n".join(lines)


def render_sales_overview(overview: SalesOverview, currency: str = "$") -> str:
    if overview.goal <= 0:
        return f"Total équipe : <b>{fmt_money(overview.total, currency)}</b> (pas d'objectif)"
    return (
        f"Total équipe : <b>{fmt_money(overview.total, currency)}</b> / {fmt_money(overview.goal, currency)}\n"
        f"<code>{progress_bar(overview.total, overview.goal)}</code> {overview.percent}%"
    )


def render_goals(goals: dict, overview: SalesOverview, currency: str = "$") -> str:
    lines = ["🎯 <b>Objectifs de la semaine</b>"]
    active = [(item, qty) for item, qty in goals.items() if qty > 0]
    if not active:
        lines.append("Aucun objectif défini.")
    for item, qty in active:
        lines.append(f"• <b>{esc(item)}</b> : {qty}")
    lines.append("")
    lines.append(render_sales_overview(overview, currency))
    return "\n".join(lines)
