from __future__ import annotations

import pytest

from utils.aggregation import ItemProgress, QuotaStanding, SalesOverview, SalesStanding
from utils.helpers import (
    fmt_money,
    looks_like_user_ref,
    parse_amount,
    parse_quantity,
    rank_label,
    split_without_span,
    render_breakdown,
    render_goals,
    render_quota_leaderboard,
    render_sales_leaderboard,
    wants_all,
)


@pytest.mark.parametrize(
    "text, expected",
    [("5", 5), (" 12 ", 12), ("0", None), ("-3", None), ("2.5", None), ("abc", None), ("²", None), ("", None), (None, None)],
)
def test_parse_quantity(text, expected) -> None:
    assert parse_quantity(text) == expected


def test_parse_quantity_allows_zero_only_when_asked() -> None:
    assert parse_quantity("0", allow_zero=True) == 0
    assert parse_quantity("7", allow_zero=True) == 7
    assert parse_quantity("²", allow_zero=True) is None
    assert parse_quantity("-1", allow_zero=True) is None


@pytest.mark.parametrize(
    "text, expected",
    [("12", 12.0), ("12.5", 12.5), ("12,50", 12.5), ("$40", 40.0), ("0", None), ("1.234", None), ("-5", None), ("x", None)],
)
def test_parse_amount(text, expected) -> None:
    assert parse_amount(text) == expected


def test_user_refs_and_all_flag() -> None:
    assert looks_like_user_ref("@alice")
    assert looks_like_user_ref("123456")
    assert not looks_like_user_ref("@")
    assert not looks_like_user_ref("menu")
    assert wants_all(["@bob", "ALL"])
    assert wants_all(["tout"])
    assert not wants_all(["menu"])


def test_money_and_ranks() -> None:
    assert fmt_money(1234.5) == "$1,234.50"
    assert fmt_money(3, "€") == "€3.00"
    assert [rank_label(i) for i in (1, 2, 3, 4)] == ["🥇", "🥈", "🥉", "4."]


def test_render_breakdown_escapes_and_lists_extras() -> None:
    text = render_breakdown(
        "<Bob>",
        [ItemProgress("menu", 7, 10, 70)],
        [("sauce", 2)],
        include_completed=True,
    )
    assert "&lt;Bob&gt;" in text
    assert "7/10" in text and "70%" in text
    assert "sauce : 2" in text


def test_render_breakdown_when_everything_is_done() -> None:
    assert "atteints" in render_breakdown("Bob", [], [], include_completed=False)
    assert "Aucun quota" in render_breakdown("Bob", [], [], include_completed=True)


def test_render_leaderboards() -> None:
    quota = render_quota_leaderboard(
        [QuotaStanding("1", 20, 20, 100, True), QuotaStanding("2", 5, 20, 25, False)],
        {"1": "Alice"},
    )
    assert "🥇 Alice — 20/20 (100%) ✅" in quota
    assert "🥈 2 — 5/20 (25%)" in quota

    sales = render_sales_leaderboard(
        [SalesStanding("1", 80.0)], {"1": "Alice"}, SalesOverview(80.0, 0.0, 0)
    )
    assert "🥇 Alice — $80.00" in sales
    assert "pas d'objectif" in sales

    assert render_quota_leaderboard([], {}).startswith("Aucun")
    assert render_sales_leaderboard([], {}, SalesOverview(0.0, 0.0, 0)).startswith("Aucune")


def test_render_goals_skips_zero_targets() -> None:
    text = render_goals({"menu": 50, "sauce": 0}, SalesOverview(250.0, 1000.0, 25), "€")
    assert "menu</b> : 50" in text
    assert "sauce" not in text
    assert "€250.00</b> / €1,000.00" in text
    assert "25%" in text


def test_split_without_span_drops_the_command_and_the_span() -> None:
    assert split_without_span("/quota_add Bob menu 3", 11, 3) == ["menu", "3"]
    assert split_without_span("/vente_add 20 Bob Marley", 14, 10) == ["20"]
    assert split_without_span("/quota_add@quotabot Bob le Bricoleur frites 2", 20, 16) == ["frites", "2"]


def test_split_without_span_counts_utf16_units() -> None:
    # the emoji is two UTF-16 code units, so "Bob" starts at 14
    assert split_without_span("/quota_add 🎉 Bob menu 3", 14, 3) == ["🎉", "menu", "3"]
