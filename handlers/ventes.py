# handlers/ventes.py
#
# Weekly sales.
#   /vente_add <amount> [user]        log a sale (for yourself by default)
#   /vente_my                         your total this week
#   /vente_view <user>                admin: someone's total
#   /vente_remove <user> <amount>     admin: correct a total (floors at 0)
#   /vente_objectif_set <amount>      admin: team sales goal (0 = none)
#   /vente_leaderboard                top sellers + team progress

import logging

from pyrogram import Client, filters
from pyrogram.types import Message

from utils.aggregation import sales_leaderboard, sales_overview
from utils.decorators import admin_only, ledger_command
from utils.helpers import esc, fmt_money, parse_amount, render_sales_leaderboard, render_sales_overview
from utils.ledger_store import LedgerStore, SalesNotFound
from utils.rollover import RolloverController
from utils.settings import Settings
from utils.users import find_trailing_user, mention_map, pop_target_user

log = logging.getLogger(__name__)


def register(app: Client, ledger: LedgerStore, rollover: RolloverController, settings: Settings):
    admins = settings.privileged_ids()
    cur = settings.currency

    @app.on_message(filters.command("vente_add"))
    @ledger_command(rollover)
    async def vente_add(client: Client, m: Message):
        args = m.command[1:]
        user, rest = await find_trailing_user(client, m, args)
        amount = parse_amount(rest[0]) if len(rest) == 1 else None
        if amount is None:
            return await m.reply_text("Usage : <code>/vente_add &lt;montant&gt; [@membre]</code>")
        if user is None and len(rest) < len(args):
            return await m.reply_text(f"❌ Membre introuvable : <code>{esc(args[-1])}</code>")
        user = user or m.from_user
        if not user:
            return

        total = ledger.add_sales(user.id, amount)
        log.info("vente_add: %s +%.2f by %s -> %.2f", user.id, amount, m.from_user.id if m.from_user else None, total)
        await m.reply_text(
            f"💰 Vente de <b>{fmt_money(amount, cur)}</b> ajoutée pour {user.mention}\n"
            f"Total de la semaine : <b>{fmt_money(total, cur)}</b>"
        )

    @app.on_message(filters.command("vente_my"))
    @ledger_command(rollover)
    async def vente_my(client: Client, m: Message):
        if not m.from_user:
            return
        total = ledger.sales_total(m.from_user.id)
        await m.reply_text(f"💰 Tes ventes cette semaine : <b>{fmt_money(total, cur)}</b>")

    @app.on_message(filters.command("vente_view"))
    @ledger_command(rollover)
    @admin_only(admins)
    async def vente_view(client: Client, m: Message):
        user, _ = await pop_target_user(client, m, m.command[1:])
        if not user:
            return await m.reply_text("Usage : <code>/vente_view @membre</code>")
        total = ledger.sales_total(user.id)
        await m.reply_text(f"💰 Ventes de {user.mention} cette semaine : <b>{fmt_money(total, cur)}</b>")

    @app.on_message(filters.command("vente_remove"))
    @ledger_command(rollover)
    @admin_only(admins)
    async def vente_remove(client: Client, m: Message):
        user, rest = await pop_target_user(client, m, m.command[1:])
        amount = parse_amount(rest[0]) if len(rest) == 1 else None
        if not user or amount is None:
            return await m.reply_text("Usage : <code>/vente_remove @membre &lt;montant&gt;</code>")

        try:
            total = ledger.remove_sales(user.id, amount)
        except SalesNotFound:
            return await m.reply_text(f"❌ Aucune vente enregistrée pour {user.mention} cette semaine.")
        log.info("vente_remove: %s -%.2f by %s -> %.2f", user.id, amount, m.from_user.id, total)
        await m.reply_text(
            f"➖ <b>{fmt_money(amount, cur)}</b> retirés à {user.mention}\n"
            f"Total restant : <b>{fmt_money(total, cur)}</b>"
        )

    @app.on_message(filters.command("vente_objectif_set"))
    @ledger_command(rollover)
    @admin_only(admins)
    async def vente_objectif_set(client: Client, m: Message):
        args = m.command[1:]
        raw = args[0].strip() if len(args) == 1 else ""
        amount = 0.0 if raw == "0" else parse_amount(raw)
        if amount is None:
            return await m.reply_text("Usage : <code>/vente_objectif_set &lt;montant&gt;</code>")

        ledger.set_sales_goal(amount)
        log.info("vente_objectif_set: %.2f by %s", amount, m.from_user.id)
        doc = ledger.snapshot()
        await m.reply_text("🎯 Objectif de ventes mis à jour.\n" + render_sales_overview(sales_overview(doc), cur))

    @app.on_message(filters.command("vente_leaderboard"))
    @ledger_command(rollover)
    async def vente_board(client: Client, m: Message):
        doc = ledger.snapshot()
        board = sales_leaderboard(doc, settings.leaderboard_limit)
        names = await mention_map(client, [s.user_id for s in board])
        await m.reply_text(
            render_sales_leaderboard(board, names, sales_overview(doc), cur),
            disable_web_page_preview=True,
        )

    log.info(
        "✅ handlers.ventes registered (/vente_add, /vente_my, /vente_view, /vente_remove, "
        "/vente_objectif_set, /vente_leaderboard) admins=%s",
        len(admins),
    )
