# handlers/quota.py
#
# Weekly item quotas.
#   /quota_add <user> <item> <qty>      credit units to a member
#   /quota_remove <user> <item> <qty>   take units back (floors at 0)
#   /quota_view [user] [all]            progress vs objectifs, most behind first
#   /quota_leaderboard                  finished members first, then by %
#
# <user> = reply to their message, a text mention, @username or numeric id.

import logging

from pyrogram import Client, filters
from pyrogram.types import Message

from utils.aggregation import quota_leaderboard, user_extra_items, user_item_breakdown
from utils.decorators import ledger_command
from utils.helpers import (
    esc,
    looks_like_user_ref,
    parse_quantity,
    render_breakdown,
    render_quota_leaderboard,
    wants_all,
)
from utils.ledger_store import CounterNotFound, LedgerStore, canon_item
from utils.rollover import RolloverController
from utils.settings import Settings
from utils.users import display_name, mention_map, pop_target_user

log = logging.getLogger(__name__)

ADD_USAGE = (
    "Usage : <code>/quota_add @membre &lt;type&gt; &lt;quantité&gt;</code>\n"
    "(ou en réponse à un message : <code>/quota_add &lt;type&gt; &lt;quantité&gt;</code>)"
)
REMOVE_USAGE = (
    "Usage : <code>/quota_remove @membre &lt;type&gt; &lt;quantité&gt;</code>\n"
    "(ou en réponse à un message : <code>/quota_remove &lt;type&gt; &lt;quantité&gt;</code>)"
)


def _item_and_qty(args):
    """["double", "cheese", "3"] -> ("double cheese", 3); None when malformed."""
    if len(args) < 2:
        return None
    qty = parse_quantity(args[-1])
    item = canon_item(" ".join(args[:-1]))
    if qty is None or not item:
        return None
    return item, qty


def register(app: Client, ledger: LedgerStore, rollover: RolloverController, settings: Settings):

    @app.on_message(filters.command("quota_add"))
    @ledger_command(rollover)
    async def quota_add(client: Client, m: Message):
        user, rest = await pop_target_user(client, m, m.command[1:])
        parsed = _item_and_qty(rest)
        if not user or not parsed:
            return await m.reply_text(ADD_USAGE)
        item, qty = parsed

        total = ledger.add_item_count(user.id, item, qty)
        goal = ledger.goals().get(item, 0)
        goal_txt = f" / {goal}" if goal > 0 else ""
        log.info("quota_add: %s +%s %s by %s -> %s", user.id, qty, item, m.from_user.id if m.from_user else None, total)
        await m.reply_text(
            f"✅ <b>Quota ajouté</b>\n"
            f"{qty} × <b>{esc(item)}</b> pour {user.mention}\n"
            f"Total : <b>{total}</b>{goal_txt}"
        )

    @app.on_message(filters.command("quota_remove"))
    @ledger_command(rollover)
    async def quota_remove(client: Client, m: Message):
        user, rest = await pop_target_user(client, m, m.command[1:])
        parsed = _item_and_qty(rest)
        if not user or not parsed:
            return await m.reply_text(REMOVE_USAGE)
        item, qty = parsed

        try:
            total = ledger.remove_item_count(user.id, item, qty)
        except CounterNotFound:
            return await m.reply_text(f"❌ Ce quota n'existe pas : <b>{esc(item)}</b> pour {user.mention}.")
        log.info("quota_remove: %s -%s %s by %s -> %s", user.id, qty, item, m.from_user.id if m.from_user else None, total)
        await m.reply_text(
            f"❌ <b>Quota retiré</b>\n"
            f"{qty} × <b>{esc(item)}</b> pour {user.mention}\n"
            f"Total restant : <b>{total}</b>"
        )

    @app.on_message(filters.command("quota_view"))
    @ledger_command(rollover)
    async def quota_view(client: Client, m: Message):
        args = m.command[1:]
        include_all = wants_all(args)
        args = [a for a in args if not wants_all([a])]
        user, _ = await pop_target_user(client, m, args)
        if user is None and args and looks_like_user_ref(args[0]):
            return await m.reply_text(f"❌ Membre introuvable : <code>{esc(args[0])}</code>")
        user = user or m.from_user
        if not user:
            return

        doc = ledger.snapshot()
        rows = user_item_breakdown(doc, user.id, include_completed=include_all)
        extras = user_extra_items(doc, user.id)
        text = render_breakdown(display_name(user), rows, extras, include_all)
        if not include_all:
            text += "\n\n<i>Ajoute « all » pour voir aussi les objectifs atteints.</i>"
        await m.reply_text(text)

    @app.on_message(filters.command("quota_leaderboard"))
    @ledger_command(rollover)
    async def quota_board(client: Client, m: Message):
        board = quota_leaderboard(ledger.snapshot())
        names = await mention_map(client, [s.user_id for s in board])
        await m.reply_text(render_quota_leaderboard(board, names), disable_web_page_preview=True)

    log.info("✅ handlers.quota registered (/quota_add, /quota_remove, /quota_view, /quota_leaderboard)")
