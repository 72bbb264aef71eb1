# handlers/objectifs.py
#   /objectif_set <item> <qty>   admin: weekly target for an item (0 = no target)
#   /objectif_view               current item targets + team sales progress
import logging

from pyrogram import Client, filters
from pyrogram.types import Message

from utils.aggregation import sales_overview
from utils.decorators import admin_only, ledger_command
from utils.helpers import esc, parse_quantity, render_goals
from utils.ledger_store import LedgerStore, canon_item
from utils.rollover import RolloverController
from utils.settings import Settings

log = logging.getLogger(__name__)


def register(app: Client, ledger: LedgerStore, rollover: RolloverController, settings: Settings):

    @app.on_message(filters.command("objectif_set"))
    @ledger_command(rollover)
    @admin_only(settings.privileged_ids())
    async def objectif_set(client: Client, m: Message):
        args = m.command[1:]
        # 0 is allowed here: it clears the target
        qty = parse_quantity(args[-1], allow_zero=True) if len(args) >= 2 else None
        item = canon_item(" ".join(args[:-1]))
        if qty is None or not item:
            return await m.reply_text("Usage : <code>/objectif_set &lt;type&gt; &lt;quantité&gt;</code>")

        ledger.set_goal(item, qty)
        log.info("objectif_set: %s = %s by %s", item, qty, m.from_user.id)
        if qty == 0:
            return await m.reply_text(f"🎯 Objectif retiré pour <b>{esc(item)}</b>.")
        await m.reply_text(f"🎯 Objectif de <b>{esc(item)}</b> fixé à <b>{qty}</b> par semaine.")

    @app.on_message(filters.command("objectif_view"))
    @ledger_command(rollover)
    async def objectif_view(client: Client, m: Message):
        doc = ledger.snapshot()
        await m.reply_text(render_goals(doc.goals, sales_overview(doc), settings.currency))

    log.info("✅ handlers.objectifs registered (/objectif_set, /objectif_view)")
