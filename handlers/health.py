# handlers/health.py
import logging

from pyrogram import Client, filters
from pyrogram.types import CallbackQuery, Message

from utils.decorators import ledger_command
from utils.rollover import RolloverController
from utils.week import next_boundary, now_local

log = logging.getLogger("health")


def register(app: Client, rollover: RolloverController):
    # Simple ping to verify bot liveness
    @app.on_message(filters.command("ping"))
    async def ping(client, m):
        await m.reply_text("pong")

    @app.on_message(filters.command("semaine"))
    @ledger_command(rollover)
    async def semaine(client: Client, m: Message):
        now = now_local(rollover.tz)
        nxt = next_boundary(now, rollover.tz, rollover.start_day, rollover.hour, rollover.minute)
        await m.reply_text(
            "🗓 <b>Semaine en cours</b>\n"
            f"Début : {rollover.store.week_start.astimezone(rollover.tz).strftime('%d/%m/%Y %H:%M %Z')}\n"
            f"Prochaine remise à zéro : {nxt.strftime('%d/%m/%Y %H:%M %Z')}"
        )

    # Catch-all *last* callback safety net: always answer to clear spinner
    @app.on_callback_query(group=99)
    async def _cb_safety(client: Client, cq: CallbackQuery):
        try:
            await cq.answer(cache_time=0)
        except Exception as e:
            if "QUERY_ID_INVALID" not in str(e):
                log.debug("cb safety answer: %s", e)
