# main.py (safe boot)
# - Never hard-crashes due to a single bad handler import/register.
# - Brings the ledger up to date on boot and schedules the weekly reset.

import os
import logging
import sys

from apscheduler.schedulers.background import BackgroundScheduler
from pyrogram import Client
from pyrogram.enums import ParseMode

from utils.ledger_store import LedgerStore, LedgerWriteError
from utils.rollover import RolloverController
from utils.settings import load_settings
from utils.week import now_local, week_boundary

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("main")

settings = load_settings()

# ────────────── ENV ──────────────
API_ID = int(os.getenv("API_ID", "0") or "0")
API_HASH = os.getenv("API_HASH", "")
BOT_TOKEN = os.getenv("BOT_TOKEN", "")

if not API_ID or not API_HASH or not BOT_TOKEN:
    raise ValueError("Missing API_ID / API_HASH / BOT_TOKEN")

app = Client(
    "QuotaBot",
    api_id=API_ID,
    api_hash=API_HASH,
    bot_token=BOT_TOKEN,
    parse_mode=ParseMode.HTML,
)

scheduler = BackgroundScheduler(timezone=settings.tz)


def _current_week_start():
    return week_boundary(
        now_local(settings.tz),
        settings.tz,
        settings.week_start_day,
        settings.week_start_hour,
        settings.week_start_minute,
    )


ledger = LedgerStore(settings.store_path, _current_week_start, settings.default_goals)
rollover = RolloverController(
    ledger,
    tz=settings.tz,
    start_day=settings.week_start_day,
    hour=settings.week_start_hour,
    minute=settings.week_start_minute,
)


def _try_register(module_path: str, *deps):
    """
    Import handlers.<module_path> and call register(app, *deps).
    NEVER raises — logs exceptions instead, so one broken handler won't crash the worker.
    """
    mod_name = f"handlers.{module_path}"
    try:
        mod = __import__(mod_name, fromlist=["register"])
        if hasattr(mod, "register"):
            mod.register(app, *deps)
            log.info("✅ Registered %s", mod_name)
        else:
            log.warning("⚠️ %s has no register()", mod_name)
    except Exception as e:
        log.exception("❌ FAILED registering %s: %s", mod_name, e)


def boot_ledger() -> None:
    try:
        ledger.load()
        rollover.ensure_current()
    except LedgerWriteError:
        # the in-memory ledger is usable; the next mutation retries the write
        log.exception("❌ Could not write %s at boot", settings.store_path)


def main():
    log.info("📊 Starting QuotaBot (safe boot)…")
    log.info("Python: %s", sys.version.replace("\n", " "))
    log.info(
        "Config: store=%s tz=%s week_start=%s %02d:%02d OWNER_ID=%s SUPER_ADMINS=%s",
        settings.store_path, settings.tz, settings.week_start_day,
        settings.week_start_hour, settings.week_start_minute,
        settings.owner_id, settings.super_admins,
    )

    boot_ledger()

    _try_register("health", rollover)
    _try_register("help_cmd", settings)
    _try_register("quota", ledger, rollover, settings)
    _try_register("objectifs", ledger, rollover, settings)
    _try_register("ventes", ledger, rollover, settings)

    try:
        rollover.schedule_weekly(scheduler)
        if not scheduler.running:
            scheduler.start()
            log.info("✅ Scheduler started")
    except Exception:
        log.exception("Could not start the weekly rollover job; per-command checks still apply")

    # Run the bot
    try:
        app.run()
    except Exception as e:
        log.exception("❌ Bot crashed during app.run(): %s", e)
        raise
    finally:
        if scheduler.running:
            scheduler.shutdown(wait=False)


if __name__ == "__main__":
    main()
