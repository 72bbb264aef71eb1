# utils/decorators.py
import logging
from functools import wraps
from typing import Set

from pyrogram.types import Message

from utils.check_admin import is_privileged
from utils.rollover import RolloverController

log = logging.getLogger(__name__)

INTERNAL_ERROR_TEXT = "⚠️ Erreur interne, la commande n'a pas pu être traitée. Réessaie dans un instant."


def ledger_command(rollover: RolloverController):
    """
    Wrap a ledger handler: bring the week up to date first, and turn any
    unexpected error into a logged exception plus a generic reply.
    """
    def deco(func):
        @wraps(func)
        async def wrapper(client, message: Message, *args, **kwargs):
            try:
                rollover.ensure_current()
                return await func(client, message, *args, **kwargs)
            except Exception:
                cmd = message.command[0] if message.command else "?"
                uid = message.from_user.id if message.from_user else None
                log.exception("❌ /%s failed (user=%s chat=%s)", cmd, uid, message.chat.id if message.chat else None)
                try:
                    await message.reply_text(INTERNAL_ERROR_TEXT)
                except Exception as e:
                    log.warning("could not send error reply: %s", e)
        return wrapper
    return deco


def admin_only(privileged_ids: Set[int]):
    def deco(func):
        @wraps(func)
        async def wrapper(client, message: Message, *args, **kwargs):
            if not await is_privileged(client, message.chat, message.from_user, privileged_ids):
                return await message.reply_text("❌ Commande réservée aux admins.")
            return await func(client, message, *args, **kwargs)
        return wrapper
    return deco
