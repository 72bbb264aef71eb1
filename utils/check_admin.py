# utils/check_admin.py
import logging
from typing import Set

from pyrogram import Client
from pyrogram.enums import ChatMemberStatus, ChatType
from pyrogram.errors import PeerIdInvalid, UserNotParticipant

log = logging.getLogger(__name__)

ADMIN_STATUSES = (ChatMemberStatus.ADMINISTRATOR, ChatMemberStatus.OWNER)


async def is_admin(client: Client, chat_id: int, user_id: int) -> bool:
    try:
        member = await client.get_chat_member(chat_id, user_id)
        return member.status in ADMIN_STATUSES
    except (PeerIdInvalid, UserNotParticipant):
        return False
    except Exception as e:
        log.warning("Admin check error for %s in %s: %s", user_id, chat_id, e)
        return False


async def is_privileged(client: Client, chat, user, privileged_ids: Set[int]) -> bool:
    """Owner / super admins anywhere, chat admins inside groups."""
    if not user:
        return False
    if user.id in privileged_ids:
        return True
    if chat and chat.type in (ChatType.GROUP, ChatType.SUPERGROUP):
        return await is_admin(client, chat.id, user.id)
    return False
