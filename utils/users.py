# utils/users.py
# Resolving command targets and display names through the Telegram API.
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from pyrogram import Client
from pyrogram.enums import MessageEntityType
from pyrogram.types import Message, MessageEntity, User

from utils.helpers import esc, looks_like_user_ref, split_without_span

log = logging.getLogger(__name__)


def _text_mention(message: Message) -> Optional[MessageEntity]:
    for ent in message.entities or []:
        if ent.type == MessageEntityType.TEXT_MENTION and ent.user:
            return ent
    return None


def _args_without(message: Message, ent: MessageEntity, args: List[str]) -> List[str]:
    # the link text can be anything, so cut it out by position
    text = message.text or message.caption
    if not text:
        return list(args)
    return split_without_span(str(text), ent.offset, ent.length)


async def pop_target_user(client: Client, message: Message, args: List[str]) -> Tuple[Optional[User], List[str]]:
    """
    Find the user a command is about: replied-to message first, then a
    text mention, then a leading @username / numeric id in `args`.
    Returns (user or None, remaining args).
    """
    if message.reply_to_message and message.reply_to_message.from_user:
        return message.reply_to_message.from_user, args

    ent = _text_mention(message)
    if ent:
        return ent.user, _args_without(message, ent, args)

    if args and looks_like_user_ref(args[0]):
        ref = args[0].strip()
        try:
            user = await client.get_users(int(ref) if ref.isdecimal() else ref)
        except Exception as e:
            log.info("could not resolve user %r: %s", ref, e)
            return None, args[1:]
        if isinstance(user, list):
            user = user[0] if user else None
        return user, args[1:]

    return None, args


async def find_trailing_user(client: Client, message: Message, args: List[str]) -> Tuple[Optional[User], List[str]]:
    """Like pop_target_user but for an optional user given after the other arguments."""
    if message.reply_to_message and message.reply_to_message.from_user:
        return message.reply_to_message.from_user, args
    ent = _text_mention(message)
    if ent:
        return ent.user, _args_without(message, ent, args)
    if len(args) > 1 and looks_like_user_ref(args[-1]):
        user, _ = await pop_target_user(client, message, args[-1:])
        return user, args[:-1]
    return None, args


def display_name(user: User) -> str:
    if user.username:
        return f"@{user.username}"
    name = " ".join(p for p in (user.first_name, user.last_name) if p)
    return name or str(user.id)


async def mention_map(client: Client, user_ids: Iterable[str]) -> Dict[str, str]:
    """user id -> HTML mention; unknown users fall back to their id."""
    ids = [uid for uid in user_ids]
    out: Dict[str, str] = {uid: f"<code>{esc(uid)}</code>" for uid in ids}
    numeric = [int(uid) for uid in ids if uid.isdecimal()]
    if not numeric:
        return out
    try:
        users = await client.get_users(numeric)
    except Exception as e:
        log.warning("Could not fetch users %s: %s", numeric, e)
        return out
    if not isinstance(users, list):
        users = [users]
    for u in users:
        out[str(u.id)] = u.mention
    return out
