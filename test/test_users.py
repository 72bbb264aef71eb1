from __future__ import annotations

import asyncio
from types import SimpleNamespace

from pyrogram.enums import MessageEntityType

from conftest import FakeClient, FakeMessage, FakeUser
from utils.users import find_trailing_user, mention_map, pop_target_user

ROBERT = FakeUser(42, "Robert", username="bobby")


def _mention(user, offset: int, length: int):
    return SimpleNamespace(type=MessageEntityType.TEXT_MENTION, user=user, offset=offset, length=length)


def test_text_mention_is_cut_by_position_not_by_name() -> None:
    m = FakeMessage("/quota_add Bob menu 3", entities=[_mention(ROBERT, 11, 3)])

    user, rest = asyncio.run(pop_target_user(FakeClient(), m, m.command[1:]))

    assert user is ROBERT
    assert rest == ["menu", "3"]


def test_multi_word_text_mention() -> None:
    m = FakeMessage("/quota_add Le Grand Bob double cheese 2", entities=[_mention(ROBERT, 11, 12)])

    user, rest = asyncio.run(pop_target_user(FakeClient(), m, m.command[1:]))

    assert user is ROBERT
    assert rest == ["double", "cheese", "2"]


def test_trailing_text_mention() -> None:
    m = FakeMessage("/vente_add 20 Bob Marley", entities=[_mention(ROBERT, 14, 10)])

    user, rest = asyncio.run(find_trailing_user(FakeClient(), m, m.command[1:]))

    assert user is ROBERT
    assert rest == ["20"]


def test_reply_wins_over_arguments() -> None:
    replied = SimpleNamespace(from_user=ROBERT)
    m = FakeMessage("/quota_add menu 3", reply_to_message=replied)

    user, rest = asyncio.run(pop_target_user(FakeClient(), m, m.command[1:]))

    assert user is ROBERT
    assert rest == ["menu", "3"]


def test_username_and_id_lookups() -> None:
    client = FakeClient(ROBERT)

    by_name = FakeMessage("/quota_add @bobby menu 3")
    by_id = FakeMessage("/quota_add 42 menu 3")

    assert asyncio.run(pop_target_user(client, by_name, by_name.command[1:])) == (ROBERT, ["menu", "3"])
    assert asyncio.run(pop_target_user(client, by_id, by_id.command[1:])) == (ROBERT, ["menu", "3"])


def test_unknown_username_consumes_the_reference() -> None:
    m = FakeMessage("/quota_view @ghost")

    user, rest = asyncio.run(pop_target_user(FakeClient(), m, m.command[1:]))

    assert user is None
    assert rest == []


def test_mention_map_falls_back_to_ids() -> None:
    names = asyncio.run(mention_map(FakeClient(ROBERT), ["42", "77"]))

    assert names["42"] == ROBERT.mention
    assert names["77"] == "<code>77</code>"
