from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace
from typing import Callable

import pytest
import pytz

from utils.ledger_store import LedgerStore

PARIS = pytz.timezone("Europe/Paris")
DEFAULT_GOALS = {"menu": 50, "cheeseburger": 30}


def paris(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return PARIS.localize(datetime(year, month, day, hour, minute))


# 2026-10-18 and 2026-10-11 are Sundays
THIS_WEEK = paris(2026, 10, 18)
LAST_WEEK = paris(2026, 10, 11)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "quotas.json"


@pytest.fixture
def make_store(store_path: Path) -> Callable[..., LedgerStore]:
    def _make(week_start: datetime = THIS_WEEK, goals=None, path: Path = store_path) -> LedgerStore:
        store = LedgerStore(str(path), lambda: week_start, DEFAULT_GOALS if goals is None else goals)
        store.load()
        return store

    return _make


class FakeUser:
    def __init__(self, user_id: int, first_name: str, last_name=None, username=None):
        self.id = user_id
        self.first_name = first_name
        self.last_name = last_name
        self.username = username
        self.mention = f'<a href="tg://user?id={user_id}">{first_name}</a>'


class FakeMessage:
    """Enough of a pyrogram Message for the command handlers."""

    def __init__(self, text: str, from_user=None, entities=None, reply_to_message=None, chat=None):
        self.text = text
        self.caption = None
        self.command = text.split()
        self.command[0] = self.command[0].lstrip("/")
        self.entities = entities
        self.reply_to_message = reply_to_message
        self.from_user = from_user or FakeUser(1, "Alice")
        self.chat = chat or SimpleNamespace(id=-1001, type=None)
        self.replies = []

    async def reply_text(self, text, **kwargs):
        self.replies.append(text)


class FakeClient:
    def __init__(self, *users: FakeUser):
        self.by_ref = {}
        for u in users:
            self.by_ref[u.id] = u
            if u.username:
                self.by_ref[f"@{u.username}"] = u

    async def get_users(self, ref):
        if isinstance(ref, list):
            return [self.by_ref[r] for r in ref if r in self.by_ref]
        if ref not in self.by_ref:
            raise KeyError(ref)
        return self.by_ref[ref]
