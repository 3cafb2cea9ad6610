import json
from typing import List
from urllib.parse import urlencode

import pytest

from orbi.backends.base import GenerationBackend
from orbi.config import Settings
from orbi.core.init_data import compute_init_data_hash
from orbi.db import DatabaseManager
from orbi.schemas.message import HistoryEntry
from orbi.services.message_store import MessageStore

FAKE_TOKEN = "123456:AAHdqTcvCH1vGWJxfSeofSAs0K5P"
WEBAPP_URL = "https://orbi.example.com"


@pytest.fixture(scope="function")
def database(tmp_path):
    """A fresh SQLite file per test; dropped with tmp_path."""
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'messages_test.db'}")
    manager.create_all()
    yield manager
    manager.dispose()


@pytest.fixture(scope="function")
def db(database):
    session = database.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def store(database):
    return MessageStore.from_manager(database)


@pytest.fixture(scope="function")
def user_id(faker):
    return faker.random_int(min=10_000, max=9_999_999)


@pytest.fixture(scope="function")
def test_settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'messages_test.db'}",
        telegram_bot_token=FAKE_TOKEN,
        webapp_url=WEBAPP_URL,
        public_api_url="https://api.orbi.example.com",
        frontend_dist_path=str(tmp_path / "no-frontend"),
        bot_locale="en",
    )


class FakeBackend(GenerationBackend):
    """Scripted backend: answers in order, raising any exception instances."""

    name = "fake"

    def __init__(self, *answers) -> None:
        self.answers = list(answers) or ["Hi there"]
        self.calls: List[tuple] = []

    async def generate(self, history: List[HistoryEntry], prompt: str) -> str:
        self.calls.append((list(history), prompt))
        answer = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        if isinstance(answer, BaseException):
            raise answer
        return answer


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def sign_init_data():
    """Build a Telegram initData query string signed with the given bot token."""

    def _sign(user_id: int, bot_token: str = FAKE_TOKEN, **extra) -> str:
        pairs = {
            "auth_date": "1700000000",
            "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
            "user": json.dumps({"id": user_id, "first_name": "Ana"}),
        }
        pairs.update(extra)
        pairs["hash"] = compute_init_data_hash(pairs.items(), bot_token)
        return urlencode(pairs)

    return _sign


def telegram_message(
    text: str,
    user_id: int = 789,
    chat_id: int = 789,
    chat_type: str = "private",
    message_id: int = 456,
    username: str = "test_user",
    first_name: str = "Test",
) -> dict:
    """Raw Telegram message payload with the fields the relay reads."""
    return {
        "message_id": message_id,
        "from": {
            "id": user_id,
            "is_bot": False,
            "first_name": first_name,
            "username": username,
            "language_code": "en",
        },
        "chat": {"id": chat_id, "type": chat_type},
        "date": 1609459200,
        "text": text,
    }
