"""Tests for the messages API."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from conftest import FakeBackend
from orbi.main import create_app
from orbi.routers.utils.dependencies import get_current_user_id, get_store
from orbi.services.gateway import Gateway

USER_ID = 4242


@pytest.fixture
def client(store, test_settings):
    app = create_app(testing=True, settings=test_settings, store=store)
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def client_with_auth(store, test_settings):
    """Client that validates X-Telegram-Init-Data for real."""
    app = create_app(testing=True, settings=test_settings, store=store)
    with TestClient(app) as c:
        yield c


def test_get_message(client, store):
    message_hash = store.create_body("The full answer")

    resp = client.get(f"/api/messages/{message_hash}")

    assert resp.status_code == 200
    data = resp.json()
    assert data["hash"] == message_hash
    assert data["content"] == "The full answer"
    assert "createdAt" in data
    assert isinstance(data["id"], int)


def test_get_message_not_found(client):
    resp = client.get("/api/messages/deadbeef")
    assert resp.status_code == 404
    assert set(resp.json()) == {"error", "details"}


def test_get_message_malformed_hash_is_not_found(client):
    resp = client.get("/api/messages/not-a-hash")
    assert resp.status_code == 404
    assert "error" in resp.json()


def test_new_user_hello_scenario(client, store):
    gateway = Gateway(store, FakeBackend("Hi there"), sleep=AsyncMock())

    answer = asyncio.run(gateway.ask_with_retry(USER_ID, "hello"))

    resp = client.get(f"/api/messages/{answer.hash}")
    assert resp.status_code == 200
    assert resp.json()["content"] == "Hi there"

    listed = client.get("/api/messages").json()
    assert [m["hash"] for m in listed] == [answer.hash]


def test_list_messages_empty(client):
    resp = client.get("/api/messages")
    assert resp.status_code == 200
    assert resp.json() == []


def test_list_messages_one_per_session_newest_first(client, store):
    first = store.create_session(USER_ID)
    store.append_exchange(first.id, "q1", "answer one")
    store.append_exchange(first.id, "q2", "answer two")
    second = store.create_session(USER_ID)
    store.append_exchange(second.id, "q3", "answer three")

    resp = client.get("/api/messages")

    assert [m["content"] for m in resp.json()] == ["answer three", "answer one"]


def test_list_messages_requires_init_data(client_with_auth):
    resp = client_with_auth.get("/api/messages")
    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthorized"


def test_list_messages_rejects_bad_signature(client_with_auth, sign_init_data):
    init_data = sign_init_data(USER_ID, bot_token="999:not-the-bot")
    resp = client_with_auth.get(
        "/api/messages", headers={"X-Telegram-Init-Data": init_data}
    )
    assert resp.status_code == 401


def test_list_messages_with_signed_init_data(client_with_auth, store, sign_init_data):
    session = store.create_session(USER_ID)
    _, answered = store.append_exchange(session.id, "q", "signed answer")

    resp = client_with_auth.get(
        "/api/messages", headers={"X-Telegram-Init-Data": sign_init_data(USER_ID)}
    )

    assert resp.status_code == 200
    assert [m["hash"] for m in resp.json()] == [answered.hash]


def test_store_dependency_override(test_settings, store):
    """get_store can be swapped like any FastAPI dependency."""
    app = create_app(testing=True, settings=test_settings, store=store)
    fake_store = MagicMock()
    fake_store.get_body.return_value = {
        "id": 1,
        "hash": "0a1b2c3d",
        "content": "from override",
        "createdAt": "2026-01-01T00:00:00Z",
    }
    app.dependency_overrides[get_store] = lambda: fake_store
    with TestClient(app) as c:
        resp = c.get("/api/messages/0a1b2c3d")
    assert resp.json()["content"] == "from override"
