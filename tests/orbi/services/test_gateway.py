"""Tests for the retry-wrapped generation gateway."""

import asyncio
import threading
from unittest.mock import AsyncMock, patch

import pytest

from conftest import FakeBackend
from orbi.backends.base import GenerationBackend
from orbi.core.addressing import is_valid_hash
from orbi.exceptions import GenerationFailedError, TransientBackendError
from orbi.schemas.message import MessageRole
from orbi.services.gateway import Answer, Gateway


class SlowBackend(GenerationBackend):
    name = "slow"

    async def generate(self, history, prompt):
        await asyncio.sleep(10)
        return "too late"


@pytest.mark.asyncio
async def test_first_question_creates_session_and_persists_exchange(store, user_id):
    backend = FakeBackend("Hi there")
    gateway = Gateway(store, backend, sleep=AsyncMock())

    answer = await gateway.ask_with_retry(user_id, "hello")

    assert isinstance(answer, Answer)
    assert answer.text == "Hi there"
    assert is_valid_hash(answer.hash)
    session = store.get_active_session(user_id)
    assert session is not None
    messages = store.list_messages(session.id)
    assert [(m.role, m.content) for m in messages] == [
        (MessageRole.USER, "hello"),
        (MessageRole.ASSISTANT, "Hi there"),
    ]
    assert messages[1].hash == answer.hash
    assert store.get_body(answer.hash).content == "Hi there"
    assert backend.calls == [([], "hello")]


@pytest.mark.asyncio
async def test_history_is_sent_on_follow_up(store, user_id):
    backend = FakeBackend("first answer", "second answer")
    gateway = Gateway(store, backend, sleep=AsyncMock())

    await gateway.ask_with_retry(user_id, "first question")
    await gateway.ask_with_retry(user_id, "second question")

    history, prompt = backend.calls[1]
    assert prompt == "second question"
    assert [(h.role, h.content) for h in history] == [
        (MessageRole.USER, "first question"),
        (MessageRole.ASSISTANT, "first answer"),
    ]


@pytest.mark.asyncio
async def test_retry_bound_and_last_cause(store, user_id):
    errors = [TransientBackendError(f"failure {i}") for i in range(3)]
    backend = FakeBackend(*errors)
    sleep = AsyncMock()
    gateway = Gateway(store, backend, max_retries=3, retry_delay=2.0, sleep=sleep)

    with pytest.raises(GenerationFailedError) as exc_info:
        await gateway.ask_with_retry(user_id, "hello")

    assert len(backend.calls) == 3
    assert sleep.await_count == 2
    sleep.assert_awaited_with(2.0)
    assert exc_info.value.attempts == 3
    assert exc_info.value.last_error is errors[-1]
    assert exc_info.value.__cause__ is errors[-1]


@pytest.mark.asyncio
async def test_failed_attempts_leave_no_partial_history(store, user_id):
    backend = FakeBackend(TransientBackendError("HTTP 503"), "Hi there")
    gateway = Gateway(store, backend, max_retries=3, sleep=AsyncMock())

    answer = await gateway.ask_with_retry(user_id, "hello")

    session = store.get_active_session(user_id)
    messages = store.list_messages(session.id)
    assert [m.content for m in messages] == ["hello", "Hi there"]
    assert answer.text == "Hi there"


@pytest.mark.asyncio
async def test_single_attempt_no_sleep(store, user_id):
    sleep = AsyncMock()
    gateway = Gateway(
        store,
        FakeBackend(TransientBackendError("down")),
        max_retries=1,
        sleep=sleep,
    )

    with pytest.raises(GenerationFailedError):
        await gateway.ask_with_retry(user_id, "hello")
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_backend_timeout_is_transient(store, user_id):
    gateway = Gateway(
        store, SlowBackend(), max_retries=1, timeout=0.01, sleep=AsyncMock()
    )

    with pytest.raises(GenerationFailedError) as exc_info:
        await gateway.ask_with_retry(user_id, "hello")
    assert isinstance(exc_info.value.last_error, TransientBackendError)


@pytest.mark.asyncio
async def test_new_session_replaces_active(store, user_id):
    gateway = Gateway(store, FakeBackend(), sleep=AsyncMock())
    await gateway.ask_with_retry(user_id, "hello")
    old = store.get_active_session(user_id)

    created = await gateway.new_session(user_id)

    assert created.id != old.id
    assert store.get_active_session(user_id).id == created.id
    assert store.list_messages(created.id) == []


def test_max_retries_must_be_positive(store):
    with pytest.raises(ValueError):
        Gateway(store, FakeBackend(), max_retries=0)


def test_from_settings(store, test_settings):
    gateway = Gateway.from_settings(store, FakeBackend(), test_settings)
    assert gateway._max_retries == test_settings.max_retries
    assert gateway._retry_delay == test_settings.retry_delay_seconds
    assert gateway._timeout == test_settings.http_timeout_seconds


@pytest.mark.asyncio
async def test_store_calls_run_off_the_event_loop(store, user_id):
    loop_thread = threading.get_ident()
    seen = {}

    def recorder(name, original):
        def call(*args, **kwargs):
            seen[name] = threading.get_ident()
            return original(*args, **kwargs)

        return call

    gateway = Gateway(store, FakeBackend("Hi there"), sleep=AsyncMock())
    names = ("get_active_session", "create_session", "list_messages", "append_exchange")
    with patch.multiple(
        store, **{name: recorder(name, getattr(store, name)) for name in names}
    ):
        await gateway.ask(user_id, "hello")

    assert set(seen) == set(names)
    assert loop_thread not in seen.values()
