"""Messages API: full answer bodies for the mini-app."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from orbi.core.addressing import is_valid_hash
from orbi.exceptions import NotFoundError
from orbi.routers.utils.dependencies import get_current_user_id, get_store
from orbi.schemas.message import MessageBodyRead
from orbi.services.message_store import MessageStore

messages_router = APIRouter(prefix="/api/messages", tags=["Messages"])


@messages_router.get("", response_model=List[MessageBodyRead])
def list_messages(
    user_id: int = Depends(get_current_user_id),
    store: MessageStore = Depends(get_store),
) -> List[MessageBodyRead]:
    """One body per chat session of the calling user, newest first."""
    return store.list_first_user_message_per_session(user_id)


@messages_router.get("/{message_hash}", response_model=MessageBodyRead)
def get_message(
    message_hash: str,
    store: MessageStore = Depends(get_store),
) -> MessageBodyRead:
    """Get a message body by its hash. Public: the hash is the capability."""
    if not is_valid_hash(message_hash):
        raise NotFoundError("message", message_hash)
    return store.get_body(message_hash)
