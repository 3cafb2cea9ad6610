"""Chat sessions API: list and reset."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from orbi.config import Settings
from orbi.constants.replies import get_replies
from orbi.infra.logging_config import get_logger
from orbi.routers.utils.dependencies import (
    get_app_settings,
    get_current_user_id,
    get_store,
)
from orbi.schemas.message import ChatSessionRead
from orbi.services.message_store import MessageStore

logger = get_logger("routers.chats")

chats_router = APIRouter(prefix="/api", tags=["Chats"])


@chats_router.post("/chat/new", status_code=201, response_model=dict)
def new_chat(
    user_id: int = Depends(get_current_user_id),
    store: MessageStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """Deactivate the user's sessions; the next question opens a fresh one."""
    deactivated = store.deactivate_sessions(user_id)
    logger.info("Deactivated %d session(s) for user %s", deactivated, user_id)
    return {"message": get_replies(settings.bot_locale)["new_chat_api"]}


@chats_router.get("/chats", response_model=List[ChatSessionRead])
def list_chats(
    user_id: int = Depends(get_current_user_id),
    store: MessageStore = Depends(get_store),
) -> List[ChatSessionRead]:
    """List the user's chat sessions, most recently updated first."""
    return store.list_sessions_for_user(user_id)
