from typing import Optional

from fastapi import Depends, Header, Request

from orbi.config import Settings
from orbi.core.init_data import authenticate
from orbi.services.message_store import MessageStore

INIT_DATA_HEADER = "X-Telegram-Init-Data"


def get_store(request: Request) -> MessageStore:
    """FastAPI dependency returning the application's message store."""
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user_id(
    init_data: Optional[str] = Header(default=None, alias=INIT_DATA_HEADER),
    settings: Settings = Depends(get_app_settings),
) -> int:
    """Telegram user id from a signed X-Telegram-Init-Data header. Raises AuthError."""
    return authenticate(
        init_data,
        settings.telegram_bot_token,
        disable_auth=settings.disable_auth,
    )
