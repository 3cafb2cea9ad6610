from orbi.models.chat_session import ChatSession
from orbi.models.message_body import MessageBody
from orbi.models.session_message import SessionMessage

__all__ = [
    "ChatSession",
    "MessageBody",
    "SessionMessage",
]
