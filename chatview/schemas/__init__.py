from chatview.schemas.chat import ChatCreateResponse, ChatRead, MessageRead

__all__ = [
    "ChatCreateResponse",
    "ChatRead",
    "MessageRead",
]
