from datetime import datetime

from pydantic import BaseModel


class ChatCreateResponse(BaseModel):
    chat_id: str
    message_count: int
    participant_count: int
    self_name: str
    media_count: int


class MessageRead(BaseModel):
    sender: str
    body: str
    timestamp: datetime
    is_system: bool
    is_notice: bool
    is_self: bool
    attachment: str | None = None
    media_url: str | None = None
    media_kind: str | None = None
    starts_day: bool = False
    show_sender: bool = False


class ChatRead(BaseModel):
    chat_id: str
    title: str
    participants: list[str]
    self_name: str
    swapped: bool
    message_count: int
    first_message_at: datetime | None = None
    last_message_at: datetime | None = None
    messages: list[MessageRead]
