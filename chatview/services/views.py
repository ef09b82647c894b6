import re
from collections.abc import Sequence
from datetime import date, datetime, time

from chatview.services.parsing.system_notices import is_notice
from chatview.services.parsing.types import Message, ParsedChat

IMAGE_EXT_RE = re.compile(r"\.(jpe?g|png|gif|webp)$", re.IGNORECASE)
VIDEO_EXT_RE = re.compile(r"\.(mp4|3gp|mov|avi)$", re.IGNORECASE)
AUDIO_EXT_RE = re.compile(r"\.(opus|ogg|mp3|m4a|aac)$", re.IGNORECASE)


def filter_by_date_range(messages: Sequence[Message], start: date | None, end: date | None = None) -> list[Message]:
    if start is None:
        return list(messages)
    lower = datetime.combine(start, time.min)
    upper = datetime.combine(end or start, time.max)
    return [message for message in messages if lower <= message.timestamp <= upper]


def date_span(messages: Sequence[Message]) -> tuple[datetime, datetime] | None:
    if not messages:
        return None
    timestamps = [message.timestamp for message in messages]
    return min(timestamps), max(timestamps)


def chat_title(participants: Sequence[str]) -> str:
    if len(participants) <= 2:
        return " & ".join(name for name in participants if name)
    return f"Group Chat ({len(participants)})"


def is_self_message(message: Message, chat: ParsedChat, swapped: bool = False) -> bool:
    if message.is_system:
        return False
    if swapped:
        return message.sender != chat.self_name
    return message.sender == chat.self_name


def media_kind(filename: str) -> str:
    if IMAGE_EXT_RE.search(filename):
        return "image"
    if VIDEO_EXT_RE.search(filename):
        return "video"
    if AUDIO_EXT_RE.search(filename):
        return "audio"
    return "document"


def conversation_message_count(messages: Sequence[Message]) -> int:
    return sum(1 for message in messages if not is_notice(message))


def display_flags(messages: Sequence[Message]) -> list[tuple[bool, bool]]:
    """Per-message ``(starts_day, show_sender)`` for a list in display order.

    A sender label is shown when the sender changes, after a notice, or at the
    start of a new day. Notices never get one.
    """
    flags: list[tuple[bool, bool]] = []
    previous: Message | None = None
    for message in messages:
        starts_day = previous is None or previous.timestamp.date() != message.timestamp.date()
        show_sender = not is_notice(message) and (
            previous is None or previous.sender != message.sender or is_notice(previous) or starts_day
        )
        flags.append((starts_day, show_sender))
        previous = message
    return flags
