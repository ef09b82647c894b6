import re
from dataclasses import dataclass, field
from datetime import datetime

from chatview.services.parsing.lines import parse_line
from chatview.services.parsing.types import Message

INVISIBLE_CHARS = "\u200e\u200f\u200b\u200c\u200d\u202a-\u202e\ufeff\u00ad"
_INVISIBLE_RE = re.compile(f"[{INVISIBLE_CHARS}]")
_LEADING_INVISIBLE_RE = re.compile(f"^[{INVISIBLE_CHARS}]+")

# iOS: "<attached: 00000012-PHOTO-2024-02-15.jpg>", Android: "IMG-20240215-WA0001.jpg (file attached)"
_ATTACHED_IOS_RE = re.compile(r"^<attached:\s*(.+?)>$")
_ATTACHED_ANDROID_RE = re.compile(r"^(.+?)\s*\(file attached\)$")


def strip_invisible(text: str) -> str:
    return _INVISIBLE_RE.sub("", text).strip()


def clean_line(raw_line: str) -> str:
    line = raw_line.removeprefix("\ufeff").removesuffix("\r")
    return _LEADING_INVISIBLE_RE.sub("", line)


def extract_attachment(body: str) -> str | None:
    for line in strip_invisible(body).split("\n"):
        candidate = line.strip()
        for pattern in (_ATTACHED_IOS_RE, _ATTACHED_ANDROID_RE):
            found = pattern.match(candidate)
            if found:
                name = strip_invisible(found.group(1))
                if name:
                    return name
    return None


@dataclass(slots=True)
class _PendingMessage:
    timestamp: datetime
    sender: str
    is_system: bool
    lines: list[str] = field(default_factory=list)

    def finalize(self) -> Message:
        body = "\n".join(self.lines)
        return Message(
            timestamp=self.timestamp,
            sender=self.sender,
            body=body,
            is_system=self.is_system,
            attachment=extract_attachment(body),
        )


def assemble_messages(text: str) -> tuple[list[Message], list[str]]:
    """Fold transcript lines into complete messages.

    Returns the messages in source order and the distinct non-system senders
    in first-seen order.
    """
    messages: list[Message] = []
    participants: dict[str, None] = {}
    pending: _PendingMessage | None = None

    for raw_line in text.split("\n"):
        line = clean_line(raw_line)
        match = parse_line(line)
        if match is not None:
            if pending is not None:
                messages.append(pending.finalize())
            pending = _PendingMessage(
                timestamp=match.timestamp,
                sender=match.sender,
                is_system=match.is_system,
                lines=[match.body],
            )
            if not match.is_system:
                participants.setdefault(match.sender, None)
        elif pending is not None and line:
            pending.lines.append(line)

    if pending is not None:
        messages.append(pending.finalize())
    return messages, list(participants)
