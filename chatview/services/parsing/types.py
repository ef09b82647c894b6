from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True, frozen=True)
class Message:
    timestamp: datetime
    sender: str
    body: str
    is_system: bool = False
    attachment: str | None = None


@dataclass(slots=True, frozen=True)
class ParsedChat:
    messages: list[Message]
    participants: list[str]
    self_name: str
    media: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ZipExtractResult:
    text: str
    media: dict[str, str]
    transcript_filename: str
