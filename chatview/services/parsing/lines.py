import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from chatview.services.parsing.timestamps import resolve_timestamp

_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"
_MERIDIEM = r"(?:\s(?:AM|PM|am|pm))?"
_BRACKET_PREFIX = rf"^\[{_DATE},\s(\d{{1,2}}:\d{{2}}:\d{{2}}{_MERIDIEM})\]\s"
_DASH_PREFIX = rf"^{_DATE},\s(\d{{1,2}}:\d{{2}}{_MERIDIEM})\s-\s"


class LineFormat(str, Enum):
    BRACKET = "bracket"
    DASH = "dash"
    BRACKET_SYSTEM = "bracket_system"
    DASH_SYSTEM = "dash_system"


@dataclass(slots=True, frozen=True)
class LineMatch:
    format: LineFormat
    timestamp: datetime
    sender: str
    body: str
    is_system: bool


@dataclass(slots=True, frozen=True)
class LineGrammar:
    format: LineFormat
    pattern: re.Pattern[str]
    has_sender: bool

    def match(self, line: str) -> LineMatch | None:
        found = self.pattern.match(line)
        if not found:
            return None
        if self.has_sender:
            date_token, time_token, sender, body = found.groups()
        else:
            date_token, time_token, body = found.groups()
            sender = ""
        try:
            timestamp = resolve_timestamp(date_token, time_token)
        except ValueError:
            return None
        return LineMatch(
            format=self.format,
            timestamp=timestamp,
            sender=sender,
            body=body,
            is_system=not self.has_sender,
        )


# Priority order matters: sender grammars are tried before the senderless ones.
GRAMMARS: tuple[LineGrammar, ...] = (
    LineGrammar(LineFormat.BRACKET, re.compile(_BRACKET_PREFIX + r"(.+?):\s(.*)$", re.DOTALL), True),
    LineGrammar(LineFormat.DASH, re.compile(_DASH_PREFIX + r"(.+?):\s(.*)$", re.DOTALL), True),
    LineGrammar(LineFormat.BRACKET_SYSTEM, re.compile(_BRACKET_PREFIX + r"(.+)$", re.DOTALL), False),
    LineGrammar(LineFormat.DASH_SYSTEM, re.compile(_DASH_PREFIX + r"(.+)$", re.DOTALL), False),
)


def parse_line(line: str) -> LineMatch | None:
    for grammar in GRAMMARS:
        result = grammar.match(line)
        if result is not None:
            return result
    return None


def classify_line(line: str) -> LineFormat | None:
    result = parse_line(line)
    return result.format if result else None


def is_new_message_line(line: str) -> bool:
    return parse_line(line) is not None
