import re
from collections.abc import Callable, Sequence

from chatview.services.parsing.types import Message

# Export filenames name the contact, not the account owner: "WhatsApp Chat with Bob.txt".
_FILENAME_CONTACT_RE = re.compile(r"(?:whatsapp\s+)?chat\s+(?:export\s+)?with\s+(.+)\.txt$", re.IGNORECASE)

SelfStrategy = Callable[[Sequence[Message], Sequence[str], str | None], str | None]


def contact_from_filename(filename: str) -> str | None:
    found = _FILENAME_CONTACT_RE.search(filename)
    if not found:
        return None
    name = found.group(1).strip()
    return name or None


def most_frequent_sender(messages: Sequence[Message], candidates: Sequence[str]) -> str:
    if not candidates:
        return ""
    counts = {candidate: 0 for candidate in candidates}
    for message in messages:
        if not message.is_system and message.sender in counts:
            counts[message.sender] += 1
    best = candidates[0]
    for candidate in candidates:
        if counts[candidate] > counts[best]:
            best = candidate
    return best


def _by_filename_hint(messages: Sequence[Message], participants: Sequence[str], filename_hint: str | None) -> str | None:
    if not filename_hint:
        return None
    contact = contact_from_filename(filename_hint)
    if contact is None:
        return None
    contact_key = contact.lower()
    others = [name for name in participants if name.lower() != contact_key]
    if len(participants) == 2 and others:
        return others[0]
    if 0 < len(others) < len(participants):
        return most_frequent_sender(messages, others)
    return None


def _by_message_count(messages: Sequence[Message], participants: Sequence[str], filename_hint: str | None) -> str | None:
    return most_frequent_sender(messages, participants)


SELF_STRATEGIES: tuple[SelfStrategy, ...] = (_by_filename_hint, _by_message_count)


def detect_self(messages: Sequence[Message], participants: Sequence[str], filename_hint: str | None = None) -> str:
    """Guess which participant exported the chat.

    Strategies run in order and the first one that returns a name wins.
    The answer is a best-effort guess; viewers let the user swap it.
    """
    if not participants:
        return ""
    for strategy in SELF_STRATEGIES:
        decision = strategy(messages, participants, filename_hint)
        if decision is not None:
            return decision
    return ""
