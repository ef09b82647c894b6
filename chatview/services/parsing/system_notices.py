from chatview.services.parsing.transcript import strip_invisible
from chatview.services.parsing.types import Message

ENCRYPTION_PHRASE = "end-to-end encrypted"

# Safety net for system events that arrive with a sender-like prefix.
SYSTEM_PHRASES = (
    "blocked this contact",
    "unblocked this contact",
    "blocked this person",
    "unblocked this person",
    "changed their phone number",
    "changed the subject",
    "changed this group",
    "changed the group",
    "was added",
    "was removed",
    "left",
    "added you",
    "removed you",
    "message was deleted",
    "this message was deleted",
    "you deleted this message",
    "waiting for this message",
    "security code changed",
    "disappearing messages",
    "turned on disappearing",
    "turned off disappearing",
    "changed the disappearing",
    "created group",
    "created this group",
    "joined using this group",
    "admin",
)


def is_encryption_notice(text: str) -> bool:
    return ENCRYPTION_PHRASE in strip_invisible(text).lower()


def is_system_like_message(text: str) -> bool:
    clean = strip_invisible(text).lower()
    return any(phrase in clean for phrase in SYSTEM_PHRASES)


def is_notice(message: Message) -> bool:
    return message.is_system or is_encryption_notice(message.body) or is_system_like_message(message.body)
