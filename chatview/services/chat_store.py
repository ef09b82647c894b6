import logging
import threading
import uuid

from chatview.services.media import MediaRegistry
from chatview.services.parsing import ParsedChat, revoke_media_urls

logger = logging.getLogger(__name__)


class ChatStore:
    """Chats loaded in this process, keyed by an opaque id.

    Removing a chat releases its media handles from the registry.
    """

    def __init__(self, registry: MediaRegistry) -> None:
        self.registry = registry
        self._chats: dict[str, ParsedChat] = {}
        self._lock = threading.Lock()

    def add(self, chat: ParsedChat) -> str:
        chat_id = str(uuid.uuid4())
        with self._lock:
            self._chats[chat_id] = chat
        return chat_id

    def get(self, chat_id: str) -> ParsedChat | None:
        with self._lock:
            return self._chats.get(chat_id)

    def remove(self, chat_id: str) -> bool:
        with self._lock:
            chat = self._chats.pop(chat_id, None)
        if chat is None:
            return False
        revoke_media_urls(chat, self.registry)
        logger.info("chat_removed", extra={"chat_id": chat_id, "media_count": len(chat.media)})
        return True

    def clear(self) -> int:
        with self._lock:
            chat_ids = list(self._chats)
        return sum(1 for chat_id in chat_ids if self.remove(chat_id))

    def __len__(self) -> int:
        with self._lock:
            return len(self._chats)
