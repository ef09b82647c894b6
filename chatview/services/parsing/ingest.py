import asyncio
import logging

from chatview.core.config import Settings, get_settings
from chatview.core.errors import InputTooLargeError
from chatview.services.media import MediaRegistry
from chatview.services.parsing.archive import extract_from_zip
from chatview.services.parsing.self_detection import detect_self
from chatview.services.parsing.transcript import assemble_messages
from chatview.services.parsing.types import ParsedChat

logger = logging.getLogger(__name__)

ZIP_CONTENT_TYPES = {"application/zip", "application/x-zip-compressed"}


def is_archive(filename: str, content_type: str | None = None) -> bool:
    return filename.lower().endswith(".zip") or (content_type or "").lower() in ZIP_CONTENT_TYPES


def parse_chat_text(text: str, filename_hint: str | None = None) -> ParsedChat:
    messages, participants = assemble_messages(text)
    self_name = detect_self(messages, participants, filename_hint)
    logger.info(
        "chat_text_parsed",
        extra={"message_count": len(messages), "participant_count": len(participants)},
    )
    return ParsedChat(messages=messages, participants=participants, self_name=self_name, media={})


async def parse_file(
    data: bytes,
    filename: str,
    content_type: str | None = None,
    *,
    registry: MediaRegistry,
    settings: Settings | None = None,
) -> ParsedChat:
    """Parse an uploaded export, either a bare transcript or a ZIP bundle.

    A result without messages means the input was not a recognizable export.
    Media handles in the result belong to the caller, see revoke_media_urls.
    """
    settings = settings or get_settings()
    if len(data) > settings.max_file_size_bytes:
        raise InputTooLargeError(len(data), settings.max_file_size_bytes)

    if is_archive(filename, content_type):
        extracted = await extract_from_zip(data, registry, settings)
        parsed = parse_chat_text(extracted.text, extracted.transcript_filename)
        return ParsedChat(
            messages=parsed.messages,
            participants=parsed.participants,
            self_name=parsed.self_name,
            media=extracted.media,
        )

    text = await asyncio.to_thread(data.decode, "utf-8", "replace")
    return parse_chat_text(text, filename)


def revoke_media_urls(chat: ParsedChat, registry: MediaRegistry) -> None:
    for handle in chat.media.values():
        try:
            registry.release(handle)
        except Exception:  # noqa: BLE001
            logger.debug("media_release_failed", exc_info=True)
