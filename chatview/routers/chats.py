import logging
from datetime import date

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from chatview.core.config import Settings
from chatview.core.errors import ChatImportError, InputTooLargeError
from chatview.routers.deps import get_app_settings, get_chat_store, get_media_registry
from chatview.schemas.chat import ChatCreateResponse, ChatRead, MessageRead
from chatview.services.chat_store import ChatStore
from chatview.services.media import MediaRegistry
from chatview.services.parsing import ParsedChat, is_notice, parse_file, revoke_media_urls
from chatview.services.views import (
    chat_title,
    conversation_message_count,
    date_span,
    display_flags,
    filter_by_date_range,
    is_self_message,
    media_kind,
)

router = APIRouter(prefix="/chats", tags=["chats"])
logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


async def _read_upload(file: UploadFile, max_bytes: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    try:
        while True:
            chunk = await file.read(CHUNK_SIZE)
            if not chunk:
                break
            total += len(chunk)
            if total > max_bytes:
                raise InputTooLargeError(total, max_bytes)
            chunks.append(chunk)
    finally:
        await file.close()
    return b"".join(chunks)


@router.post("", response_model=ChatCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_chat(
    file: UploadFile = File(...),
    settings: Settings = Depends(get_app_settings),
    registry: MediaRegistry = Depends(get_media_registry),
    store: ChatStore = Depends(get_chat_store),
) -> ChatCreateResponse:
    try:
        data = await _read_upload(file, settings.max_file_size_bytes)
        parsed = await parse_file(
            data,
            file.filename or "",
            file.content_type,
            registry=registry,
            settings=settings,
        )
    except InputTooLargeError as exc:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc)) from exc
    except ChatImportError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if not parsed.messages:
        revoke_media_urls(parsed, registry)
        raise HTTPException(
            status_code=422,
            detail="No messages found. The file is not a recognizable chat export.",
        )

    chat_id = store.add(parsed)
    logger.info("chat_loaded", extra={"chat_id": chat_id, "message_count": len(parsed.messages)})
    return ChatCreateResponse(
        chat_id=chat_id,
        message_count=len(parsed.messages),
        participant_count=len(parsed.participants),
        self_name=parsed.self_name,
        media_count=len(parsed.media),
    )


def _message_views(chat: ParsedChat, start: date | None, end: date | None, swapped: bool) -> list[MessageRead]:
    views: list[MessageRead] = []
    messages = filter_by_date_range(chat.messages, start, end)
    for message, (starts_day, show_sender) in zip(messages, display_flags(messages)):
        media_url = chat.media.get(message.attachment) if message.attachment else None
        views.append(
            MessageRead(
                sender=message.sender,
                body=message.body,
                timestamp=message.timestamp,
                is_system=message.is_system,
                is_notice=is_notice(message),
                is_self=is_self_message(message, chat, swapped),
                attachment=message.attachment,
                media_url=media_url,
                media_kind=media_kind(message.attachment) if media_url else None,
                starts_day=starts_day,
                show_sender=show_sender,
            )
        )
    return views


@router.get("/{chat_id}", response_model=ChatRead)
def get_chat(
    chat_id: str,
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    swapped: bool = Query(default=False),
    store: ChatStore = Depends(get_chat_store),
) -> ChatRead:
    chat = store.get(chat_id)
    if chat is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    if start is not None and end is not None and end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end must not be before start")

    messages = _message_views(chat, start, end, swapped)
    span = date_span(chat.messages)
    return ChatRead(
        chat_id=chat_id,
        title=chat_title(chat.participants),
        participants=chat.participants,
        self_name=chat.self_name,
        swapped=swapped,
        message_count=conversation_message_count(filter_by_date_range(chat.messages, start, end)),
        first_message_at=span[0] if span else None,
        last_message_at=span[1] if span else None,
        messages=messages,
    )


@router.delete("/{chat_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_chat(chat_id: str, store: ChatStore = Depends(get_chat_store)) -> None:
    if not store.remove(chat_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    return None
