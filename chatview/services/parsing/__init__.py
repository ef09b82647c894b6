from chatview.services.parsing.archive import extract_from_zip
from chatview.services.parsing.ingest import parse_chat_text, parse_file, revoke_media_urls
from chatview.services.parsing.system_notices import is_encryption_notice, is_notice, is_system_like_message
from chatview.services.parsing.types import Message, ParsedChat, ZipExtractResult

__all__ = [
    "Message",
    "ParsedChat",
    "ZipExtractResult",
    "extract_from_zip",
    "is_encryption_notice",
    "is_notice",
    "is_system_like_message",
    "parse_chat_text",
    "parse_file",
    "revoke_media_urls",
]
