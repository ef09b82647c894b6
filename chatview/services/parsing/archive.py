import asyncio
import io
import logging
import re
import threading
import zipfile
import zlib

from chatview.core.config import Settings, get_settings
from chatview.core.errors import (
    ArchiveInvalidError,
    DecompressedSizeError,
    InputTooLargeError,
    TooManyEntriesError,
)
from chatview.services.media import MediaBlob, MediaRegistry, mime_type_for
from chatview.services.parsing.types import ZipExtractResult

logger = logging.getLogger(__name__)

METADATA_PREFIX = "__MACOSX"
MEDIA_EXTENSIONS_RE = re.compile(r"\.(jpe?g|png|gif|webp|mp4|3gp|mov|avi|opus|ogg|mp3|m4a|aac|pdf)$", re.IGNORECASE)
READ_CHUNK_SIZE = 64 * 1024
_DRIVE_RE = re.compile(r"^[A-Za-z]:")

# Entries that fail to decompress are skipped rather than failing the import.
_UNREADABLE_ENTRY_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, OSError, NotImplementedError, RuntimeError)


def is_safe_zip_path(path: str) -> bool:
    normalized = path.replace("\\", "/")
    if normalized.startswith("/") or normalized.startswith("..") or _DRIVE_RE.match(normalized):
        return False
    if "/../" in normalized or normalized.endswith("/.."):
        return False
    return True


def sanitize_filename(name: str) -> str:
    basename = name.split("/")[-1].split("\\")[-1]
    return basename.lstrip(".").replace("..", "")


class DecompressionBudget:
    """Running total of decompressed bytes shared by the extraction threads.

    Once the limit is crossed every later charge fails too.
    """

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.total = 0
        self.exceeded = False
        self._lock = threading.Lock()

    def check(self) -> None:
        if self.exceeded:
            raise DecompressedSizeError(self.total, self.limit)

    def consume(self, size: int) -> None:
        with self._lock:
            self.total += size
            if self.exceeded or self.total > self.limit:
                self.exceeded = True
                raise DecompressedSizeError(self.total, self.limit)


def _read_entry(archive: zipfile.ZipFile, path: str, budget: DecompressionBudget) -> bytes:
    budget.check()
    chunks: list[bytes] = []
    with archive.open(path) as handle:
        while True:
            budget.check()
            chunk = handle.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            budget.consume(len(chunk))
            chunks.append(chunk)
    return b"".join(chunks)


def _open_archive(data: bytes, max_entries: int) -> tuple[zipfile.ZipFile, list[zipfile.ZipInfo]]:
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zlib.error, OSError, ValueError) as exc:
        raise ArchiveInvalidError("The file is not a readable ZIP archive.") from exc
    entries = archive.infolist()
    if len(entries) > max_entries:
        archive.close()
        raise TooManyEntriesError(len(entries), max_entries)
    return archive, entries


def _classify_entries(entries: list[zipfile.ZipInfo]) -> tuple[list[str], list[str]]:
    transcripts: list[str] = []
    media: list[str] = []
    for entry in entries:
        path = entry.filename
        if entry.is_dir() or path.startswith(METADATA_PREFIX):
            continue
        if not is_safe_zip_path(path):
            logger.warning("zip_entry_skipped_unsafe_path")
            continue
        if path.lower().endswith(".txt"):
            transcripts.append(path)
        elif MEDIA_EXTENSIONS_RE.search(path):
            media.append(path)
    return transcripts, media


def _dedupe_by_filename(paths: list[str]) -> dict[str, str]:
    # Archive order decides collisions: the later entry wins.
    by_name: dict[str, str] = {}
    for path in paths:
        filename = sanitize_filename(path)
        if filename:
            by_name.pop(filename, None)
            by_name[filename] = path
    return by_name


async def _read_transcript(archive: zipfile.ZipFile, path: str, budget: DecompressionBudget) -> str:
    try:
        raw = await asyncio.to_thread(_read_entry, archive, path, budget)
    except (*_UNREADABLE_ENTRY_ERRORS, KeyError) as exc:
        raise ArchiveInvalidError("Failed to read the chat text file from the ZIP archive.") from exc
    return raw.decode("utf-8", errors="replace")


async def _extract_media_entry(
    archive: zipfile.ZipFile,
    filename: str,
    path: str,
    budget: DecompressionBudget,
    registry: MediaRegistry,
    media: dict[str, str],
) -> None:
    try:
        data = await asyncio.to_thread(_read_entry, archive, path, budget)
    except (*_UNREADABLE_ENTRY_ERRORS, KeyError):
        logger.debug("zip_media_entry_unreadable", exc_info=True)
        return
    budget.check()
    media[filename] = registry.register(MediaBlob(filename=filename, mime_type=mime_type_for(path), data=data))


async def _extract_media(
    archive: zipfile.ZipFile,
    paths: dict[str, str],
    budget: DecompressionBudget,
    registry: MediaRegistry,
) -> dict[str, str]:
    media: dict[str, str] = {}
    tasks = [
        asyncio.create_task(_extract_media_entry(archive, filename, path, budget, registry, media))
        for filename, path in paths.items()
    ]
    if not tasks:
        return media
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    failure = next((task.exception() for task in done if task.exception() is not None), None)
    if failure is None:
        return {filename: media[filename] for filename in paths if filename in media}

    # Remaining workers stop at their next budget check, within one chunk.
    # Waiting for them keeps the archive open until no thread reads from it.
    await asyncio.gather(*pending, return_exceptions=True)
    for handle in media.values():
        registry.release(handle)
    raise failure


async def extract_from_zip(
    data: bytes,
    registry: MediaRegistry,
    settings: Settings | None = None,
) -> ZipExtractResult:
    settings = settings or get_settings()
    if len(data) > settings.max_file_size_bytes:
        raise InputTooLargeError(len(data), settings.max_file_size_bytes)

    archive, entries = await asyncio.to_thread(_open_archive, data, settings.max_zip_entries)
    with archive:
        transcripts, media_paths = _classify_entries(entries)
        if not transcripts:
            raise ArchiveInvalidError("No .txt file found in the ZIP archive.")

        transcript_path = transcripts[0]
        budget = DecompressionBudget(settings.max_decompressed_bytes)
        text = await _read_transcript(archive, transcript_path, budget)
        media = await _extract_media(archive, _dedupe_by_filename(media_paths), budget, registry)

    logger.info(
        "zip_extracted",
        extra={"entry_count": len(entries), "media_count": len(media), "decompressed_bytes": budget.total},
    )
    return ZipExtractResult(
        text=text,
        media=media,
        transcript_filename=sanitize_filename(transcript_path) or transcript_path,
    )
