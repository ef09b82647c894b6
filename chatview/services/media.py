import logging
import threading
import uuid
from dataclasses import dataclass
from pathlib import PurePosixPath

logger = logging.getLogger(__name__)

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "mp4": "video/mp4",
    "3gp": "video/3gpp",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "opus": "audio/opus",
    "ogg": "audio/ogg",
    "mp3": "audio/mpeg",
    "m4a": "audio/mp4",
    "aac": "audio/aac",
    "pdf": "application/pdf",
}
DEFAULT_MIME_TYPE = "application/octet-stream"


def mime_type_for(filename: str) -> str:
    ext = PurePosixPath(filename).suffix.lower().lstrip(".")
    return MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)


@dataclass(slots=True, frozen=True)
class MediaBlob:
    filename: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class MediaRegistry:
    """Process-wide table of extracted media, addressed by opaque handles.

    Handles look like ``/media/<hex>`` so viewers can use them as URLs.
    Whoever receives a handle owns it and must release it.
    """

    def __init__(self, url_prefix: str = "/media") -> None:
        self.url_prefix = url_prefix.rstrip("/")
        self._blobs: dict[str, MediaBlob] = {}
        self._lock = threading.Lock()

    def register(self, blob: MediaBlob) -> str:
        handle = f"{self.url_prefix}/{uuid.uuid4().hex}"
        with self._lock:
            self._blobs[handle] = blob
        return handle

    def resolve(self, handle: str) -> MediaBlob | None:
        with self._lock:
            return self._blobs.get(handle)

    def handle_for_key(self, key: str) -> str:
        return f"{self.url_prefix}/{key}"

    def release(self, handle: str) -> None:
        with self._lock:
            blob = self._blobs.pop(handle, None)
        if blob is not None:
            logger.debug("media_released", extra={"handle": handle, "size": blob.size})

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return handle in self._blobs
