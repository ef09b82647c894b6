import asyncio
import zipfile

import pytest

from chatview.core.config import Settings
from chatview.core.errors import ArchiveInvalidError, DecompressedSizeError, InputTooLargeError, TooManyEntriesError
from chatview.services.parsing.archive import READ_CHUNK_SIZE, extract_from_zip, is_safe_zip_path, sanitize_filename

TRANSCRIPT = "12/01/2024, 13:05 - Bob: IMG-1.jpg (file attached)\n"


def _extract(data, registry, settings):
    return asyncio.run(extract_from_zip(data, registry, settings))


def test_extracts_transcript_and_media(make_zip, registry, settings):
    data = make_zip(
        {
            "WhatsApp Chat with Bob.txt": TRANSCRIPT,
            "IMG-1.jpg": b"\xff\xd8jpeg",
            "media/PTT-1.opus": b"opus",
            "notes.docx": b"ignored",
        }
    )
    result = _extract(data, registry, settings)
    assert result.text == TRANSCRIPT
    assert result.transcript_filename == "WhatsApp Chat with Bob.txt"
    assert set(result.media) == {"IMG-1.jpg", "PTT-1.opus"}
    blob = registry.resolve(result.media["IMG-1.jpg"])
    assert blob.data == b"\xff\xd8jpeg"
    assert blob.mime_type == "image/jpeg"
    assert registry.resolve(result.media["PTT-1.opus"]).mime_type == "audio/opus"


def test_transcript_in_subfolder_is_sanitized(make_zip, registry, settings):
    data = make_zip({"export/_chat.txt": TRANSCRIPT})
    assert _extract(data, registry, settings).transcript_filename == "_chat.txt"


def test_unsafe_paths_are_never_extracted(make_zip, registry, settings):
    data = make_zip(
        {
            "_chat.txt": TRANSCRIPT,
            "../../etc/passwd.jpg": b"evil",
            "media/../../escape.png": b"evil",
            "/abs/photo.gif": b"evil",
            "C:/windows/photo.gif": b"evil",
            "__MACOSX/._IMG-1.jpg": b"resource fork",
            "ok.png": b"fine",
        }
    )
    result = _extract(data, registry, settings)
    assert list(result.media) == ["ok.png"]
    assert len(registry) == 1


def test_missing_transcript_fails(make_zip, registry, settings):
    with pytest.raises(ArchiveInvalidError, match="No .txt file"):
        _extract(make_zip({"IMG-1.jpg": b"jpeg"}), registry, settings)


def test_unreadable_container_fails(registry, settings):
    with pytest.raises(ArchiveInvalidError):
        _extract(b"definitely not a zip", registry, settings)


def test_first_transcript_wins(make_zip, registry, settings):
    data = make_zip({"a.txt": "first", "b.txt": "second"})
    assert _extract(data, registry, settings).text == "first"


def test_entry_count_limit_fails_before_media(make_zip, registry):
    settings = Settings(environment="test", max_zip_entries=3)
    data = make_zip({"_chat.txt": TRANSCRIPT, "1.jpg": b"1", "2.jpg": b"2", "3.jpg": b"3"})
    with pytest.raises(TooManyEntriesError) as excinfo:
        _extract(data, registry, settings)
    assert excinfo.value.count == 4
    assert "4" in str(excinfo.value)
    assert len(registry) == 0


def test_decompressed_size_limit_aborts_and_releases(make_zip, registry):
    settings = Settings(environment="test", max_decompressed_bytes=len(TRANSCRIPT) + 150)
    data = make_zip({"_chat.txt": TRANSCRIPT, **{f"{i}.jpg": b"x" * 40 for i in range(10)}})
    with pytest.raises(DecompressedSizeError, match="zip bomb"):
        _extract(data, registry, settings)
    assert len(registry) == 0


def test_size_limit_counts_transcript(make_zip, registry):
    settings = Settings(environment="test", max_decompressed_bytes=10)
    with pytest.raises(DecompressedSizeError):
        _extract(make_zip({"_chat.txt": TRANSCRIPT}), registry, settings)


def test_oversized_input_rejected(make_zip, registry):
    settings = Settings(environment="test", max_file_size_bytes=16)
    with pytest.raises(InputTooLargeError, match="File too large"):
        _extract(make_zip({"_chat.txt": TRANSCRIPT}), registry, settings)


@pytest.mark.parametrize(
    ("path", "safe"),
    [
        ("IMG-1.jpg", True),
        ("media/IMG-1.jpg", True),
        ("media/..hidden.jpg", True),
        ("../../etc/passwd", False),
        ("..\\secret.jpg", False),
        ("a/../b.jpg", False),
        ("a\\..\\b.jpg", False),
        ("a/..", False),
        ("/etc/passwd", False),
        ("D:\\photo.jpg", False),
    ],
)
def test_is_safe_zip_path(path, safe):
    assert is_safe_zip_path(path) is safe


def test_sanitize_filename():
    assert sanitize_filename("media/IMG-1.jpg") == "IMG-1.jpg"
    assert sanitize_filename("a\\b\\c.png") == "c.png"
    assert sanitize_filename("...hidden.jpg") == "hidden.jpg"
    assert sanitize_filename("x..y.jpg") == "xy.jpg"
    assert sanitize_filename("dir/") == ""


def _count_decompressed_bytes(monkeypatch):
    read_sizes: list[int] = []
    original_read = zipfile.ZipExtFile.read

    def counting_read(self, n=-1):
        chunk = original_read(self, n)
        read_sizes.append(len(chunk))
        return chunk

    monkeypatch.setattr(zipfile.ZipExtFile, "read", counting_read)
    return read_sizes


def test_zip_bomb_abort_stops_decompression(make_zip, registry, monkeypatch):
    entry_size = 8 * 1024 * 1024
    data = make_zip({"_chat.txt": TRANSCRIPT, **{f"IMG-{i}.jpg": bytes(entry_size) for i in range(20)}})
    read_sizes = _count_decompressed_bytes(monkeypatch)
    settings = Settings(environment="test", max_decompressed_bytes=1000)

    with pytest.raises(DecompressedSizeError):
        _extract(data, registry, settings)

    assert sum(read_sizes) < entry_size
    assert len(registry) == 0


def test_single_oversized_entry_is_cut_short(make_zip, registry, monkeypatch):
    limit = 1024 * 1024
    data = make_zip({"_chat.txt": TRANSCRIPT, "VID-1.mp4": bytes(16 * limit)})
    read_sizes = _count_decompressed_bytes(monkeypatch)
    settings = Settings(environment="test", max_decompressed_bytes=limit)

    with pytest.raises(DecompressedSizeError):
        _extract(data, registry, settings)

    assert sum(read_sizes) <= limit + READ_CHUNK_SIZE
    assert len(registry) == 0


def test_entry_count_at_limit_is_accepted(make_zip, registry):
    settings = Settings(environment="test", max_zip_entries=4)
    data = make_zip({"_chat.txt": TRANSCRIPT, "1.jpg": b"1", "2.jpg": b"2", "3.jpg": b"3"})
    result = _extract(data, registry, settings)
    assert list(result.media) == ["1.jpg", "2.jpg", "3.jpg"]


def test_colliding_media_names_resolve_by_archive_order(make_zip, registry, settings):
    data = make_zip({"_chat.txt": TRANSCRIPT, "a/IMG-1.jpg": b"first", "b/IMG-1.jpg": b"second"})
    result = _extract(data, registry, settings)
    assert list(result.media) == ["IMG-1.jpg"]
    assert registry.resolve(result.media["IMG-1.jpg"]).data == b"second"
    assert len(registry) == 1
