from chatview.services.media import DEFAULT_MIME_TYPE, MediaBlob, MediaRegistry, mime_type_for


def test_register_resolve_release():
    registry = MediaRegistry(url_prefix="/media/")
    handle = registry.register(MediaBlob(filename="a.jpg", mime_type="image/jpeg", data=b"abc"))
    assert handle.startswith("/media/")
    assert handle in registry
    assert registry.resolve(handle).size == 3
    assert registry.resolve(registry.handle_for_key(handle.rsplit("/", 1)[1])) is not None
    registry.release(handle)
    registry.release(handle)
    registry.release("/media/unknown")
    assert registry.resolve(handle) is None
    assert len(registry) == 0


def test_handles_are_unique():
    registry = MediaRegistry()
    blob = MediaBlob(filename="a.jpg", mime_type="image/jpeg", data=b"")
    assert registry.register(blob) != registry.register(blob)
    assert len(registry) == 2


def test_mime_type_lookup():
    assert mime_type_for("media/VID-1.MP4") == "video/mp4"
    assert mime_type_for("PTT-1.opus") == "audio/opus"
    assert mime_type_for("doc.pdf") == "application/pdf"
    assert mime_type_for("archive.xyz") == DEFAULT_MIME_TYPE
    assert mime_type_for("noext") == DEFAULT_MIME_TYPE
