import io
import os
import zipfile

import pytest
from fastapi.testclient import TestClient

os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

from chatview.core.config import Settings, get_settings
from chatview.main import create_app
from chatview.services.media import MediaRegistry


@pytest.fixture(autouse=True)
def reset_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def settings():
    return Settings(environment="test")


@pytest.fixture()
def registry():
    return MediaRegistry()


@pytest.fixture()
def make_zip():
    def _make_zip(entries: dict[str, bytes | str]) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for name, content in entries.items():
                if isinstance(content, str):
                    content = content.encode("utf-8")
                archive.writestr(name, content)
        return buffer.getvalue()

    return _make_zip


@pytest.fixture()
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client
