from fastapi import Request

from chatview.core.config import Settings
from chatview.services.chat_store import ChatStore
from chatview.services.media import MediaRegistry


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_media_registry(request: Request) -> MediaRegistry:
    return request.app.state.media_registry


def get_chat_store(request: Request) -> ChatStore:
    return request.app.state.chat_store
