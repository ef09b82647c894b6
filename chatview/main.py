from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chatview.core.config import Settings, get_settings
from chatview.core.logging import configure_logging
from chatview.routers import chats, media
from chatview.services.chat_store import ChatStore
from chatview.services.media import MediaRegistry


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(title=settings.app_name, debug=settings.debug)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    registry = MediaRegistry(url_prefix=settings.media_url_prefix)
    app.state.settings = settings
    app.state.media_registry = registry
    app.state.chat_store = ChatStore(registry)

    app.include_router(chats.router)
    app.include_router(media.router, prefix=registry.url_prefix)

    @app.on_event("shutdown")
    def shutdown() -> None:
        app.state.chat_store.clear()

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
