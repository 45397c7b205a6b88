from fastapi import FastAPI

from backend.routes import router
from novella.config import NovellaConfig, load_config
from novella.content import ContentResolver, open_source
from novella.session import Session


def create_session(config: NovellaConfig) -> Session:
    resolver = ContentResolver(
        open_source(config.content_root, timeout=config.http_timeout),
        cache=config.cache,
    )
    return Session(resolver, config.start, default_day_title=config.default_day_title)


def create_app(config: NovellaConfig | None = None) -> FastAPI:
    config = config or load_config()

    app = FastAPI(title="Novella")
    app.state.config = config
    app.state.session = create_session(config)
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses NOVELLA_* env vars or defaults)
app = create_app()
