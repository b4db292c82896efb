from fastapi import FastAPI

from skit_engine.config import Settings, load_settings
from skit_engine.routes import router


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(title="Skit Engine")
    app.state.settings = settings or load_settings()
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (reads settings from the environment)
app = create_app()
