"""
FastAPI application entry point for the contact site.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from messaging.session_manager import SessionManager
from site_backend.config import get_settings
from site_backend.dependencies import get_session_manager
from site_backend.routes import router
from site_backend.schemas import HealthResponse


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    # Resolve through overrides so startup drives the same manager the routes use.
    manager = app.dependency_overrides.get(get_session_manager, get_session_manager)()
    if settings.whatsapp_enabled:
        await manager.initialize()
    try:
        yield
    finally:
        await manager.shutdown()


def create_app() -> FastAPI:
    settings = get_settings()
    public_dir = Path(settings.public_dir)

    app = FastAPI(title="Contact Site Backend", version="0.1.0", lifespan=lifespan)
    app.include_router(router, prefix=settings.api_prefix)

    @app.get("/health", response_model=HealthResponse)
    def health(manager: SessionManager = Depends(get_session_manager)):
        return HealthResponse(whatsapp=manager.state.phase.value)

    @app.get("/admin", include_in_schema=False)
    def admin_page():
        return FileResponse(settings.admin_page)

    @app.get("/", include_in_schema=False)
    def index_page():
        return FileResponse(public_dir / "index.html")

    # Registered last so API routes and pages above take precedence.
    if public_dir.is_dir():
        app.mount("/", StaticFiles(directory=public_dir), name="public")
    return app


app = create_app()
