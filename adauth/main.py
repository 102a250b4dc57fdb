from __future__ import annotations

from fastapi import FastAPI

from .routers.auth import router as auth_router


def create_app() -> FastAPI:
    """Application factory: ``uvicorn adauth.main:create_app --factory``."""
    from .log_config import setup_logging
    from .settings import get_settings

    s = get_settings()
    setup_logging(s.log_level, log_file=s.log_file or None, retention_days=s.log_retention_days)
    app = FastAPI(title="AD Auth")
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    return app
