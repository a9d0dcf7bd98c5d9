from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from gmb_offline.core.config import settings
from gmb_offline.core.services.offline_service import OfflineService, build_offline_service
from gmb_offline.modules.api.router import router as offline_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(service: Optional[OfflineService] = None) -> FastAPI:
    """Build the API; `service` replaces the one built from settings (tests)."""
    app = FastAPI(title=settings.APP_NAME)
    app.state.offline_service = service
    app.include_router(offline_router, prefix="/api/offline")

    @app.on_event("startup")
    async def startup():
        logger.info(f"{settings.APP_NAME} starting")
        logger.info(f"Offline storage: {settings.OFFLINE_STORAGE_DIR}")
        logger.info(f"Remote timeout: {settings.OFFLINE_REMOTE_TIMEOUT}s, max retries: {settings.OFFLINE_MAX_RETRIES}")
        if app.state.offline_service is None:
            app.state.offline_service = build_offline_service()

    @app.on_event("shutdown")
    async def shutdown():
        if app.state.offline_service is not None:
            app.state.offline_service.close()

    @app.get("/healthz")
    def healthz():
        """Health check endpoint."""
        return {
            "ok": True,
            "app": settings.APP_NAME,
            "env": settings.APP_ENV,
            "supabase_configured": bool(settings.SUPABASE_URL and settings.SUPABASE_KEY),
        }

    return app


app = create_app()
