# squadzone/main.py
"""
SquadZone API application.

Run with:  uvicorn squadzone.main:app
"""

from contextlib import asynccontextmanager
import logging
from typing import Any, AsyncGenerator, Dict

from fastapi import APIRouter, Depends, FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker

from . import __version__
from .core.broadcast import connect_broadcast, disconnect_broadcast, is_broadcast_initialized
from .core.config import is_running_tests, settings
from .core.session_store import build_session_repository
from .database import get_session_factory, init_db
from .errors import register_error_handlers
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import (
    auth as auth_v1,
    conversations as conversations_v1,
    realtime as realtime_v1,
    users as users_v1,
)

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

BRAND_NAME = "SquadZone"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    if not is_running_tests():
        init_db()

    await connect_broadcast()
    app.state.session_repository = build_session_repository()

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")
    await app.state.session_repository.close()
    await disconnect_broadcast()


def _database_ok(factory: sessionmaker) -> bool:
    db = factory()
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Health check database query failed: {e}")
        return False
    finally:
        db.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title=f"{BRAND_NAME} API",
        version=__version__,
        lifespan=app_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    api = APIRouter(prefix="/api")
    api.include_router(auth_v1.router)
    api.include_router(users_v1.router, prefix="/users")
    api.include_router(conversations_v1.router, prefix="/conversations")
    app.include_router(api)
    app.include_router(realtime_v1.router)

    @app.get("/health", include_in_schema=False)
    def health_check(
        factory: sessionmaker = Depends(get_session_factory),
    ) -> Dict[str, Any]:
        database_ok = _database_ok(factory)
        return {
            "status": "ok" if database_ok and is_broadcast_initialized() else "degraded",
            "database": database_ok,
            "broadcast": is_broadcast_initialized(),
            "version": __version__,
        }

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(
            content=prometheus_metrics.get_metrics(),
            media_type=prometheus_metrics.get_content_type(),
        )

    return app


app = create_app()
