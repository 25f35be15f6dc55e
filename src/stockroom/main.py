"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (database, change notifier).
Middleware, CORS, exception handlers, and routers all registered here.
"""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stockroom import __version__
from stockroom.api import api_router
from stockroom.config import settings
from stockroom.services.widget_service import WidgetStoreError

logger = structlog.get_logger()


def configure_logging() -> None:
    """Apply the configured log level to structlog's default pipeline."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. The notifier's lifetime is the process lifetime.
    """
    configure_logging()
    logger.info(
        "stockroom.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from stockroom.db.engine import engine, init_db
    from stockroom.realtime.notifier import ChangeNotifier

    await init_db()
    app.state.notifier = ChangeNotifier()

    yield

    # Shutdown
    logger.info("stockroom.shutdown")

    await app.state.notifier.close()
    await engine.dispose()


async def store_error_handler(request: Request, exc: WidgetStoreError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": "Widget store failure"})


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Stockroom",
        description="Widget inventory with real-time change notifications",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → CORS → handler

    from stockroom.middleware.request_id import RequestIdMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(WidgetStoreError, store_error_handler)

    # Mount API routes
    app.include_router(api_router)

    # Mount WebSocket route (push channel)
    from stockroom.realtime.websocket import router as ws_router
    app.include_router(ws_router, tags=["realtime"])

    return app


# Default app instance (used by uvicorn: stockroom.main:app)
app = create_app()
