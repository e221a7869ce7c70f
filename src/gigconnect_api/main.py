"""FastAPI application wiring for the GigConnect API.

Beginner terms used in this file:
- FastAPI app: the main web application object.
- Lifespan: code that runs once at startup (open the store) and once at
  shutdown (close it).
- app.state: a place to store shared runtime objects (store, handlers).
- Exception handler: turns a raised error into an HTTP response.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from .app.bids import BidHandler
from .app.clock import Clock, utc_now
from .app.errors import GigConnectError, ValidationError
from .app.routes import router
from .app.settings import Settings, get_settings
from .app.storage import DocumentStore, PostgresDocumentStore
from .app.tasks import TaskHandler
from .app.ui import render_homepage

logger = logging.getLogger(__name__)


def _build_store(settings: Settings) -> DocumentStore:
    if not settings.database_url:
        raise RuntimeError(
            "Missing database URL. Set GIGCONNECT_DATABASE_URL before starting the app."
        )
    return PostgresDocumentStore(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )


def _install_store(app: FastAPI, store: DocumentStore, *, settings: Settings, clock: Clock) -> None:
    """Attach the store and the handlers built on it to ``app.state``."""
    app.state.store = store
    app.state.task_handler = TaskHandler(
        store,
        clock=clock,
        default_page_size=settings.default_page_size,
        featured_limit=settings.featured_limit,
    )
    app.state.bid_handler = BidHandler(store, clock=clock)


def create_app(
    *,
    store: DocumentStore | None = None,
    settings_override: Settings | None = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """Application factory.

    Pass ``store`` to run against an already-built store (tests use the
    in-memory one). Otherwise a PostgreSQL store is built from settings when
    the app starts.
    """
    settings = settings_override or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if not hasattr(app.state, "store"):
            _install_store(app, _build_store(settings), settings=settings, clock=clock)
        runtime_store: DocumentStore = app.state.store
        await runtime_store.open()
        await runtime_store.migrate()
        logger.info(
            "app event=startup service=%s backend=%s",
            settings.app_name,
            runtime_store.backend_name,
        )
        try:
            yield
        finally:
            await runtime_store.close()
            logger.info("app event=shutdown service=%s", settings.app_name)

    app = FastAPI(title=settings.app_name, version=settings.api_version, lifespan=lifespan)
    app.state.settings = settings

    # Keep test paths usable even when the client does not run the lifespan.
    if store is not None:
        _install_store(app, store, settings=settings, clock=clock)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GigConnectError)
    async def handle_gigconnect_error(request: Request, exc: GigConnectError) -> JSONResponse:
        if exc.status_code < 500:
            logger.info(
                "request event=rejected method=%s path=%s status=%s message=%r",
                request.method,
                request.url.path,
                exc.status_code,
                exc.message,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        violations = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        error = ValidationError(violations or ["Invalid request."])
        return JSONResponse(status_code=error.status_code, content=error.to_payload())

    @app.get("/", response_class=HTMLResponse)
    async def home() -> str:
        runtime_store = getattr(app.state, "store", None)
        return render_homepage(
            app_name=settings.app_name,
            api_version=settings.api_version,
            store_backend=runtime_store.backend_name if runtime_store is not None else "document",
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": settings.app_name}

    app.include_router(router)
    return app


def run() -> None:
    """Console entry point: configure logging and serve with uvicorn."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    uvicorn.run(
        "gigconnect_api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


# Module-level app for `uvicorn gigconnect_api.main:app`.
app = create_app()
