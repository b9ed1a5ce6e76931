"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from suggestarr import __version__
from suggestarr.infrastructure.config import AppConfig
from suggestarr.interfaces.api.proxy.router import router as proxy_router
from suggestarr.interfaces.api.suggest.router import router as suggest_router
from suggestarr.interfaces.app_state import AppState
from suggestarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app (configuration only, no resource initialization).

    Resources (HTTP client, dispatcher) are created in lifespan().
    """
    app = FastAPI(
        title="Suggestarr",
        description="Search-suggestion retrieval across engines",
        version=__version__,
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    app.include_router(suggest_router)
    app.include_router(proxy_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
            )

    return app
