"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from suggestarr.application.use_cases import SuggestionDispatcher
from suggestarr.domain.entities import DiagnosticHook, SuggestionDiagnostic
from suggestarr.infrastructure.config import AppConfig
from suggestarr.infrastructure.suggest import (
    CallbackNamespace,
    CancellableFetchTransport,
    ScriptCallbackTransport,
    ScriptHost,
)
from suggestarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def _log_diagnostic(diagnostic: SuggestionDiagnostic) -> None:
    log.debug(
        "suggest_degraded",
        engine=diagnostic.engine,
        transport=diagnostic.transport,
        reason=diagnostic.reason,
        error=diagnostic.error,
    )


def build_http_client(config: AppConfig) -> httpx.AsyncClient:
    """Shared HTTP client for transports and the proxy route."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )


def build_dispatcher(
    config: AppConfig,
    http_client: httpx.AsyncClient,
    *,
    on_diagnostic: DiagnosticHook | None = _log_diagnostic,
) -> SuggestionDispatcher:
    """Wire both transports around *http_client*.

    Each call creates fresh registries (pending fetches, callback
    namespace, script host), so dispatchers never share state.
    """
    fetch_transport = CancellableFetchTransport(
        http_client=http_client,
        proxy_base_url=config.suggest.proxy_base_url,
        on_diagnostic=on_diagnostic,
    )
    script_transport = ScriptCallbackTransport(
        host=ScriptHost(http_client=http_client, namespace=CallbackNamespace()),
        timeout_seconds=config.suggest.script_timeout_seconds,
        on_diagnostic=on_diagnostic,
    )
    return SuggestionDispatcher(
        fetch_transport=fetch_transport,
        script_transport=script_transport,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: initialize and clean up all resources.

    Order matters:
        1. HTTP Client (required by transports and the proxy route)
        2. Dispatcher (owns both transports)
    """
    state = cast(AppState, app.state)
    config = state.config

    state.http_client = build_http_client(config)
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    state.dispatcher = build_dispatcher(config, state.http_client)
    log.info(
        "dispatcher_initialized",
        engines=[e.value for e in state.dispatcher.supported_engines()],
        proxy_base_url=config.suggest.proxy_base_url,
    )

    try:
        yield
    finally:
        await state.dispatcher.aclose()
        await state.http_client.aclose()
        log.info("app_shutdown")
