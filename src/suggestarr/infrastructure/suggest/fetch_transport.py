"""Cancellable-fetch suggestion transport (same-origin proxy).

Requests are keyed by ``engine|query``.  Issuing a request under a key
that still has one in flight cancels the older one; the older caller's
future is then intentionally left pending forever, since that caller is
assumed to have moved on.  Requests under different keys never interact.
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any

import httpx
import structlog

from suggestarr.domain.entities.suggestion import (
    DiagnosticHook,
    SearchEngine,
    SuggestionDiagnostic,
    request_key,
)
from suggestarr.infrastructure.suggest.normalizers import normalize
from suggestarr.infrastructure.suggest.urls import build_proxy_url

log = structlog.get_logger(__name__)


class CancellableFetchTransport:
    """Fetch proxied suggestions with per-key request superseding.

    Not thread-safe; safe for single-threaded asyncio (the registry is
    only mutated synchronously, before any await).
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        proxy_base_url: str,
        on_diagnostic: DiagnosticHook | None = None,
    ) -> None:
        self._http = http_client
        self._proxy_base_url = proxy_base_url
        self._on_diagnostic = on_diagnostic
        self._pending: dict[str, asyncio.Task[Any]] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_pending(self, engine: SearchEngine, query: str) -> bool:
        return request_key(engine, query) in self._pending

    def fetch(self, engine: SearchEngine, query: str) -> asyncio.Future[list[str]]:
        loop = asyncio.get_running_loop()
        result: asyncio.Future[list[str]] = loop.create_future()
        url = build_proxy_url(self._proxy_base_url, query)
        key = request_key(engine, query)

        previous = self._pending.get(key)
        if previous is not None and not previous.done():
            log.debug("suggest_fetch_superseded", key=key)
            previous.cancel()

        request = loop.create_task(self._get_json(url))
        self._pending[key] = request
        request.add_done_callback(
            functools.partial(self._on_settled, engine, query, key, result)
        )
        result.add_done_callback(functools.partial(self._on_abandoned, request))
        return result

    async def aclose(self) -> None:
        """Cancel every in-flight request (their futures stay pending)."""
        tasks = list(self._pending.values())
        for task in tasks:
            task.cancel()
        self._pending.clear()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_json(self, url: str) -> Any:
        resp = await self._http.get(url)
        resp.raise_for_status()
        return resp.json()

    def _on_settled(
        self,
        engine: SearchEngine,
        query: str,
        key: str,
        result: asyncio.Future[list[str]],
        request: asyncio.Task[Any],
    ) -> None:
        # A superseded request must not evict its successor.
        if self._pending.get(key) is request:
            del self._pending[key]

        if request.cancelled():
            return

        exc = request.exception()
        if exc is not None:
            if isinstance(exc, httpx.HTTPError):
                log.debug("suggest_fetch_failed", key=key, error=str(exc))
                self._report(engine, query, "http_error", exc)
            else:
                log.debug("suggest_fetch_unparseable", key=key, error=str(exc))
                self._report(engine, query, "parse_error", exc)
            suggestions: list[str] = []
        else:
            suggestions = normalize(engine, request.result())

        if not result.done():
            result.set_result(suggestions)

    @staticmethod
    def _on_abandoned(
        request: asyncio.Task[Any], result: asyncio.Future[list[str]]
    ) -> None:
        if result.cancelled() and not request.done():
            request.cancel()

    def _report(
        self,
        engine: SearchEngine,
        query: str,
        reason: str,
        exc: BaseException,
    ) -> None:
        if self._on_diagnostic is None:
            return
        try:
            self._on_diagnostic(
                SuggestionDiagnostic(
                    engine=engine.value,
                    query=query,
                    transport="fetch",
                    reason=reason,
                    error=f"{type(exc).__name__}: {exc}",
                )
            )
        except Exception:
            log.warning("suggest_diagnostic_hook_failed", exc_info=True)
