"""Suggestion dispatcher: the public retrieval entry point."""

from __future__ import annotations

import asyncio
from types import TracebackType

import structlog

from suggestarr.domain.entities.suggestion import (
    FETCH_ENGINES,
    SCRIPT_ENGINES,
    SearchEngine,
)
from suggestarr.domain.ports import SuggestionTransportPort

log = structlog.get_logger(__name__)


def _resolved(value: list[str]) -> asyncio.Future[list[str]]:
    future: asyncio.Future[list[str]] = asyncio.get_running_loop().create_future()
    future.set_result(value)
    return future


class SuggestionDispatcher:
    """Route suggestion requests to the transport that serves the engine.

    ``fetch_suggestions`` never raises and never resolves with an
    exception: blank queries, unknown engines and every internal failure
    come back as an empty list.  The only future that stays pending is a
    proxied request superseded by an identical newer one.
    """

    def __init__(
        self,
        *,
        fetch_transport: SuggestionTransportPort,
        script_transport: SuggestionTransportPort,
    ) -> None:
        self._fetch = fetch_transport
        self._script = script_transport

    @staticmethod
    def supported_engines() -> list[SearchEngine]:
        return [e for e in SearchEngine if e in FETCH_ENGINES or e in SCRIPT_ENGINES]

    def fetch_suggestions(
        self, engine: SearchEngine | str, query: str
    ) -> asyncio.Future[list[str]]:
        """Start retrieval; must be called from inside a running event loop."""
        if not query or not query.strip():
            return _resolved([])

        parsed = SearchEngine.parse(engine)
        if parsed is None:
            log.debug("suggest_engine_unsupported", engine=str(engine))
            return _resolved([])

        try:
            if parsed in FETCH_ENGINES:
                return self._fetch.fetch(parsed, query)
            if parsed in SCRIPT_ENGINES:
                return self._script.fetch(parsed, query)
        except Exception:
            log.warning("suggest_dispatch_failed", engine=parsed.value, exc_info=True)
            return _resolved([])

        log.debug("suggest_engine_unrouted", engine=parsed.value)
        return _resolved([])

    async def aclose(self) -> None:
        """Dispose both transports and everything they still hold."""
        try:
            await self._fetch.aclose()
        finally:
            await self._script.aclose()

    async def __aenter__(self) -> SuggestionDispatcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
