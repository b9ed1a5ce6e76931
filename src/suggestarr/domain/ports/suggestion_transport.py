"""Port for suggestion retrieval transports."""

from __future__ import annotations

import asyncio
from typing import Protocol

from suggestarr.domain.entities.suggestion import SearchEngine


class SuggestionTransportPort(Protocol):
    """Non-blocking retrieval of suggestions for one engine.

    Implementations:
      - CancellableFetchTransport (same-origin proxy, per-key superseding)
      - ScriptCallbackTransport (script injection + named callback)

    ``fetch`` must be called from inside a running event loop. The
    returned future is only ever resolved with a list, never with an
    exception.
    """

    def fetch(self, engine: SearchEngine, query: str) -> asyncio.Future[list[str]]:
        """Start retrieval and return the eventual suggestion list."""
        ...

    async def aclose(self) -> None:
        """Release every registry entry owned by the transport."""
        ...
