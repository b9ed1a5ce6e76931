"""Domain entities for search-suggestion retrieval.

Pure value objects: no framework dependencies, no I/O.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Union

TransportName = Literal["fetch", "script"]


class SearchEngine(str, Enum):
    """Known suggestion providers (value = public engine identifier)."""

    BILIBILI = "Bilibili"
    GOOGLE = "Google"
    BAIDU = "Baidu"
    BING = "Bing"
    DUCKDUCKGO = "DuckDuckGo"

    @classmethod
    def parse(cls, value: SearchEngine | str) -> SearchEngine | None:
        """Return the engine for an exact identifier match, else ``None``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# Engine served through the same-origin proxy (cancellable fetch path).
FETCH_ENGINES: frozenset[SearchEngine] = frozenset({SearchEngine.BILIBILI})

# Engines that only speak the script-injection callback protocol.
SCRIPT_ENGINES: frozenset[SearchEngine] = frozenset(
    {
        SearchEngine.GOOGLE,
        SearchEngine.BAIDU,
        SearchEngine.BING,
        SearchEngine.DUCKDUCKGO,
    }
)


def request_key(engine: SearchEngine, query: str) -> str:
    """Registry key for one logical request (raw query, not trimmed)."""
    return f"{engine.value}|{query}"


@dataclass(frozen=True)
class CallbackResolved:
    """The injected script invoked its callback with *payload*."""

    payload: Any


@dataclass(frozen=True)
class CallbackTimedOut:
    """No callback arrived within the timeout window."""


@dataclass(frozen=True)
class ScriptLoadFailed:
    """The script element reported a load error."""


@dataclass(frozen=True)
class TransportClosed:
    """The owning transport was disposed while the request was outstanding."""


CallbackOutcome = Union[
    CallbackResolved, CallbackTimedOut, ScriptLoadFailed, TransportClosed
]


@dataclass(frozen=True)
class SuggestionDiagnostic:
    """Why a request degraded to an empty suggestion list."""

    engine: str
    query: str
    transport: TransportName
    reason: str  # "timeout", "load_error", "http_error", "parse_error", ...
    error: str | None = None


DiagnosticHook = Callable[[SuggestionDiagnostic], None]
