"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

import httpx
from starlette.datastructures import State

from suggestarr.application.use_cases import SuggestionDispatcher
from suggestarr.infrastructure.config import AppConfig


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure (shared by both transports and the proxy route)
    http_client: httpx.AsyncClient

    # Application Services
    dispatcher: SuggestionDispatcher
