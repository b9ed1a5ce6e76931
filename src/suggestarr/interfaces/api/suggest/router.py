"""Suggestion API endpoints."""

from __future__ import annotations

import asyncio
from typing import Any, cast

import structlog
from fastapi import APIRouter, Query, Request

from suggestarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["suggest"])


@router.get("/engines")
async def list_engines(request: Request) -> dict[str, list[str]]:
    state = cast(AppState, request.app.state)
    return {"engines": [e.value for e in state.dispatcher.supported_engines()]}


@router.get("/suggest")
async def suggest(
    request: Request,
    engine: str = Query(..., description="Engine identifier, e.g. 'Google'."),
    q: str = Query("", description="Raw query text as typed."),
) -> dict[str, Any]:
    """Return the engine's suggestions for *q* (empty list on any failure).

    A request superseded by an identical newer one never resolves; the
    wait is capped at ``suggest.request_wait_seconds``.
    """
    state = cast(AppState, request.app.state)
    future = state.dispatcher.fetch_suggestions(engine, q)
    try:
        suggestions = await asyncio.wait_for(
            future, timeout=state.config.suggest.request_wait_seconds
        )
    except TimeoutError:
        log.debug("suggest_wait_expired", engine=engine)
        suggestions = []

    return {"engine": engine, "query": q, "suggestions": suggestions}
