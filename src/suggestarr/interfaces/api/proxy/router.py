"""Same-origin proxy route used by the cancellable-fetch transport."""

from __future__ import annotations

from typing import cast

import httpx
import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from suggestarr.infrastructure.suggest.proxy import fetch_upstream_suggestions
from suggestarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["proxy"])


@router.get("/bilibili")
async def bilibili_proxy(request: Request, term: str = Query("")) -> JSONResponse:
    """Relay the upstream Bilibili suggestion payload verbatim."""
    state = cast(AppState, request.app.state)
    try:
        payload = await fetch_upstream_suggestions(
            state.http_client,
            state.config.suggest.bilibili_upstream_url,
            term,
        )
    except httpx.HTTPError as exc:
        log.warning("suggest_proxy_upstream_failed", error=str(exc))
        return JSONResponse(status_code=502, content={"code": -1})
    except ValueError:
        log.warning("suggest_proxy_upstream_not_json")
        return JSONResponse(status_code=502, content={"code": -1})

    return JSONResponse(content=payload)
