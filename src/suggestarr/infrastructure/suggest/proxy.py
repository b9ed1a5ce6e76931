"""Same-origin proxy helper for the Bilibili suggestion endpoint.

The cancellable-fetch transport talks to ``/bilibili?term=...`` on our
own origin; this helper performs the upstream request for that route.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

log = structlog.get_logger(__name__)


async def fetch_upstream_suggestions(
    http_client: httpx.AsyncClient,
    upstream_url: str,
    term: str,
) -> Any:
    """GET ``{upstream_url}?term=<term>`` and return the decoded JSON body.

    Raises ``httpx.HTTPError`` on transport errors and non-2xx responses,
    ``ValueError`` when the body is not JSON.
    """
    resp = await http_client.get(upstream_url, params={"term": term})
    resp.raise_for_status()
    log.debug("suggest_proxy_upstream", status=resp.status_code, term_length=len(term))
    return resp.json()
