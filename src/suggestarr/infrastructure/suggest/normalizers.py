"""Per-engine payload normalization.

Each engine answers with its own JSON shape.  The ``_extract_*`` helpers
are strict (they raise ``PayloadShapeError`` on anything unexpected);
:func:`normalize` is the lenient public entry point that degrades every
failure to an empty list.

Suggestion order is the engine's relevance order and is passed through
verbatim: no dedup, no trimming, no case folding.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from suggestarr.domain.entities.suggestion import SearchEngine

log = structlog.get_logger(__name__)


class PayloadShapeError(ValueError):
    """Raised when an engine payload does not have the documented shape."""


def _expect(value: Any, kind: type | tuple[type, ...], what: str) -> Any:
    if not isinstance(value, kind):
        raise PayloadShapeError(f"{what}: expected {kind}, got {type(value).__name__}")
    return value


def _extract_bilibili(payload: Any) -> list[str]:
    # {"code": 0, "result": {"tag": [{"value": "..."}, ...]}}
    data = _expect(payload, dict, "payload")
    code = data.get("code")
    # JSON false must not count as success code 0.
    if isinstance(code, bool) or code != 0:
        return []
    result = data.get("result")
    if not isinstance(result, dict) or result.get("tag") is None:
        return []
    tags = _expect(result["tag"], list, "result.tag")
    return [_expect(item, dict, "tag entry")["value"] for item in tags]


def _extract_google(payload: Any) -> list[str]:
    # ["query", ["sug", ["sug", 0, [512]], ...], {...}]
    data = _expect(payload, list, "payload")
    entries = _expect(data[1], list, "payload[1]")
    return [entry[0] if isinstance(entry, list) else entry for entry in entries]


def _extract_baidu(payload: Any) -> list[str]:
    # {"q": "query", "p": false, "s": ["sug", ...]}
    data = _expect(payload, dict, "payload")
    return list(_expect(data["s"], list, "s"))


def _extract_bing(payload: Any) -> list[str]:
    # ["query", ["sug", ...]]
    data = _expect(payload, list, "payload")
    return list(_expect(data[1], list, "payload[1]"))


def _extract_duckduckgo(payload: Any) -> list[str]:
    # [{"phrase": "sug"}, ...]
    data = _expect(payload, list, "payload")
    return [_expect(item, dict, "entry")["phrase"] for item in data]


_EXTRACTORS: dict[SearchEngine, Callable[[Any], list[str]]] = {
    SearchEngine.BILIBILI: _extract_bilibili,
    SearchEngine.GOOGLE: _extract_google,
    SearchEngine.BAIDU: _extract_baidu,
    SearchEngine.BING: _extract_bing,
    SearchEngine.DUCKDUCKGO: _extract_duckduckgo,
}


def supported_engines() -> frozenset[SearchEngine]:
    """Engines with a known payload shape."""
    return frozenset(_EXTRACTORS)


def extract(engine: SearchEngine, payload: Any) -> list[str]:
    """Strict extraction; raises on unknown engines and malformed payloads."""
    extractor = _EXTRACTORS.get(engine)
    if extractor is None:
        raise PayloadShapeError(f"no payload shape known for engine {engine!r}")
    return extractor(payload)


def normalize(engine: SearchEngine, payload: Any) -> list[str]:
    """Map *payload* to the ordered suggestion list, or ``[]`` on any failure."""
    try:
        return extract(engine, payload)
    except Exception as exc:
        log.debug(
            "suggest_payload_unparseable",
            engine=engine.value,
            error=f"{type(exc).__name__}: {exc}",
        )
        return []
