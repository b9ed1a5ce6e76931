"""Outbound URL templates for suggestion endpoints."""

from __future__ import annotations

from urllib.parse import quote

from suggestarr.domain.entities.suggestion import SearchEngine

# Characters JavaScript's encodeURIComponent leaves untouched.
_URI_COMPONENT_SAFE = "-_.!~*'()"

PROXY_PATH = "/bilibili"

SCRIPT_URL_TEMPLATES: dict[SearchEngine, str] = {
    # client=youtube is the only public client that honours jsonp=
    SearchEngine.GOOGLE: (
        "https://suggestqueries.google.com/complete/search"
        "?client=youtube&q={query}&jsonp={callback}"
    ),
    SearchEngine.BAIDU: (
        "https://sp0.baidu.com/5a1Fazu8AA54nxGko9WTAnF6hhy/su?wd={query}&cb={callback}"
    ),
    SearchEngine.BING: (
        "https://api.bing.com/osjson.aspx"
        "?query={query}&JsonType=callback&JsonCallback={callback}"
    ),
    SearchEngine.DUCKDUCKGO: (
        "https://duckduckgo.com/ac/?q={query}&callback={callback}&type=list"
    ),
}


def encode_uri_component(value: str) -> str:
    """Percent-encode *value* like ``encodeURIComponent`` (UTF-8)."""
    return quote(value, safe=_URI_COMPONENT_SAFE)


def build_proxy_url(proxy_base_url: str, query: str) -> str:
    """``{base}/bilibili?term=<query>`` for the same-origin proxy."""
    return f"{proxy_base_url.rstrip('/')}{PROXY_PATH}?term={encode_uri_component(query)}"


def build_script_url(engine: SearchEngine, query: str, callback_name: str) -> str:
    """Fully-qualified JSONP URL for *engine*.

    Raises ``KeyError`` for engines without a script endpoint.
    """
    template = SCRIPT_URL_TEMPLATES[engine]
    return template.format(
        query=encode_uri_component(query),
        callback=callback_name,
    )
