"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "suggestarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 5.0,
        "follow_redirects": True,
        "user_agent": "Suggestarr/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "suggest": {
        "script_timeout_seconds": 3.0,
        "proxy_base_url": "http://127.0.0.1:7979",
        "bilibili_upstream_url": "https://s.search.bilibili.com/main/suggest",
        "request_wait_seconds": 5.0,
    },
}
