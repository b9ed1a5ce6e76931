"""Shared test fixtures for Suggestarr test suite."""

from __future__ import annotations

import pytest

from suggestarr.infrastructure.config import AppConfig
from suggestarr.infrastructure.suggest.script_host import CallbackNamespace


@pytest.fixture()
def namespace() -> CallbackNamespace:
    return CallbackNamespace()


@pytest.fixture()
def app_config() -> AppConfig:
    """Validated config with short timeouts for tests."""
    return AppConfig.model_validate(
        {
            "environment": "test",
            "suggest": {
                "script_timeout_seconds": 0.2,
                "proxy_base_url": "http://proxy.test",
                "bilibili_upstream_url": "https://upstream.test/main/suggest",
                "request_wait_seconds": 0.5,
            },
        }
    )
