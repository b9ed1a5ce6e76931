"""Tests for the structlog/uvicorn logging config builder."""

from __future__ import annotations

import logging

import structlog

from suggestarr.infrastructure.config import AppConfig
from suggestarr.infrastructure.logging.setup import (
    BASE_LOGGING_CONFIG,
    _drop_color_message,
    _LevelRangeFilter,
    build_logging_config,
)


def _record(level: int) -> logging.LogRecord:
    return logging.LogRecord("t", level, __file__, 1, "msg", None, None)


class TestBuildLoggingConfig:
    def test_applies_level_everywhere(self) -> None:
        cfg = build_logging_config(AppConfig(log_level="DEBUG"))
        assert cfg["root"]["level"] == "DEBUG"
        assert {c["level"] for c in cfg["loggers"].values()} == {"DEBUG"}

    def test_base_config_is_not_mutated(self) -> None:
        build_logging_config(AppConfig(log_level="ERROR"))
        assert BASE_LOGGING_CONFIG["formatters"] == {}
        assert "root" not in BASE_LOGGING_CONFIG

    def test_prod_renders_json(self) -> None:
        cfg = build_logging_config(AppConfig(environment="prod"))
        renderer = cfg["formatters"]["structlog"]["processors"][-1]
        assert isinstance(renderer, structlog.processors.JSONRenderer)

    def test_dev_renders_console(self) -> None:
        cfg = build_logging_config(AppConfig(environment="dev"))
        renderer = cfg["formatters"]["structlog"]["processors"][-1]
        assert isinstance(renderer, structlog.dev.ConsoleRenderer)


class TestProcessors:
    def test_drop_color_message(self) -> None:
        event = {"event": "x", "color_message": "\x1b[1mx"}
        assert _drop_color_message(None, None, event) == {"event": "x"}


class TestLevelRangeFilter:
    def test_stdout_range(self) -> None:
        f = _LevelRangeFilter(max_level=logging.WARNING)
        assert f.filter(_record(logging.INFO))
        assert f.filter(_record(logging.WARNING))
        assert not f.filter(_record(logging.ERROR))

    def test_stderr_range(self) -> None:
        f = _LevelRangeFilter(min_level=logging.ERROR)
        assert not f.filter(_record(logging.WARNING))
        assert f.filter(_record(logging.CRITICAL))
