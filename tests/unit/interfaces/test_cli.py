"""Tests for the suggestarr command-line entrypoint."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from suggestarr.infrastructure.config import AppConfig
from suggestarr.interfaces.cli import cli


class TestParseArgs:
    def test_no_args_means_serve(self) -> None:
        args = cli._parse_args([])
        assert args.command == "serve"
        assert args.host is None

    def test_bare_options_mean_serve(self) -> None:
        args = cli._parse_args(["--port", "8080"])
        assert args.command == "serve"
        assert args.port == 8080

    def test_suggest_command(self) -> None:
        args = cli._parse_args(["suggest", "Google", "py thon", "--timeout", "1.5"])
        assert args.command == "suggest"
        assert args.engine == "Google"
        assert args.query == "py thon"
        assert args.timeout == 1.5


class TestLoad:
    def test_suggest_defaults_to_quiet_logging(self) -> None:
        config = cli._load(cli._parse_args(["suggest", "Bing", "x"]))
        assert config.log_level == "WARNING"

    def test_explicit_log_level_wins(self) -> None:
        args = cli._parse_args(["suggest", "Bing", "x", "--log-level", "DEBUG"])
        assert cli._load(args).log_level == "DEBUG"

    def test_timeout_maps_to_script_timeout(self) -> None:
        args = cli._parse_args(["suggest", "Bing", "x", "--timeout", "0.5"])
        assert cli._load(args).suggest.script_timeout_seconds == 0.5


class TestRunQuery:
    @pytest.mark.asyncio()
    async def test_blank_query_short_circuits(self) -> None:
        assert await cli.run_query(AppConfig(), "Google", "   ") == []

    @pytest.mark.asyncio()
    async def test_returns_engine_suggestions(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            name = request.url.params["callback"]
            return httpx.Response(200, text=f'{name}([{{"phrase": "python"}}])')

        def client_factory(config: AppConfig) -> httpx.AsyncClient:
            return httpx.AsyncClient(transport=httpx.MockTransport(handler))

        with patch.object(cli, "build_http_client", side_effect=client_factory):
            result = await cli.run_query(AppConfig(), "DuckDuckGo", "py")

        assert result == ["python"]


class TestStart:
    def test_suggest_prints_one_line_per_suggestion(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with (
            patch.object(cli, "configure_logging", return_value={}),
            patch.object(
                cli, "run_query", new=AsyncMock(return_value=["python", "pycharm"])
            ) as run_query,
        ):
            assert cli.start(["suggest", "Google", "py"]) == 0

        assert capsys.readouterr().out == "python\npycharm\n"
        assert run_query.await_args.args[1:] == ("Google", "py")

    def test_serve_runs_uvicorn(self) -> None:
        uvicorn_run = MagicMock()
        with (
            patch.object(cli, "configure_logging", return_value={"version": 1}),
            patch.object(cli.uvicorn, "run", uvicorn_run),
        ):
            assert cli.start(["serve", "--host", "127.0.0.1", "--port", "9999"]) == 0

        kwargs = uvicorn_run.call_args.kwargs
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 9999
        assert kwargs["log_config"] == {"version": 1}
