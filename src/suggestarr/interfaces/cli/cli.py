from __future__ import annotations

import argparse
import asyncio
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from suggestarr.domain.entities import SearchEngine
from suggestarr.infrastructure.config import AppConfig, load_config
from suggestarr.infrastructure.logging.setup import configure_logging
from suggestarr.interfaces.app import create_app
from suggestarr.interfaces.composition import build_dispatcher, build_http_client

log = structlog.get_logger(__name__)

_COMMANDS = frozenset({"serve", "suggest", "-h", "--help"})


def _add_config_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", default=None, help="Path to YAML config file.")
    parser.add_argument("--dotenv", default=None, help="Path to .env file.")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="suggestarr")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API (default).")
    serve.add_argument("--host", default=None, help="Bind host (overrides HOST env).")
    serve.add_argument(
        "--port", default=None, type=int, help="Bind port (overrides PORT env)."
    )
    _add_config_args(serve)

    query = sub.add_parser("suggest", help="Print suggestions for one query.")
    query.add_argument(
        "engine",
        help=f"Engine identifier ({', '.join(e.value for e in SearchEngine)}).",
    )
    query.add_argument("query", help="Query text.")
    query.add_argument(
        "--timeout",
        default=None,
        type=float,
        help="Override suggest.script_timeout_seconds.",
    )
    _add_config_args(query)

    argv = list(argv) if argv is not None else sys.argv[1:]
    # Bare `suggestarr [--port ...]` behaves like `suggestarr serve [...]`.
    if not argv or argv[0] not in _COMMANDS:
        argv = ["serve", *argv]
    return parser.parse_args(argv)


def _load(args: argparse.Namespace) -> AppConfig:
    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    elif args.command == "suggest":
        # Keep stdout for the suggestions themselves.
        cli_overrides["log_level"] = "WARNING"
    if args.log_format:
        cli_overrides["log_format"] = args.log_format
    if getattr(args, "timeout", None) is not None:
        cli_overrides["suggest_script_timeout_seconds"] = args.timeout

    return load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=cli_overrides,
    )


async def run_query(config: AppConfig, engine: str, query: str) -> list[str]:
    """One-shot retrieval with a private client and dispatcher."""
    async with build_http_client(config) as http_client:
        async with build_dispatcher(config, http_client) as dispatcher:
            future = dispatcher.fetch_suggestions(engine, query)
            try:
                return await asyncio.wait_for(
                    future, timeout=config.suggest.request_wait_seconds
                )
            except TimeoutError:
                return []


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Config is loaded exactly once here.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)
    config = _load(args)
    log_config = configure_logging(config)

    if args.command == "suggest":
        for suggestion in asyncio.run(run_query(config, args.engine, args.query)):
            print(suggestion)
        return 0

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", "7979"))

    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        log_config=log_config,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(start())
