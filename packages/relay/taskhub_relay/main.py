"""
Relay entry point.

Loads configuration, configures logging and serves the aiohttp app.
"""

from __future__ import annotations

import argparse
import sys

import structlog
from aiohttp import web

from taskhub_shared.log import configure_logging

from .config import DEFAULT_CONFIG_PATH, load_config
from .http import create_app


def run() -> None:
    """CLI entry point for the relay."""
    parser = argparse.ArgumentParser(description="Taskhub realtime relay")
    parser.add_argument(
        "-c", "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--host", help="Override server.host")
    parser.add_argument("--port", type=int, help="Override server.port")
    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port

    configure_logging(config.logging.level, config.logging.format)
    log = structlog.get_logger()
    if config.auth.required and not config.auth.secret:
        log.error("relay.missing_auth_secret", env=config.auth.secret_env)
        sys.exit(1)

    log.info(
        "relay.starting",
        host=config.server.host,
        port=config.server.port,
        redis=bool(config.redis_url),
        auth_required=config.auth.required,
    )
    web.run_app(create_app(config), host=config.server.host, port=config.server.port, print=None)


if __name__ == "__main__":
    run()
