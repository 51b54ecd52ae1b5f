"""
Perfumery - command line entry point.

    perfumery serve [--host HOST] [--port PORT] [--reload]
    perfumery check-config
"""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn

from perfumery.auth.tokens import TokenService
from perfumery.config import get_settings
from perfumery.core.errors import ConfigurationError

logger = logging.getLogger("perfumery")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def check_config() -> int:
    """Validate settings that would otherwise abort startup."""
    settings = get_settings()
    try:
        TokenService.from_settings(settings)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Token lifetime: {settings.jwt_expire_days} days")
    logger.info(
        "Google OAuth: "
        + ("configured" if settings.google_oauth_client_id else "not configured")
    )
    logger.info("Admin bootstrap: " + ("enabled" if settings.bootstrap_admin else "disabled"))
    return 0


def serve(host: str, port: int, reload: bool) -> int:
    if check_config():
        return 1

    uvicorn.run(
        "perfumery.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=get_settings().log_level.lower(),
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="perfumery", description=__doc__.splitlines()[1])
    subcommands = parser.add_subparsers(dest="command", required=True)

    serve_cmd = subcommands.add_parser("serve", help="Run the API server")
    serve_cmd.add_argument("--host", default=settings.api_host)
    serve_cmd.add_argument("--port", type=int, default=settings.api_port)
    serve_cmd.add_argument("--reload", action="store_true")

    subcommands.add_parser("check-config", help="Validate configuration and exit")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().log_level)

    if args.command == "serve":
        return serve(args.host, args.port, args.reload)
    return check_config()


if __name__ == "__main__":
    sys.exit(main())
