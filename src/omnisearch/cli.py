"""CLI entry point for the OmniSearch server."""

from __future__ import annotations

import argparse
import os
import socket
import sys
from pathlib import Path

CONFIG_ENV_VAR = "OMNISEARCH_CONFIG_FILE"


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point for the OmniSearch server."""
    parser = build_parser()
    args = parser.parse_args(argv)

    from omnisearch.config.settings import Settings
    from omnisearch.observability.logging import setup_logging

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        # Worker processes rebuild settings through the app factory
        os.environ[CONFIG_ENV_VAR] = str(config_path.resolve())
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    # Apply CLI overrides
    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port
    if args.workers:
        settings.server.workers = args.workers
    if args.log_level:
        settings.observability.log_level = args.log_level
        os.environ["OMNISEARCH_OBSERVABILITY__LOG_LEVEL"] = args.log_level

    setup_logging(settings.observability)

    # Check port availability before starting
    _check_port(settings.server.host, settings.server.port)

    import uvicorn

    uvicorn.run(
        "omnisearch.api.app:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        workers=settings.server.workers if not args.reload else 1,
        reload=args.reload,
        log_level=settings.observability.log_level.lower(),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="omnisearch",
        description="OmniSearch — Federated search server",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Server bind address (overrides config)",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=None,
        help="Server port (overrides config)",
    )
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=None,
        help="Number of worker processes",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"OmniSearch {_get_version()}",
    )
    return parser


def _check_port(host: str, port: int) -> None:
    """Exit with a message if the port is already taken."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind((host if host != "0.0.0.0" else "127.0.0.1", port))
    except OSError:
        print(f"Error: Port {port} is already in use. Run 'lsof -i :{port}' to find the process.", file=sys.stderr)
        sys.exit(1)
    finally:
        sock.close()


def _get_version() -> str:
    from omnisearch import __version__

    return __version__


if __name__ == "__main__":
    main()
