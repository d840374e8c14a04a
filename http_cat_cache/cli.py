"""Command-line entry point."""
import argparse
import logging
import sys
from typing import Optional, Sequence

import uvicorn
from pydantic import ValidationError

from config import Settings
from http_cat_cache.main import create_app
from http_cat_cache.storage import StorageError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    # -h is the host flag, so help is only available as --help
    parser = argparse.ArgumentParser(
        prog="http-cat-cache",
        description="Caching proxy for status-code images.",
        add_help=False,
    )
    parser.add_argument("--help", action="help", help="show this help message and exit")
    parser.add_argument("-h", "--host", required=True, help="hostname for the server")
    parser.add_argument("-p", "--port", required=True, type=int, help="port number for the server")
    parser.add_argument("-c", "--cache", required=True, help="cache directory path")
    parser.add_argument("--origin-url", default=None, help="base URL of the image origin")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="logging level",
    )
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Build settings from parsed arguments; unset options fall back to env."""
    overrides = {"host": args.host, "port": args.port, "cache_dir": args.cache}
    if args.origin_url is not None:
        overrides["origin_url"] = args.origin_url
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    return Settings(**overrides)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return 2

    settings.configure_logging()

    try:
        app = create_app(settings)
    except StorageError as e:
        logger.error(f"Cannot use cache directory {settings.cache_dir}: {e}")
        return 1

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
