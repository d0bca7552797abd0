"""
zippack - Main entry point.

Loads configuration, sets up logging and runs the Packer.

Usage:
    zippack [--config config.toml] [--log-level DEBUG] [--log-format json]
    python -m zippack.main

Settings not given on the command line come from ZIPPACK_* environment
variables. See config.py for the configuration document format.

Exit codes:
    0  Every archive set was written
    1  Configuration error, nothing was written
    2  Filesystem or codec error, the run was aborted
"""

from __future__ import annotations

import argparse
import logging
import sys

import json_log_formatter

from .config import PackerConfig, PackerSettings
from .errors import ConfigError, PackerError
from .packer import Packer

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_RUN_ERROR = 2


def setup_logging(level_name: str, log_format: str) -> None:
    """Configure the root logger.

    Args:
        level_name: Logging level name (DEBUG, INFO, WARNING, ERROR)
        log_format: 'json' for JSON lines, anything else for text
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    if log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zippack",
        description="Pack a directory tree into named, size-bounded ZIP archive sets",
    )
    parser.add_argument("--config", "-c", help="Configuration file (TOML or YAML)")
    parser.add_argument("--log-level", help="Logging level")
    parser.add_argument("--log-format", choices=["text", "json"], help="Log format")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="No progress output")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    settings = PackerSettings()

    level = "DEBUG" if args.verbose else (args.log_level or settings.log_level)
    setup_logging(level, args.log_format or settings.log_format)

    config_path = args.config or settings.config_file
    try:
        config = PackerConfig.from_file(config_path)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}", extra={"source": e.source})
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    config.log_config()

    try:
        Packer(config, echo=not args.quiet).run()
    except PackerError as e:
        logger.error(f"Packing failed: {e}", exc_info=True, extra={"code": e.code, **e.details})
        print(f"Packing failed: {e}", file=sys.stderr)
        return EXIT_RUN_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
