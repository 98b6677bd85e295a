"""
Command-line interface for the devwatch build orchestrator.

This module provides the main CLI entry point: it parses arguments, loads
and validates the configuration, selects the packages to watch and runs a
watch session until it is interrupted.
"""

import argparse
import dataclasses
import logging
import sys
import tomllib
from pathlib import Path
from typing import List, Optional

from .. import __version__
from ..config import get_config, set_config_path
from ..models.config import AppConfig
from ..orchestration.signal_handler import SignalHandler
from ..validation import (
    SetupError,
    ValidationError,
    handle_cli_error,
    validate_package_name,
    validate_positive_integer,
)
from ..workspace.registry import PackageRegistry
from .orchestrator import WatchRunner

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        stream=sys.stdout,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devwatch",
        description="Build every package, then rebuild packages as their sources change.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to the configuration file. Defaults to ./devwatch.toml.",
    )
    parser.add_argument(
        "-p",
        "--package",
        dest="packages",
        action="append",
        default=[],
        metavar="PACKAGE",
        help="Only watch and build this package. May be given more than once.",
    )
    parser.add_argument(
        "--quiet-window",
        type=int,
        metavar="MS",
        help="Override the debounce quiet window in milliseconds.",
    )
    parser.add_argument(
        "--no-initial-build",
        action="store_true",
        help="Skip building all packages at startup.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Build every package once and exit; the exit code reports failures.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """
    Return ``config`` with command-line overrides applied.

    Raises:
        ValidationError: If an override value is invalid
    """
    watch = config.watch
    if args.quiet_window is not None:
        quiet_window = validate_positive_integer(
            args.quiet_window, min_value=0, max_value=60000, field_name="--quiet-window"
        )
        watch = dataclasses.replace(watch, quiet_window_ms=quiet_window)
    if args.no_initial_build:
        watch = dataclasses.replace(watch, skip_initial_build=True)
    return dataclasses.replace(config, watch=watch)


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for devwatch.

    Raises:
        SystemExit: Always; with 0 after a clean shutdown, 1 on setup failures
            and, with --once, 1 if any build failed.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.once and args.no_initial_build:
        parser.error("--once cannot be combined with --no-initial-build")

    setup_logging(args.verbose)
    logger.info(f"Starting devwatch {__version__}")

    if args.config is not None:
        set_config_path(args.config)

    try:
        app_config = apply_overrides(get_config(), args)
    except (FileNotFoundError, KeyError, ValidationError, tomllib.TOMLDecodeError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            include_traceback=False,
            logger=logger,
        )

    try:
        registry = PackageRegistry.from_config(app_config)
        if args.packages:
            names = []
            for name in args.packages:
                names.append(validate_package_name(name, existing_names=names, field_name="--package argument"))
            registry = registry.restrict(names)
    except (SetupError, ValidationError) as e:
        handle_cli_error(
            error=e,
            context="package selection",
            exit_code=1,
            include_traceback=False,
            logger=logger,
        )

    runner = WatchRunner(app_config, registry=registry, once=args.once)
    with SignalHandler(runner.request_shutdown):
        exit_code = runner.run()

    logger.info(f"devwatch finished with exit code {exit_code}")
    sys.exit(exit_code)


if __name__ == "__main__":
    main_cli()
