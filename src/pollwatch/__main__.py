"""Command-line entry point: print a line for every change under the given paths."""
from __future__ import annotations

import argparse
import logging
import os
import time
from pathlib import Path
from typing import List, Optional, Sequence

from .config import ConfigError, WatchConfig, load_config, parse_interval
from .errors import SchedulingError
from .listeners import ChangeReporter, Listener
from .monitor import Monitor, MonitorState
from .observer import Observer

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pollwatch",
        description="Watch files and directories for changes and print C/M/D lines",
    )
    parser.add_argument("paths", nargs="*", help="Files or directories to watch")
    parser.add_argument("--config", help="Optional YAML configuration file")
    parser.add_argument(
        "--interval",
        help="Seconds between scans (default: 5, or the configured value)",
    )
    parser.add_argument(
        "--include",
        action="append",
        default=[],
        metavar="GLOB",
        help="Only report files whose name matches GLOB (repeatable)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="GLOB",
        help="Skip entries whose name matches GLOB (repeatable)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> WatchConfig:
    """Merge the optional configuration file with command-line overrides."""

    config = load_config(Path(args.config)) if args.config else WatchConfig()
    if args.paths:
        config.paths = [Path(os.path.abspath(path)) for path in args.paths]
    if args.interval is not None:
        config.interval = parse_interval(args.interval, field_name="--interval")
    if args.include:
        config.include_patterns = list(args.include)
    if args.exclude:
        config.exclude_patterns = list(args.exclude)
    if not config.paths:
        raise ConfigError("No paths to watch; pass them as arguments or in monitor.paths")
    return config


def build_monitor(config: WatchConfig, listener: Listener) -> Monitor:
    """One observer per path, all sharing ``listener`` and a single monitor."""

    predicate = config.predicate()
    monitor = Monitor(config.interval)
    for path in config.paths:
        observer = Observer(path, predicate)
        observer.add_listener(listener)
        monitor.add_observer(observer)
    return monitor


def report_watched(observers: Sequence[Observer]) -> None:
    for observer in observers:
        logger.info("watching path: %s", os.path.realpath(observer.root))


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    try:
        config = resolve_config(args)
    except ConfigError as exc:
        logging.error("%s", exc)
        raise SystemExit(2) from exc

    monitor = build_monitor(config, ChangeReporter())
    report_watched(monitor.observers)

    try:
        monitor.start()
    except SchedulingError as exc:
        logging.error("%s", exc)
        raise SystemExit(1) from exc

    try:
        while monitor.state is MonitorState.RUNNING:
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("Monitor interrupted by user")
    finally:
        monitor.stop()


if __name__ == "__main__":
    main()
