"""Configuration loading utilities for the polling monitor."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import Any, Iterable, List

import yaml  # type: ignore

from .errors import ConfigError
from .monitor import DEFAULT_INTERVAL
from .snapshot import Predicate, accept_all

logger = logging.getLogger(__name__)

__all__ = ["ConfigError", "WatchConfig", "build_predicate", "load_config", "parse_interval"]


@dataclass
class WatchConfig:
    """Options describing which paths to watch and how often."""

    paths: List[Path] = field(default_factory=list)
    interval: float = DEFAULT_INTERVAL
    include_patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)

    def predicate(self) -> Predicate:
        return build_predicate(self.include_patterns, self.exclude_patterns)


def load_config(path: Path) -> WatchConfig:
    """Load and validate the YAML configuration file."""

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML configuration: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    config = _parse_monitor_config(data.get("monitor"), config_path=path)
    logger.debug("Loaded %s watched paths from %s", len(config.paths), path)
    return config


def parse_interval(value: Any, *, field_name: str = "monitor.interval") -> float:
    try:
        interval = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be numeric") from exc
    if interval <= 0:
        raise ConfigError(f"{field_name} must be positive")
    return interval


def build_predicate(include_patterns: Iterable[str] = (), exclude_patterns: Iterable[str] = ()) -> Predicate:
    """Build an inclusion predicate from name globs.

    Anything matching an exclude glob is rejected, directories included.
    Otherwise directories are kept so their contents can be scanned, and
    files are kept when there are no include globs or one of them matches.
    """

    include = list(include_patterns)
    exclude = list(exclude_patterns)
    if not include and not exclude:
        return accept_all

    def predicate(path: Path) -> bool:
        if exclude and _matches(path, exclude):
            return False
        if not include:
            return True
        if path.is_dir() and not path.is_symlink():
            return True
        return _matches(path, include)

    return predicate


def _matches(path: Path, patterns: List[str]) -> bool:
    name = path.name
    full = str(path)
    return any(fnmatch(name, pat) or fnmatch(full, pat) for pat in patterns)


def _parse_monitor_config(raw: Any, *, config_path: Path) -> WatchConfig:
    if not isinstance(raw, dict):
        raise ConfigError("'monitor' section must be a mapping")

    paths_raw = _ensure_str_list(raw.get("paths", []), "monitor.paths")
    paths: List[Path] = []
    for item in paths_raw:
        path = Path(item).expanduser()
        if not path.is_absolute():
            path = (config_path.parent / path).resolve()
        paths.append(path)

    interval = parse_interval(raw.get("interval", DEFAULT_INTERVAL))
    include_patterns = _ensure_str_list(raw.get("include_patterns", []), "monitor.include_patterns")
    exclude_patterns = _ensure_str_list(raw.get("exclude_patterns", []), "monitor.exclude_patterns")

    return WatchConfig(
        paths=paths,
        interval=interval,
        include_patterns=include_patterns,
        exclude_patterns=exclude_patterns,
    )


def _ensure_str_list(value: Any, field_name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"{field_name} must be a list of strings")
    items: List[str] = []
    for elem in value:
        if not isinstance(elem, str):
            raise ConfigError(f"{field_name} must contain only strings")
        items.append(elem)
    return items
