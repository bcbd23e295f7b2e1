"""Runtime configuration: YAML config file merged with CLI overrides.

CLI flags take precedence over the config file, which takes precedence over
the defaults in ``Constants``. The config file may hold the options at its
top level or under an ``offline_sources:`` section.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

import yaml

from constants import Constants
from graph.models import GroupFilter

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """The configuration is incomplete or invalid."""


@dataclass
class GeneratorConfig:
    """Options for one run."""

    output: str
    graph: str
    download_directory: str = Constants.DEFAULT_DOWNLOAD_DIRECTORY
    include: Optional[frozenset] = None
    exclude: frozenset = frozenset()
    workers: int = Constants.MAX_WORKERS
    log_level: Optional[str] = None
    log_file: Optional[str] = None

    @property
    def group_filter(self) -> GroupFilter:
        return GroupFilter(include=self.include, exclude=self.exclude)


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Load the options mapping from a YAML file.

    Raises:
        ConfigError: file missing, unreadable, or not a mapping.
    """
    if not path:
        return {}
    if not os.path.isfile(path):
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    section = data.get(Constants.CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigError(f"'{Constants.CONFIG_SECTION}' in {path} must be a mapping")
    return section


def _names(value: Any, key: str) -> Optional[frozenset]:
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, Iterable) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of configuration names")
    return frozenset(value)


def build_config(args) -> GeneratorConfig:
    """Merge parsed CLI arguments with the optional config file.

    Raises:
        ConfigError: missing required options or invalid values.
    """
    file_opts = load_config_file(getattr(args, "CONFIG", None))

    def pick(attr: str, key: str, default: Any = None) -> Any:
        value = getattr(args, attr, None)
        if value is not None:
            return value
        return file_opts.get(key, default)

    output = pick("OUTPUT", "output")
    graph = pick("GRAPH", "graph")
    if not output:
        raise ConfigError("An output file is required (--output or 'output' in the config file)")
    if not graph:
        raise ConfigError("A build graph export is required (--graph or 'graph' in the config file)")

    workers = pick("WORKERS", "workers", Constants.MAX_WORKERS)
    try:
        workers = int(workers)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'workers' must be an integer, got {workers!r}") from exc
    if workers < 1:
        raise ConfigError("'workers' must be at least 1")

    download_directory = pick("DOWNLOAD_DIRECTORY", "download_directory", Constants.DEFAULT_DOWNLOAD_DIRECTORY)
    if not isinstance(download_directory, str) or not download_directory:
        raise ConfigError("'download_directory' must be a non-empty string")

    config = GeneratorConfig(
        output=str(output),
        graph=str(graph),
        download_directory=download_directory,
        include=_names(pick("INCLUDE", "include"), "include"),
        exclude=_names(pick("EXCLUDE", "exclude"), "exclude") or frozenset(),
        workers=workers,
        log_level=pick("LOG_LEVEL", "log_level"),
        log_file=pick("LOG_FILE", "log_file"),
    )
    logger.debug("Effective configuration: %s", config)
    return config
