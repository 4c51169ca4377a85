"""Infrastructure: YAML settings files.

Settings files are plain YAML mappings.  Several files may be given;
they are deep-merged in order, so later files override earlier ones key
by key::

    log:
      destinations:
        - {id: stdout, target: STDOUT, level: output}
        - {target: ~/Library/Logs/nightly.log, level: debug, timestamp: true}
    lock:
      dir: ~/Library/Logs/Locks
      timeout: 600

Only the ``log`` and ``lock`` sections are interpreted; other top-level
keys are kept in :attr:`Settings.extra` for the application.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from brewed.core.logger import Logger
from brewed.core.models import DestinationOptions, LogLevel
from brewed.exceptions import ConfigError
from brewed.infra.lock import LOCK_TIMEOUT
from brewed.infra.paths import default_locks_dir

SETTINGS_ENV_VAR = "BREWED_SETTINGS"


@dataclass(frozen=True, slots=True)
class Settings:
    """Validated settings.  Defaults give a single ``STDOUT`` output destination."""

    destinations: tuple[DestinationOptions, ...] = (
        DestinationOptions(target="STDOUT", level=LogLevel.OUTPUT),
    )
    locks_dir: Path = field(default_factory=default_locks_dir)
    lock_timeout: float = LOCK_TIMEOUT
    extra: Mapping[str, Any] = field(default_factory=dict)
    sources: tuple[Path, ...] = ()
    """Files the settings were read from, in merge order."""

    def build_logger(self) -> Logger:
        """Open every configured destination on a new :class:`Logger`."""
        logger = Logger()
        try:
            for options in self.destinations:
                logger.open_destination(options)
        except Exception:
            logger.close()
            raise
        return logger


def deep_merge(target: dict[str, Any], data: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *data* into *target* in place; nested mappings merge recursively."""
    for key, value in data.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            deep_merge(current, value)
        elif isinstance(value, Mapping):
            target[key] = deep_merge({}, value)
        else:
            target[key] = value
    return target


def settings_paths_from_env() -> list[Path]:
    raw = os.environ.get(SETTINGS_ENV_VAR, "")
    return [Path(part).expanduser() for part in raw.split(os.pathsep) if part]


def load_settings(*paths: str | os.PathLike[str]) -> Settings:
    """Read, merge and validate settings files.

    When no path is given, the ``BREWED_SETTINGS`` environment variable
    (``os.pathsep`` separated) is consulted; with neither, defaults apply.

    Raises
    ------
    ConfigError
        If a file cannot be read or parsed, or a section is malformed.
    """
    sources = [Path(p).expanduser() for p in paths] or settings_paths_from_env()
    merged: dict[str, Any] = {}
    for source in sources:
        deep_merge(merged, _read_yaml(source))
    return _build(merged, tuple(sources))


def _read_yaml(path: Path) -> Mapping[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"cannot read settings file '{path}': {exc.strerror or exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in settings file '{path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError(
            f"settings file '{path}' must contain a mapping, got {type(data).__name__}",
        )
    return data


def _build(data: Mapping[str, Any], sources: tuple[Path, ...]) -> Settings:
    log_section = _section(data, "log")
    lock_section = _section(data, "lock")

    kwargs: dict[str, Any] = {
        "extra": {k: v for k, v in data.items() if k not in ("log", "lock")},
        "sources": sources,
    }

    if "destinations" in log_section:
        entries = log_section["destinations"] or []
        if not isinstance(entries, list):
            raise ConfigError("log.destinations must be a list")
        destinations = []
        for entry in entries:
            if not isinstance(entry, Mapping):
                raise ConfigError(f"log destination entry must be a mapping, got {entry!r}")
            destinations.append(DestinationOptions.from_mapping(entry))
        kwargs["destinations"] = tuple(destinations)

    if lock_section.get("dir") is not None:
        kwargs["locks_dir"] = Path(str(lock_section["dir"])).expanduser()

    if lock_section.get("timeout") is not None:
        try:
            timeout = float(lock_section["timeout"])
        except (TypeError, ValueError):
            raise ConfigError(f"lock.timeout must be a number, got {lock_section['timeout']!r}") from None
        if timeout < 0:
            raise ConfigError("lock.timeout must not be negative")
        kwargs["lock_timeout"] = timeout

    return Settings(**kwargs)


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigError(f"settings section '{name}' must be a mapping")
    return section
