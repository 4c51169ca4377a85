"""Infrastructure: where lock files live.

All lock files share one parent directory (``~/Library/Logs/Locks`` by
default) which must not contain subdirectories.  The directory is
created on first use as long as its parent already exists.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from brewed.exceptions import ConfigError


def default_locks_dir() -> Path:
    return Path.home() / "Library" / "Logs" / "Locks"


def ensure_locks_dir(locks_dir: Path) -> Path:
    """Create *locks_dir* if needed; its parent directory must already exist."""
    locks_dir = locks_dir.expanduser()
    if locks_dir.is_dir():
        return locks_dir
    if not locks_dir.parent.is_dir():
        raise ConfigError(
            f"invalid locks directory; not a directory: '{locks_dir.parent}'",
            hint="Create the parent directory or configure lock.dir in settings.",
        )
    try:
        locks_dir.mkdir(exist_ok=True)
    except OSError as exc:
        raise ConfigError(
            f"invalid locks directory; failed to create '{locks_dir}': {exc.strerror or exc}",
        ) from exc
    return locks_dir


def lock_path_for(filename: str | os.PathLike[str], locks_dir: Path) -> Path:
    """Return the absolute lock file path for *filename* inside *locks_dir*."""
    locks_dir = ensure_locks_dir(locks_dir).resolve()
    lock_path = (locks_dir / filename).resolve()
    if lock_path.parent != locks_dir:
        raise ConfigError(
            f"all lock files must live directly in '{locks_dir}'; got '{filename}'",
        )
    return lock_path


def process_lock_path(locks_dir: Path, script: str | None = None) -> Path:
    """Lock path for the running script: ``<basename of argv[0]>.lock``."""
    name = Path(script if script is not None else sys.argv[0]).name
    if not name:
        raise ConfigError("cannot derive a lock file name from an empty script name")
    return lock_path_for(f"{name}.lock", locks_dir)
