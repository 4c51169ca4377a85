"""Infrastructure layer: operating system and file integration.

File locking, lock-file placement and YAML settings.  Every raw
``OSError`` / YAML error is caught here and re-raised as a
:class:`~brewed.exceptions.BrewedError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing rendering; reporting goes through a caller's
  :class:`~brewed.core.logger.Logger`.
"""

from brewed.infra.lock import LOCK_TIMEOUT, FileLock, lock_file
from brewed.infra.paths import (
    default_locks_dir,
    ensure_locks_dir,
    lock_path_for,
    process_lock_path,
)
from brewed.infra.settings import Settings, deep_merge, load_settings

__all__: list[str] = [
    "FileLock",
    "LOCK_TIMEOUT",
    "Settings",
    "deep_merge",
    "default_locks_dir",
    "ensure_locks_dir",
    "load_settings",
    "lock_file",
    "lock_path_for",
    "process_lock_path",
]
