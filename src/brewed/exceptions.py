"""Custom exception hierarchy for brewed.

Every error the library raises on purpose inherits from
:class:`BrewedError`.  The CLI error boundary (:func:`brewed.cli.app.cli`)
is the only place these are rendered for the user; library code raises
and lets them propagate.

Hierarchy
---------
BrewedError
├── ConfigError
├── DuplicateIdError
├── LockError
│   └── LockTimeoutError
└── MissingDependencyError

Implementation errors (a negative indent depth, restoring to a fold
level that was never opened) are plain :class:`ValueError`.
"""

from __future__ import annotations


class BrewedError(Exception):
    """Base exception for all brewed errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Log destinations ------------------------------------------------------

class ConfigError(BrewedError):
    """Raised when a destination or settings file is missing or invalid."""


class DuplicateIdError(BrewedError):
    """Raised when a destination id is already registered on a logger."""

    def __init__(self, destination_id: str) -> None:
        super().__init__(
            f"log destination '{destination_id}' is already open",
            hint="Close the existing destination first or pick another id.",
        )
        self.destination_id: str = destination_id


# --- Locking ---------------------------------------------------------------

class LockError(BrewedError):
    """Raised when a lock file cannot be opened or locked."""


class LockTimeoutError(LockError):
    """Raised when an exclusive lock is not obtained within its timeout."""

    def __init__(self, path: str, timeout: float) -> None:
        super().__init__(
            f"timed out after {timeout:g}s waiting for lock '{path}'",
            hint="Another process holds the lock; wait for it to finish.",
        )
        self.path: str = path
        self.timeout: float = timeout


# --- Environment / tooling -------------------------------------------------

class MissingDependencyError(BrewedError):
    """Raised when an optional runtime dependency is not available."""
