"""Infrastructure: exclusive advisory file locks.

A lock file is only a mutex token; nothing is ever written to it.  The
lock is an ``flock(2)`` exclusive lock on a descriptor opened by
:meth:`FileLock.acquire`, so it is released as soon as that descriptor
is closed (explicitly, on leaving a ``with`` block, or when the process
exits).

Rules
-----
* The wait is bounded: acquisition polls a non-blocking ``flock`` until
  the timeout elapses, then fails with :class:`LockTimeoutError`.
* The descriptor is closed on every failure path.
* ``flock`` locks belong to the open file description, so two
  :class:`FileLock` objects in the same process exclude each other too.
"""

from __future__ import annotations

import fcntl
import os
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

from brewed.exceptions import LockError, LockTimeoutError

if TYPE_CHECKING:
    from brewed.core.logger import Logger

T = TypeVar("T")

LOCK_TIMEOUT: float = 600.0
"""Default wait for a lock, in seconds (10 minutes)."""

POLL_INTERVAL: float = 0.1

LOCK_FILE_MODE: int = 0o644


class FileLock:
    """An acquired exclusive lock bound to an open descriptor.

    Obtain one with :meth:`acquire`; release it with :meth:`release` or
    by using it as a context manager::

        with FileLock.acquire(path, timeout=5):
            ...
    """

    def __init__(self, fd: int, path: Path) -> None:
        self._fd: int | None = fd
        self._path: Path = path

    # ------------------------------------------------------------------
    # Acquisition
    # ------------------------------------------------------------------

    @classmethod
    def acquire(
        cls,
        path: str | os.PathLike[str],
        timeout: float = LOCK_TIMEOUT,
        *,
        logger: Logger | None = None,
        poll_interval: float = POLL_INTERVAL,
    ) -> FileLock:
        """Open (creating if needed) and exclusively lock *path*.

        Raises
        ------
        LockTimeoutError
            If the lock is still held elsewhere after *timeout* seconds.
        LockError
            If the lock file cannot be opened or locked.
        """
        lock_path = Path(path)
        try:
            fd = os.open(lock_path, os.O_RDWR | os.O_CREAT | os.O_CLOEXEC, LOCK_FILE_MODE)
        except OSError as exc:
            raise LockError(
                f"cannot open lock file '{lock_path}': {exc.strerror or exc}",
            ) from exc

        deadline = time.monotonic() + max(timeout, 0.0)
        try:
            while True:
                try:
                    fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except BlockingIOError:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise LockTimeoutError(str(lock_path), timeout) from None
                    time.sleep(min(poll_interval, remaining))
        except LockTimeoutError as exc:
            os.close(fd)
            if logger is not None:
                logger.output([f"EXCEPTION while locking path '{lock_path}': {exc}"])
            raise
        except OSError as exc:
            os.close(fd)
            raise LockError(
                f"flock failed for path '{lock_path}': {exc.strerror or exc}",
            ) from exc
        except BaseException:
            os.close(fd)
            raise

        return cls(fd, lock_path)

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> FileLock:
        return self

    def __exit__(self, *_args: object) -> None:
        self.release()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    def fileno(self) -> int:
        if self._fd is None:
            raise ValueError(f"lock on '{self._path}' has been released")
        return self._fd

    def is_locked(self) -> bool:
        return self._fd is not None

    def release(self) -> None:
        """Close the descriptor, dropping the lock (idempotent)."""
        fd, self._fd = self._fd, None
        if fd is not None:
            os.close(fd)

    def __repr__(self) -> str:
        state = "locked" if self.is_locked() else "released"
        return f"FileLock({str(self._path)!r}, {state})"


def lock_file(
    path: str | os.PathLike[str],
    timeout: float,
    body: Callable[[], T],
    *,
    logger: Logger | None = None,
) -> T:
    """Run *body* while holding an exclusive lock on *path*.

    The lock is released when *body* returns or raises; its return value
    is passed through.
    """
    with FileLock.acquire(path, timeout, logger=logger):
        return body()
