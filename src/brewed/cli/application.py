"""Base class for scripts that run under a brewed logger and lock.

Subclasses implement :meth:`Application.run` and optionally
:meth:`Application.lock_path`.  :meth:`Application.execute` then:

1. takes the exclusive lock (when a lock path is given) for the whole
   of ``run()``, announcing it on the debug destinations;
2. reports any exception through the logger, records it as a failure
   and re-raises it for the CLI error boundary;
3. otherwise reports the exit status on every destination.
"""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path

from brewed.core.logger import Logger, format_exception
from brewed.exceptions import BrewedError
from brewed.infra.lock import lock_file
from brewed.infra.paths import lock_path_for, process_lock_path
from brewed.infra.settings import Settings

SUCCESS_MESSAGE = "exit status: SUCCESS!"
FAILURE_MESSAGE = "exit status: FAILED!"


class Application:
    """Run a script body with logging, failure reporting and an optional lock.

    Parameters
    ----------
    logger:
        The application's logger; it is not closed by the application.
    settings:
        Supplies the lock directory and timeout.  Defaults apply when
        omitted.
    """

    def __init__(self, logger: Logger, settings: Settings | None = None) -> None:
        self.logger: Logger = logger
        self.settings: Settings = settings if settings is not None else Settings()

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def run(self) -> int:
        """The script body; returns a process exit status."""
        raise NotImplementedError(f"{type(self).__name__} must implement run()")

    def lock_path(self) -> Path | None:
        """Absolute lock file path, or ``None`` to run without a lock."""
        return None

    def success_message(self) -> str:
        return SUCCESS_MESSAGE

    def failure_message(self, message: str) -> str:
        return f"{message}\n\n{FAILURE_MESSAGE}"

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def execute(self) -> int:
        """Run the application; see the module docstring for the sequence."""
        try:
            path = self.lock_path()
            if path is None:
                rc = self.run()
            else:
                rc = self.logger.debug(
                    [f"[LOCKING '{path}'...]"],
                    body=lambda: lock_file(
                        path,
                        self.settings.lock_timeout,
                        self.run,
                        logger=self.logger,
                    ),
                )
        except Exception as exc:
            message = format_exception(exc)
            self.logger.output([message])
            self.logger.record_failure([self.failure_message(message)])
            raise

        self.logger.output([self.success_message() if rc == 0 else FAILURE_MESSAGE])
        return rc


class CommandApplication(Application):
    """Run an external command as a child process under an exclusive lock.

    The lock defaults to ``<command basename>.lock`` in the locks
    directory; *lock_name* overrides the file name and ``use_lock=False``
    skips locking.
    """

    def __init__(
        self,
        logger: Logger,
        command: Sequence[str],
        *,
        settings: Settings | None = None,
        lock_name: str | None = None,
        use_lock: bool = True,
    ) -> None:
        super().__init__(logger, settings)
        if not command:
            raise BrewedError("no command given", hint="Usage: brewed run -- COMMAND [ARGS...]")
        self.command: list[str] = list(command)
        self.lock_name: str | None = lock_name
        self.use_lock: bool = use_lock

    def lock_path(self) -> Path | None:
        if not self.use_lock:
            return None
        if self.lock_name:
            return lock_path_for(self.lock_name, self.settings.locks_dir)
        return process_lock_path(self.settings.locks_dir, script=self.command[0])

    def run(self) -> int:
        rc = self.logger.output([f"running: {shlex.join(self.command)}"], body=self._spawn)
        self.logger.debug([f"exit code: {rc}"])
        return rc

    def _spawn(self) -> int:
        try:
            completed = subprocess.run(self.command, check=False)
        except FileNotFoundError as exc:
            raise BrewedError(f"command not found: {self.command[0]}") from exc
        except PermissionError as exc:
            raise BrewedError(f"command is not executable: {self.command[0]}") from exc
        return completed.returncode
