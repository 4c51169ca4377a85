"""CLI application entry point and command routing for brewed.

This module is the **sole error boundary** for the entire application.
It catches :class:`~brewed.exceptions.BrewedError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here; all work is delegated to
  :mod:`brewed.cli.application`, the core logger and the infra layer.
* The logger is built once per invocation from the settings files and
  passed down explicitly; it is closed before :func:`main` returns.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import argparse
import sys

from brewed.cli import exit_codes
from brewed.cli.console import console
from brewed.exceptions import BrewedError, LockTimeoutError
from brewed.version import __version__


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    Commands:
    * ``brewed run [options] -- COMMAND [ARGS...]``  run under a lock
    * ``brewed doctor``                            environment diagnostics
    * ``brewed --version``
    """
    parser = argparse.ArgumentParser(
        prog="brewed",
        description="Run scripts under an exclusive lock with folding, indented logs.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-s",
        "--settings",
        action="append",
        default=[],
        metavar="FILE",
        help="YAML settings file; repeat to merge several (default: $BREWED_SETTINGS).",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    run = commands.add_parser("run", help="Run a command while holding its lock.")
    run.add_argument(
        "--lock",
        dest="lock_name",
        default=None,
        metavar="NAME",
        help="Lock file name inside the locks directory (default: <command>.lock).",
    )
    run.add_argument(
        "--no-lock",
        dest="use_lock",
        action="store_false",
        help="Run without taking a lock.",
    )
    run.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="How long to wait for the lock (default: lock.timeout setting).",
    )
    run.add_argument("argv", nargs=argparse.REMAINDER, metavar="COMMAND")

    commands.add_parser("doctor", help="Show environment diagnostics.")
    return parser


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _handle_run(args: argparse.Namespace) -> int:
    """Run ``args.argv`` through :class:`CommandApplication`."""
    from dataclasses import replace

    from brewed.cli.application import CommandApplication
    from brewed.infra.settings import load_settings

    command = list(args.argv)
    if command and command[0] == "--":
        command = command[1:]

    settings = load_settings(*args.settings)
    if args.timeout is not None:
        settings = replace(settings, lock_timeout=args.timeout)

    with settings.build_logger() as logger:
        app = CommandApplication(
            logger,
            command,
            settings=settings,
            lock_name=args.lock_name,
            use_lock=args.use_lock,
        )
        return app.execute()


def _handle_doctor(args: argparse.Namespace) -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from brewed.cli.doctor import run_doctor
    from brewed.infra.settings import load_settings

    return run_doctor(load_settings(*args.settings))


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the brewed CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return exit_codes.SUCCESS

    if args.command == "doctor":
        return _handle_doctor(args)

    return _handle_run(args)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except LockTimeoutError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.LOCK_UNAVAILABLE)
    except BrewedError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
