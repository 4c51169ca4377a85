"""``brewed doctor``: environment diagnostics command.

Gathers system information and renders a Rich table summarising
whether the runtime environment satisfies brewed's requirements.

This module lives in the CLI layer; it may import from ``infra``
and ``core``, and it renders via Rich.  No business logic resides
here; it purely collects and displays diagnostic data.
"""

from __future__ import annotations

import os
import platform
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from brewed.cli import exit_codes
from brewed.cli.console import console
from brewed.infra.settings import Settings
from brewed.version import __version__


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _python_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the Python version row."""
    py_version = platform.python_version()
    major, minor = sys.version_info[:2]
    ok = (major, minor) >= (3, 10)
    status = "[green]OK[/green]" if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", py_version, status


def _pyyaml_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the PyYAML row."""
    try:
        import yaml
    except ImportError:
        return "PyYAML", "NOT INSTALLED", "[red]FAIL[/red]"
    return "PyYAML", getattr(yaml, "__version__", "unknown"), "[green]OK[/green]"


def _rich_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the rich row."""
    try:
        return "rich", version("rich"), "[green]OK[/green]"
    except PackageNotFoundError:
        return "rich", "NOT INSTALLED", "[yellow]WARN[/yellow]"


def _flock_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the advisory locking row."""
    try:
        import fcntl
    except ImportError:
        return "flock", "unavailable", "[red]FAIL[/red]"
    if not hasattr(fcntl, "flock"):
        return "flock", "missing", "[red]FAIL[/red]"
    return "flock", "fcntl.flock", "[green]OK[/green]"


def _locks_dir_check(locks_dir: Path) -> tuple[str, str, str]:
    """Return (label, value, status) for the locks directory row."""
    locks_dir = locks_dir.expanduser()
    if locks_dir.is_dir():
        ok = os.access(locks_dir, os.W_OK)
        return "Locks dir", str(locks_dir), "[green]OK[/green]" if ok else "[red]FAIL (not writable)[/red]"
    if locks_dir.parent.is_dir():
        return "Locks dir", str(locks_dir), "[yellow]WARN (created on first lock)[/yellow]"
    return "Locks dir", str(locks_dir), "[red]FAIL (parent missing)[/red]"


def _os_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the OS row."""
    system_raw = platform.system()
    system_display = {
        "Windows": "Windows",
        "Linux": "Linux",
        "Darwin": "macOS",
    }.get(system_raw, system_raw)
    release = platform.release()
    machine = platform.machine()
    value = f"{system_display} {release} ({machine})"
    return "OS", value, "[green]OK[/green]"


def _brewed_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the brewed version row."""
    return "brewed", __version__, "[green]OK[/green]"


def _status_plain(status: str) -> str:
    """Convert rich-markup status to plain text."""
    if "FAIL" in status:
        return "FAIL"
    if "WARN" in status:
        return "WARN"
    if "OK" in status:
        return "OK"
    return status


def _print_plain_doctor_table(checks: list[tuple[str, str, str]]) -> None:
    """Render doctor output without Rich."""
    print("\nbrewed doctor", file=sys.stderr)
    print("=" * 64, file=sys.stderr)
    print(f"{'Component':<12} {'Value':<40} {'Status':<8}", file=sys.stderr)
    print("-" * 64, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<12} {value:<40} {_status_plain(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor(settings: Settings | None = None) -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when all critical checks pass,
        :data:`exit_codes.GENERAL_ERROR` if a critical check fails.
    """
    settings = settings if settings is not None else Settings()
    checks = [
        _brewed_version_check(),
        _python_version_check(),
        _pyyaml_version_check(),
        _rich_check(),
        _flock_check(),
        _locks_dir_check(settings.locks_dir),
        _os_check(),
    ]
    has_failure = any("FAIL" in status for _, _, status in checks)

    rich_available = True
    try:
        from rich.table import Table
    except ModuleNotFoundError:
        rich_available = False

    if rich_available:
        table = Table(
            title="brewed doctor",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
        )
        table.add_column("Component", style="bold", min_width=12)
        table.add_column("Value", min_width=20)
        table.add_column("Status", justify="center", min_width=8)

        for label, value, status in checks:
            table.add_row(label, value, status)

        console.print()
        console.print(table)
        console.print()
    else:
        _print_plain_doctor_table(checks)

    if has_failure:
        console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.GENERAL_ERROR

    console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS
