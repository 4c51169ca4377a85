"""Allow ``python -m brewed`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m brewed`` behaves identically to the ``brewed``
console script.
"""

from __future__ import annotations

from brewed.cli.app import cli

if __name__ == "__main__":
    cli()
