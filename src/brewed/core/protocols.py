"""Protocols (interfaces) consumed by the core layer.

Destinations write to anything that looks like a text stream; the
console streams, files opened by a destination and in-memory buffers
all satisfy :class:`Sink` structurally.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Sink(Protocol):
    """Contract for a destination's output stream."""

    def write(self, text: str, /) -> object:
        """Write *text* without adding anything to it."""
        ...  # pragma: no cover

    def flush(self) -> None:
        ...  # pragma: no cover
