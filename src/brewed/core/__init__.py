"""Core layer: destinations, the logger registry and message models.

Rules
-----
* Writes only to the sinks handed to a destination; no other I/O.
* No imports from ``cli`` or ``infra``.
* Errors are raised as :class:`~brewed.exceptions.BrewedError`
  subclasses (or ``ValueError`` for broken indentation invariants).
"""

from brewed.core.destination import LogDestination
from brewed.core.logger import Logger, format_exception
from brewed.core.models import (
    DestinationOptions,
    DestinationState,
    HeadingTag,
    LogLevel,
    LogMessage,
    coerce_messages,
)
from brewed.core.protocols import Sink

__all__: list[str] = [
    "DestinationOptions",
    "DestinationState",
    "HeadingTag",
    "LogDestination",
    "LogLevel",
    "LogMessage",
    "Logger",
    "Sink",
    "coerce_messages",
    "format_exception",
]
