"""brewed: structured folding logger and file locking for scripts.

The public surface is re-exported here so that scripts can simply
``from brewed import Logger, FileLock``.
"""

from brewed.core.destination import LogDestination
from brewed.core.logger import Logger, format_exception
from brewed.core.models import (
    Boolean,
    DestinationOptions,
    DestinationState,
    Dump,
    Heading,
    HeadingTag,
    LogLevel,
    Nil,
    Separator,
    SEPARATOR,
    Text,
)
from brewed.infra.lock import FileLock, lock_file
from brewed.version import __version__

__all__: list[str] = [
    "Boolean",
    "DestinationOptions",
    "DestinationState",
    "Dump",
    "FileLock",
    "Heading",
    "HeadingTag",
    "LogDestination",
    "LogLevel",
    "Logger",
    "Nil",
    "SEPARATOR",
    "Separator",
    "Text",
    "__version__",
    "format_exception",
    "lock_file",
]
