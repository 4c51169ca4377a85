"""Domain models for brewed.

Value objects only: severity levels, destination options, indentation
snapshots and the :data:`LogMessage` variants understood by
:class:`~brewed.core.logger.Logger`.  Everything here is a frozen
dataclass or an enum and carries no I/O.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from enum import Enum, IntEnum
from typing import Any, Union

from brewed.exceptions import ConfigError


# ---------------------------------------------------------------------------
# Severity levels
# ---------------------------------------------------------------------------

class LogLevel(IntEnum):
    """Severity of a destination.

    ``OUTPUT`` destinations receive :meth:`Logger.output` messages only;
    ``DEBUG`` destinations receive both output and debug messages.
    """

    OUTPUT = 1
    DEBUG = 5

    @classmethod
    def parse(cls, value: object) -> LogLevel:
        """Accept a :class:`LogLevel`, its numeric value or its name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        elif isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                pass
        raise ConfigError(
            f"invalid log level: {value!r}",
            hint="Use 'output' or 'debug'.",
        )


# ---------------------------------------------------------------------------
# Destination configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DestinationOptions:
    """Everything needed to open a :class:`~brewed.core.destination.LogDestination`."""

    target: Any = None
    """Console token (``STDOUT``, ``>2`` ...), filesystem path, or a writable stream."""

    id: str | None = None
    """Registry key.  Derived from console tokens and file names when omitted."""

    level: LogLevel = LogLevel.OUTPUT

    indenting: bool = True

    timestamp: bool = False

    folding: bool | None = None
    """``None`` means: enabled for debug destinations, disabled for output ones."""

    disabled: bool = False

    @property
    def folding_enabled(self) -> bool:
        if self.folding is None:
            return self.level == LogLevel.DEBUG
        return self.folding

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DestinationOptions:
        """Build options from a plain mapping (e.g. a YAML settings entry)."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(str(key) for key in data if key not in known)
        if unknown:
            raise ConfigError(
                f"unknown log destination option(s): {', '.join(unknown)}",
                hint=f"Valid options: {', '.join(sorted(known))}.",
            )
        values = dict(data)
        if "level" in values:
            values["level"] = LogLevel.parse(values["level"])
        if values.get("id") is not None:
            values["id"] = str(values["id"])
        return cls(**values)


@dataclass(frozen=True, slots=True)
class DestinationState:
    """Indentation/folding snapshot captured before a scoped region."""

    indent_depth: int
    folding_depth: int


# ---------------------------------------------------------------------------
# Log messages
# ---------------------------------------------------------------------------

class HeadingTag(Enum):
    """Heading levels; each renders with a fixed bracket-style prefix."""

    H1 = 1
    H2 = 2
    H3 = 3
    H4 = 4
    H5 = 5
    H6 = 6

    @property
    def prefix(self) -> str:
        return HEADING_PREFIXES[self]


HEADING_PREFIXES: dict[HeadingTag, str] = {
    HeadingTag.H1: "{**} ",
    HeadingTag.H2: "{++} ",
    HeadingTag.H3: "{--} ",
    HeadingTag.H4: " {*} ",
    HeadingTag.H5: " {+} ",
    HeadingTag.H6: " {-} ",
}


@dataclass(frozen=True, slots=True)
class Text:
    """A plain line of text."""

    text: str


@dataclass(frozen=True, slots=True)
class Heading:
    """A heading line preceded by a forced blank line."""

    level: HeadingTag
    text: str


@dataclass(frozen=True, slots=True)
class Separator:
    """An 80 character rule line."""


@dataclass(frozen=True, slots=True)
class Boolean:
    """A ``TRUE``/``FALSE`` token."""

    value: bool


@dataclass(frozen=True, slots=True)
class Nil:
    """A ``NIL`` token."""


@dataclass(frozen=True, slots=True)
class Dump:
    """An arbitrary object rendered as a bordered, foldable YAML block."""

    value: Any


LogMessage = Union[Text, Heading, Separator, Boolean, Nil, Dump]

SEPARATOR: Separator = Separator()
"""Ready-made separator for message sequences."""

_VARIANTS = (Text, Heading, Separator, Boolean, Nil, Dump)


def coerce_messages(messages: Iterable[object]) -> list[LogMessage]:
    """Convert a heterogeneous message sequence into :data:`LogMessage` variants.

    Variants pass through unchanged.  A bare :class:`HeadingTag` consumes
    the *next* element as its text; a tag with nothing after it is a
    :class:`ConfigError`.  ``str``, ``bool`` and ``None`` map to their
    variants and everything else is wrapped in :class:`Dump`.  A lone
    ``str`` passed as *messages* is one line, not a sequence of characters.
    """
    if isinstance(messages, str):
        messages = [messages]
    result: list[LogMessage] = []
    pending = iter(messages)
    for message in pending:
        if isinstance(message, _VARIANTS):
            result.append(message)
        elif isinstance(message, str):
            result.append(Text(message))
        elif isinstance(message, HeadingTag):
            try:
                text = next(pending)
            except StopIteration:
                raise ConfigError(
                    f"heading {message.name} has no text after it",
                ) from None
            result.append(Heading(message, str(text)))
        elif isinstance(message, bool):
            result.append(Boolean(message))
        elif message is None:
            result.append(Nil())
        else:
            result.append(Dump(message))
    return result


def plain_text(message: LogMessage) -> str:
    """Return the undecorated text of *message* (used for failure records)."""
    if isinstance(message, (Text, Heading)):
        return message.text
    if isinstance(message, Separator):
        return "-" * 80
    if isinstance(message, Boolean):
        return "TRUE" if message.value else "FALSE"
    if isinstance(message, Nil):
        return "NIL"
    return repr(message.value)
