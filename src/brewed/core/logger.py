"""Logger registry, message dispatch and scoped indentation.

A :class:`Logger` keeps every open :class:`LogDestination` and fans each
message out to them in registration order:

* :meth:`Logger.output` reaches every destination;
* :meth:`Logger.debug` reaches only ``DEBUG`` destinations.

There is no module-level instance.  Applications build one logger at
start-up (usually :meth:`Logger.with_console` or
:meth:`brewed.infra.settings.Settings.build_logger`) and pass it to the
code that needs it.
"""

from __future__ import annotations

import traceback
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

import yaml

from brewed.core.destination import FOLDING_CLOSE, FOLDING_OPEN, LogDestination
from brewed.core.models import (
    Boolean,
    DestinationOptions,
    DestinationState,
    Dump,
    Heading,
    HeadingTag,
    LogLevel,
    LogMessage,
    Nil,
    Separator,
    Text,
    coerce_messages,
    plain_text,
)
from brewed.exceptions import ConfigError, DuplicateIdError

T = TypeVar("T")

SINGLE_LINE = "-" * 80
FAILURES_HEADING = "==FAILURES REPORTED=="


class Logger:
    """Registry of active destinations with fan-out writing.

    Usage::

        with Logger.with_console() as log:
            log.output(["starting", HeadingTag.H1, "Phase one"])
            log.output(["processing items:"], body=process_items)
    """

    def __init__(self) -> None:
        self._index: dict[str, LogDestination] = {}
        self._output: list[LogDestination] = []
        self._debug: list[LogDestination] = []
        self._failures: list[str] = []

    @classmethod
    def with_console(cls, level: LogLevel | str = LogLevel.OUTPUT) -> Logger:
        """Build a logger with a single ``STDOUT`` destination."""
        logger = cls()
        logger.open_destination(DestinationOptions(target="STDOUT", level=LogLevel.parse(level)))
        return logger

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> Logger:
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def open_destination(
        self,
        destination: LogDestination | DestinationOptions | Mapping[str, Any],
    ) -> LogDestination:
        """Register a destination, building it first unless one is passed in.

        Raises
        ------
        DuplicateIdError
            If the id is already registered.  A destination built by this
            call is closed again; the registered one is left untouched.
        ConfigError
            If the options cannot be turned into a destination.
        """
        built = not isinstance(destination, LogDestination)
        dest = LogDestination.open(destination) if built else destination  # type: ignore[arg-type]

        if dest.id in self._index:
            if built:
                dest.close()
            raise DuplicateIdError(dest.id)

        self._index[dest.id] = dest
        if dest.level == LogLevel.DEBUG:
            self._debug.append(dest)
        else:
            self._output.append(dest)
        return dest

    def close_destination(self, destination: str | LogDestination) -> None:
        """Unregister and close a destination; unknown ids are ignored."""
        if isinstance(destination, LogDestination):
            dest_id = destination.id
            registered = self._index.get(dest_id)
            if registered is None:
                return
            if registered is not destination:
                raise ConfigError(
                    f"a different destination is registered as '{dest_id}'",
                )
        else:
            dest_id = destination
            registered = self._index.get(dest_id)
            if registered is None:
                return

        del self._index[dest_id]
        for bucket in (self._output, self._debug):
            if registered in bucket:
                bucket.remove(registered)
        registered.close()

    def close(self) -> None:
        """Close every destination, most recently opened first."""
        for dest_id in reversed(list(self._index)):
            self.close_destination(dest_id)

    def get_destination(self, dest_id: str) -> LogDestination | None:
        return self._index.get(dest_id)

    @property
    def destinations(self) -> list[LogDestination]:
        """Every destination in registration order."""
        return list(self._index.values())

    @property
    def output_destinations(self) -> list[LogDestination]:
        return list(self._output)

    @property
    def debug_destinations(self) -> list[LogDestination]:
        return list(self._debug)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def output(
        self,
        messages: Iterable[object],
        body: Callable[[], T] | None = None,
    ) -> T | None:
        """Write *messages* to every destination.

        With *body*, the messages open an indented, folded scope for the
        duration of ``body()`` and its return value is returned.
        """
        return self._dispatch(self.destinations, messages, body)

    def debug(
        self,
        messages: Iterable[object],
        body: Callable[[], T] | None = None,
    ) -> T | None:
        """Write *messages* to the debug destinations only."""
        return self._dispatch(self.debug_destinations, messages, body)

    def record_failure(self, messages: Iterable[object]) -> None:
        """Remember a failure and report it on every destination."""
        coerced = coerce_messages(messages)
        self._failures.append("\n".join(plain_text(m) for m in coerced))
        self._write(
            self.destinations,
            [Heading(HeadingTag.H1, FAILURES_HEADING), *coerced],
        )

    def get_failures(self) -> list[str]:
        return list(self._failures)

    @property
    def failures(self) -> list[str]:
        return self.get_failures()

    # ------------------------------------------------------------------
    # Scoped indentation
    # ------------------------------------------------------------------

    def scoped_indent(
        self,
        destinations: Sequence[LogDestination],
        messages: Iterable[object],
        body: Callable[[], T],
    ) -> T:
        """Write *messages*, then run *body* with every destination indented and folded.

        A leading ``int`` in *messages* is the indent delta (default 1; 0
        is treated as 1).  Indentation and folding are restored on every
        destination when *body* returns or raises.
        """
        with self.indented(destinations, messages):
            return body()

    @contextmanager
    def indented(
        self,
        destinations: Sequence[LogDestination],
        messages: Iterable[object] = (),
    ) -> Iterator[None]:
        """Context-manager form of :meth:`scoped_indent`."""
        pending = list(messages)
        delta = 1
        if pending and isinstance(pending[0], int) and not isinstance(pending[0], bool):
            delta = pending.pop(0) or 1

        dests = list({id(d): d for d in destinations}.values())
        self._write(dests, coerce_messages(pending))

        snapshots: list[tuple[LogDestination, DestinationState]] = []
        try:
            for dest in dests:
                snapshots.append((dest, dest.get_state()))
                dest.adjust_indent(delta)
                dest.open_fold()
            yield
        finally:
            for dest, state in snapshots:
                dest.restore_state(state)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _dispatch(
        self,
        destinations: list[LogDestination],
        messages: Iterable[object],
        body: Callable[[], T] | None,
    ) -> T | None:
        if body is not None:
            return self.scoped_indent(destinations, messages, body)
        self._write(destinations, coerce_messages(messages))
        return None

    def _write(self, destinations: list[LogDestination], messages: list[LogMessage]) -> None:
        for message in messages:
            if isinstance(message, Text):
                for dest in destinations:
                    dest.write_line(message.text)
            elif isinstance(message, Heading):
                for dest in destinations:
                    dest.write_line("")
                    dest.write(message.level.prefix)
                    dest.write_line_here(message.text)
            elif isinstance(message, Separator):
                for dest in destinations:
                    dest.write_line(SINGLE_LINE)
            elif isinstance(message, (Boolean, Nil)):
                token = plain_text(message)
                for dest in destinations:
                    dest.write_line(token)
            else:
                self._write_dump(destinations, message)

    def _write_dump(self, destinations: list[LogDestination], message: Dump) -> None:
        dumped = yaml.dump(
            message.value,
            default_flow_style=False,
            sort_keys=True,
            allow_unicode=True,
        ).rstrip("\n").removesuffix("\n...")
        header = f"[= {type(message.value).__name__} =]"
        for dest in destinations:
            dest.write_line(header, True)
            dest.write_line_here(FOLDING_OPEN)
            dest.write_line(dumped, True)
            dest.write_line_here(FOLDING_CLOSE)


def format_exception(exc: BaseException) -> str:
    """Render *exc* and its traceback on a single indented block."""
    frames = traceback.format_tb(exc.__traceback__)
    lines = [line.rstrip("\n") for frame in frames for line in frame.splitlines()]
    text = f"EXCEPTION {type(exc).__name__}: {exc}"
    if lines:
        text += "\n\t" + "\n\t".join(lines)
    return text
