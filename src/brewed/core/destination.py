"""A single active log destination.

A :class:`LogDestination` owns one sink (a console stream, a log file
opened in append mode, or any caller-supplied text stream) together with
its own indentation and folding state.  Every line it writes starts with
a prefix built from that state::

    [timestamp| ][TAB * indent_depth][ | ]text

Folding markers (``|{`` / ``}|``) bracket verbose regions so that an
editor with marker folding can collapse them.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from brewed.core.models import DestinationOptions, DestinationState, LogLevel
from brewed.core.protocols import Sink
from brewed.exceptions import ConfigError

TAB = "\t"
BORDER = " | "
FOLDING_OPEN = "|{"
FOLDING_CLOSE = "}|"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

STDOUT_TARGETS: frozenset[str] = frozenset({">", ">1", ">>", ">>1", "STDOUT", "stdout"})
STDERR_TARGETS: frozenset[str] = frozenset({">2", ">>2", "STDERR", "stderr"})


class LogDestination:
    """One output sink plus its indentation and folding depth.

    Use :meth:`open` to build a destination from
    :class:`~brewed.core.models.DestinationOptions`; the constructor
    takes an already resolved sink.

    Parameters
    ----------
    id:
        Registry key, unique within a :class:`~brewed.core.logger.Logger`.
    sink:
        Any object with a ``write(str)`` method.
    must_close:
        Whether :meth:`close` should close *sink* (only for files the
        destination opened itself).
    """

    def __init__(
        self,
        id: str,
        sink: Sink,
        *,
        level: LogLevel = LogLevel.OUTPUT,
        must_close: bool = False,
        indenting: bool = True,
        timestamp: bool = False,
        folding: bool | None = None,
        disabled: bool = False,
    ) -> None:
        if not id:
            raise ConfigError("log destination id is required")
        if not callable(getattr(sink, "write", None)):
            raise ConfigError(f"log destination '{id}' sink provides no write method")

        self.id: str = id
        self.level: LogLevel = LogLevel.parse(level)
        self.indenting: bool = indenting
        self.timestamp: bool = timestamp
        self.folding: bool = (self.level == LogLevel.DEBUG) if folding is None else folding
        self.disabled: bool = disabled

        self._sink: Sink | None = sink
        self._must_close: bool = must_close
        self._indent_depth: int = 0
        self._folding_depth: int = 0

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def open(cls, options: DestinationOptions | Mapping[str, Any]) -> LogDestination:
        """Resolve ``options.target`` to a sink and build the destination.

        Raises
        ------
        ConfigError
            When there is no target, no id can be derived, the target has
            no ``write`` method, or a log file cannot be opened.
        """
        if not isinstance(options, DestinationOptions):
            options = DestinationOptions.from_mapping(options)

        target = options.target
        dest_id = options.id
        must_close = False

        if target is None:
            raise ConfigError("log destination target is required")

        if isinstance(target, str) and target in STDOUT_TARGETS:
            sink: Any = sys.stdout
            dest_id = dest_id or "STDOUT"
        elif isinstance(target, str) and target in STDERR_TARGETS:
            sink = sys.stderr
            dest_id = dest_id or "STDERR"
        elif isinstance(target, (str, os.PathLike)):
            path = Path(target).expanduser()
            dest_id = dest_id or path.stem
            try:
                sink = open(path, "a", encoding="utf-8")
            except OSError as exc:
                raise ConfigError(
                    f"cannot open log file '{path}': {exc.strerror or exc}",
                ) from exc
            must_close = True
        else:
            sink = target

        if not dest_id:
            if must_close:
                sink.close()
            raise ConfigError(
                "log destination id is required",
                hint="Pass an explicit id for stream targets.",
            )

        try:
            return cls(
                dest_id,
                sink,
                level=options.level,
                must_close=must_close,
                indenting=options.indenting,
                timestamp=options.timestamp,
                folding=options.folding_enabled,
                disabled=options.disabled,
            )
        except ConfigError:
            if must_close:
                sink.close()
            raise

    def close(self) -> None:
        """Flush and release the sink; console streams are never closed."""
        sink, self._sink = self._sink, None
        if sink is None:
            return
        if self._must_close:
            sink.close()  # type: ignore[attr-defined]
        else:
            _flush(sink)
        self._must_close = False

    @property
    def closed(self) -> bool:
        return self._sink is None

    # ------------------------------------------------------------------
    # Indentation / folding state
    # ------------------------------------------------------------------

    @property
    def indent_depth(self) -> int:
        return self._indent_depth

    @property
    def folding_depth(self) -> int:
        return self._folding_depth

    def adjust_indent(self, delta: int = 1) -> int:
        """Shift the indent depth by *delta*; return the depth before the change."""
        old = self._indent_depth
        if old + delta < 0:
            raise ValueError(
                f"indent depth of '{self.id}' would become negative ({old} {delta:+d})"
            )
        self._indent_depth = old + delta
        return old

    def open_fold(self) -> int:
        """Open a folding section; return the folding depth before it."""
        old = self._folding_depth
        self._folding_depth += 1
        if self.folding:
            self._emit(FOLDING_OPEN + "\n")
        return old

    def get_state(self) -> DestinationState:
        return DestinationState(self._indent_depth, self._folding_depth)

    def restore_state(self, state: DestinationState) -> None:
        """Close every fold opened since *state* was captured, then reset indentation."""
        if state.folding_depth > self._folding_depth:
            raise ValueError(
                f"cannot restore '{self.id}' to folding depth {state.folding_depth}; "
                f"only {self._folding_depth} open"
            )
        if state.indent_depth < 0:
            raise ValueError(f"negative indent depth {state.indent_depth}")
        while self._folding_depth > state.folding_depth:
            if self.folding:
                self._emit(FOLDING_CLOSE + "\n")
            self._folding_depth -= 1
        self._indent_depth = state.indent_depth

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write(self, text: str, bordered: bool = False) -> None:
        """Write *text* at the start of a line, without a trailing newline."""
        prefix = self._line_prefix(bordered)
        self._emit(prefix + text.lstrip("\n").replace("\n", "\n" + prefix))

    def write_line(self, text: str, bordered: bool = False) -> None:
        prefix = self._line_prefix(bordered)
        self._emit(prefix + text.lstrip("\n").replace("\n", "\n" + prefix) + "\n")

    def write_here(self, text: str, bordered: bool = False) -> None:
        """Continue the current line; only embedded newlines get a prefix."""
        prefix = self._line_prefix(bordered)
        self._emit(text.replace("\n", "\n" + prefix))

    def write_line_here(self, text: str, bordered: bool = False) -> None:
        prefix = self._line_prefix(bordered)
        self._emit(text.rstrip("\n").replace("\n", "\n" + prefix) + "\n")

    def _line_prefix(self, bordered: bool) -> str:
        parts: list[str] = []
        if self.timestamp:
            parts.append(datetime.now().strftime(TIMESTAMP_FORMAT) + "| ")
        if self.indenting:
            parts.append(TAB * self._indent_depth)
        if bordered:
            parts.append(BORDER)
        return "".join(parts)

    def _emit(self, text: str) -> None:
        if self.disabled or self._sink is None:
            return
        self._sink.write(text)
        _flush(self._sink)

    def __repr__(self) -> str:
        return (
            f"LogDestination(id={self.id!r}, level={self.level.name}, "
            f"indent={self._indent_depth}, folding={self._folding_depth})"
        )


def _flush(sink: object) -> None:
    flush = getattr(sink, "flush", None)
    if callable(flush):
        flush()
