"""Tests for a single log destination (core/destination.py).

Coverage:
* Target resolution: console tokens, files, streams, missing config.
* Line prefixes: indentation, border, timestamp, embedded newlines.
* ``write``/``write_here`` newline handling.
* Indent and fold state, snapshot/restore, invariant guards.
* ``close`` ownership and idempotence.
"""

from __future__ import annotations

import io
import re
import sys
from pathlib import Path

import pytest

from brewed.core.destination import LogDestination
from brewed.core.models import DestinationOptions, DestinationState, LogLevel
from brewed.exceptions import ConfigError


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def _dest(buffer: io.StringIO, **overrides: object) -> LogDestination:
    options: dict[str, object] = {"target": buffer, "id": "buf"}
    options.update(overrides)
    return LogDestination.open(options)


# ---------------------------------------------------------------------------
# open()
# ---------------------------------------------------------------------------

class TestOpen:
    @pytest.mark.parametrize("token", [">", ">1", ">>", ">>1", "STDOUT", "stdout"])
    def test_stdout_tokens(self, token: str) -> None:
        dest = LogDestination.open(DestinationOptions(target=token))
        assert dest.id == "STDOUT"
        assert dest._sink is sys.stdout

    @pytest.mark.parametrize("token", [">2", ">>2", "STDERR", "stderr"])
    def test_stderr_tokens(self, token: str) -> None:
        dest = LogDestination.open(DestinationOptions(target=token))
        assert dest.id == "STDERR"
        assert dest._sink is sys.stderr

    def test_explicit_id_wins_over_token(self) -> None:
        dest = LogDestination.open(DestinationOptions(target="STDOUT", id="console"))
        assert dest.id == "console"

    def test_file_target_derives_id_from_stem(self, tmp_path: Path) -> None:
        dest = LogDestination.open(DestinationOptions(target=tmp_path / "nightly.log"))
        try:
            assert dest.id == "nightly"
        finally:
            dest.close()

    def test_file_target_appends(self, tmp_path: Path) -> None:
        path = tmp_path / "app.log"
        path.write_text("existing\n", encoding="utf-8")
        dest = LogDestination.open({"target": str(path)})
        dest.write_line("appended")
        dest.close()
        assert path.read_text(encoding="utf-8") == "existing\nappended\n"

    def test_unopenable_file_raises_config_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="cannot open log file"):
            LogDestination.open(DestinationOptions(target=tmp_path / "missing" / "x.log"))

    def test_missing_target_raises(self) -> None:
        with pytest.raises(ConfigError, match="target is required"):
            LogDestination.open(DestinationOptions(id="x"))

    def test_stream_without_id_raises(self) -> None:
        with pytest.raises(ConfigError, match="id is required"):
            LogDestination.open(DestinationOptions(target=io.StringIO()))

    def test_sink_without_write_raises(self) -> None:
        with pytest.raises(ConfigError, match="no write method"):
            LogDestination.open(DestinationOptions(target=object(), id="x"))

    def test_invalid_level_raises(self) -> None:
        with pytest.raises(ConfigError, match="invalid log level"):
            LogDestination.open({"target": io.StringIO(), "id": "x", "level": "chatty"})

    def test_unknown_option_raises(self) -> None:
        with pytest.raises(ConfigError, match="unknown log destination option"):
            LogDestination.open({"target": "STDOUT", "colour": True})

    def test_folding_defaults_follow_level(self) -> None:
        out = LogDestination.open({"target": io.StringIO(), "id": "o", "level": "output"})
        dbg = LogDestination.open({"target": io.StringIO(), "id": "d", "level": "debug"})
        assert out.folding is False
        assert dbg.folding is True

    def test_explicit_folding_overrides_default(self) -> None:
        dest = LogDestination.open(
            {"target": io.StringIO(), "id": "o", "level": "output", "folding": True},
        )
        assert dest.folding is True


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

class TestWrite:
    def test_write_line_plain(self, out_buffer: io.StringIO) -> None:
        _dest(out_buffer).write_line("hello")
        assert out_buffer.getvalue() == "hello\n"

    def test_write_line_indented_multiline(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer)
        dest.adjust_indent(2)
        dest.write_line("a\nb")
        assert out_buffer.getvalue() == "\t\ta\n\t\tb\n"

    def test_write_line_strips_leading_newlines(self, out_buffer: io.StringIO) -> None:
        _dest(out_buffer).write_line("\n\nhello")
        assert out_buffer.getvalue() == "hello\n"

    def test_bordered_prefix(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer)
        dest.adjust_indent()
        dest.write_line("x: 1\ny: 2", True)
        assert out_buffer.getvalue() == "\t | x: 1\n\t | y: 2\n"

    def test_write_has_no_trailing_newline(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer)
        dest.adjust_indent()
        dest.write("{**} ")
        assert out_buffer.getvalue() == "\t{**} "

    def test_write_here_continues_line(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer)
        dest.adjust_indent()
        dest.write("start ")
        dest.write_here("more\nnext")
        assert out_buffer.getvalue() == "\tstart more\n\tnext"

    def test_write_line_here_strips_trailing_newlines(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer)
        dest.write("a")
        dest.write_line_here("b\n\n")
        assert out_buffer.getvalue() == "ab\n"

    def test_indenting_disabled(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer, indenting=False)
        dest.adjust_indent(3)
        dest.write_line("flat")
        assert out_buffer.getvalue() == "flat\n"

    def test_timestamp_prefix(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer, timestamp=True)
        dest.adjust_indent()
        dest.write_line("stamped")
        assert re.fullmatch(
            r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}\| \tstamped\n", out_buffer.getvalue()
        )

    def test_disabled_writes_nothing(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer, disabled=True)
        dest.write_line("nope")
        dest.write("nope")
        dest.write_here("nope")
        dest.write_line_here("nope")
        assert out_buffer.getvalue() == ""


# ---------------------------------------------------------------------------
# Indentation and folding state
# ---------------------------------------------------------------------------

class TestState:
    def test_adjust_indent_returns_previous_depth(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer)
        assert dest.adjust_indent() == 0
        assert dest.adjust_indent(2) == 1
        assert dest.adjust_indent(-3) == 3
        assert dest.indent_depth == 0

    def test_negative_indent_rejected(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer)
        with pytest.raises(ValueError, match="negative"):
            dest.adjust_indent(-1)
        assert dest.indent_depth == 0

    def test_open_fold_emits_marker_when_folding(self, debug_buffer: io.StringIO) -> None:
        dest = _dest(debug_buffer, level=LogLevel.DEBUG)
        assert dest.open_fold() == 0
        assert dest.open_fold() == 1
        assert debug_buffer.getvalue() == "|{\n|{\n"

    def test_open_fold_silent_without_folding(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer)
        dest.open_fold()
        assert dest.folding_depth == 1
        assert out_buffer.getvalue() == ""

    def test_get_state_snapshot(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer)
        dest.adjust_indent(2)
        dest.open_fold()
        assert dest.get_state() == DestinationState(indent_depth=2, folding_depth=1)

    @pytest.mark.parametrize("opened", [0, 1, 3])
    def test_restore_emits_one_close_per_open_fold(
        self, debug_buffer: io.StringIO, opened: int,
    ) -> None:
        dest = _dest(debug_buffer, level="debug")
        dest.open_fold()
        snapshot = dest.get_state()
        for _ in range(opened):
            dest.open_fold()
        debug_buffer.truncate(0)
        debug_buffer.seek(0)

        dest.restore_state(snapshot)

        assert debug_buffer.getvalue().count("}|\n") == opened
        assert dest.folding_depth == 1

    def test_restore_resets_indent(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer)
        snapshot = dest.get_state()
        dest.adjust_indent(4)
        dest.restore_state(snapshot)
        assert dest.indent_depth == 0

    def test_restore_to_deeper_fold_rejected(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer)
        with pytest.raises(ValueError, match="folding depth"):
            dest.restore_state(DestinationState(indent_depth=0, folding_depth=2))

    def test_disabled_restore_still_tracks_depth(self, debug_buffer: io.StringIO) -> None:
        dest = _dest(debug_buffer, level="debug", disabled=True)
        snapshot = dest.get_state()
        dest.open_fold()
        dest.restore_state(snapshot)
        assert dest.folding_depth == 0
        assert debug_buffer.getvalue() == ""


# ---------------------------------------------------------------------------
# close()
# ---------------------------------------------------------------------------

class TestClose:
    def test_stream_sink_is_not_closed(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer)
        dest.close()
        assert dest.closed
        assert not out_buffer.closed

    def test_owned_file_is_closed(self, tmp_path: Path) -> None:
        dest = LogDestination.open({"target": tmp_path / "a.log"})
        sink = dest._sink
        dest.close()
        assert sink is not None and sink.closed  # type: ignore[attr-defined]

    def test_close_is_idempotent(self, tmp_path: Path) -> None:
        dest = LogDestination.open({"target": tmp_path / "a.log"})
        dest.close()
        dest.close()

    def test_writes_after_close_are_dropped(self, out_buffer: io.StringIO) -> None:
        dest = _dest(out_buffer)
        dest.close()
        dest.write_line("late")
        assert out_buffer.getvalue() == ""
