"""Tests for ColoredFormatter."""

import logging
from io import StringIO
from unittest.mock import patch

import pytest

from discord_playlist_bot.utils.logging import ColoredFormatter

RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}


def _make_record(level: int, message: str = "test", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _tty_stream() -> StringIO:
    stream = StringIO()
    stream.isatty = lambda: True  # type: ignore[method-assign]
    return stream


@pytest.fixture(autouse=True)
def _no_color_env_unset(monkeypatch):
    monkeypatch.delenv("NO_COLOR", raising=False)


class TestColoredFormatter:
    """Tests for ANSI color formatting."""

    def _tty_formatter(self) -> ColoredFormatter:
        return ColoredFormatter("%(levelname)s | %(message)s", stream=_tty_stream())

    @pytest.mark.parametrize(
        "level",
        [logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL],
    )
    def test_color_applied_per_level(self, level: int):
        """Should apply the correct ANSI color code for each level."""
        output = self._tty_formatter().format(_make_record(level))

        assert LEVEL_COLORS[level] in output
        assert RESET in output

    def test_no_color_when_no_color_env_set(self):
        """Should not apply colors when NO_COLOR env var is set."""
        fmt = self._tty_formatter()

        with patch.dict("os.environ", {"NO_COLOR": "1"}):
            output = fmt.format(_make_record(logging.INFO))

        assert "\033[" not in output

    def test_no_color_when_stream_not_tty(self):
        """Should not apply colors when stream is not a TTY."""
        fmt = ColoredFormatter("%(levelname)s | %(message)s", stream=StringIO())

        assert "\033[" not in fmt.format(_make_record(logging.ERROR))

    def test_use_color_forces_colors(self):
        """Should color a non-TTY stream when use_color=True."""
        fmt = ColoredFormatter("%(levelname)s | %(message)s", stream=StringIO(), use_color=True)

        assert LEVEL_COLORS[logging.INFO] in fmt.format(_make_record(logging.INFO))

    def test_use_color_false_wins_over_tty(self):
        fmt = ColoredFormatter("%(levelname)s", stream=_tty_stream(), use_color=False)

        assert fmt.format(_make_record(logging.INFO)) == "INFO"

    def test_format_output_matches_pattern(self):
        """Should produce output matching the configured format string."""
        output = self._tty_formatter().format(_make_record(logging.INFO, "hello world"))

        plain = output.replace(LEVEL_COLORS[logging.INFO], "").replace(RESET, "")
        assert plain == "INFO | hello world"

    def test_original_record_not_mutated(self):
        """Should not mutate the original LogRecord."""
        record = _make_record(logging.WARNING, guild_id=42)

        self._tty_formatter().format(record)

        assert record.levelname == "WARNING"
        assert record.msg == "test"


class TestGuildTag:
    """Tests for the guild prefix added from the ``guild_id`` extra."""

    def test_guild_tag_without_color(self):
        fmt = ColoredFormatter("%(message)s", stream=StringIO())

        assert fmt.format(_make_record(logging.INFO, "joined", guild_id=42)) == "[guild 42] joined"

    def test_guild_tag_is_dimmed_with_color(self):
        fmt = ColoredFormatter("%(message)s", use_color=True)

        output = fmt.format(_make_record(logging.INFO, "joined", guild_id=42))

        assert output == f"\033[2m[guild 42]{RESET} joined"

    def test_no_tag_without_extra(self):
        fmt = ColoredFormatter("%(message)s", stream=StringIO())

        assert fmt.format(_make_record(logging.INFO, "plain")) == "plain"

    def test_tag_with_logger_extra(self):
        """Should pick up the tag when passed through ``logger.info(..., extra=...)``."""
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(ColoredFormatter("%(message)s", stream=stream))
        logger = logging.getLogger("test.colored_formatter.extra")
        logger.propagate = False
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        try:
            logger.info("Playing %s", "song", extra={"guild_id": 7})
        finally:
            logger.removeHandler(handler)

        assert stream.getvalue() == "[guild 7] Playing song\n"
