"""Console logging formatter with optional ANSI colors."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Colors the level name, and tags records carrying a ``guild_id`` extra.

    Colors are off when ``NO_COLOR`` is set, when *use_color* is False, or when
    the target stream is not a TTY. ``logging_config.json`` builds this through
    the ``()`` factory key, so every argument has a default.
    """

    COLORS: dict[int, str] = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def __init__(
        self,
        fmt: str | None = DEFAULT_FORMAT,
        datefmt: str | None = DEFAULT_DATEFMT,
        *,
        stream: TextIO | None = None,
        use_color: bool | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._stream = stream
        self._force_color = use_color

    def _use_color(self) -> bool:
        if os.environ.get("NO_COLOR") is not None:
            return False
        if self._force_color is not None:
            return self._force_color
        stream = self._stream or sys.stdout
        return hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        guild_id = getattr(record, "guild_id", None)
        colored = self._use_color()
        if not colored and guild_id is None:
            return super().format(record)

        record = logging.makeLogRecord(record.__dict__)
        if guild_id is not None:
            tag = f"[guild {guild_id}]"
            if colored:
                tag = f"{self.DIM}{tag}{self.RESET}"
            record.msg = f"{tag} {record.msg}"
        if colored:
            color = self.COLORS.get(record.levelno, "")
            record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)
