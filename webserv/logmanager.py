"""Levelled console and file logging for the server."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TextIO

_RESET = "\033[0m"
_MAX_MESSAGE = 1023


class LogLevel(Enum):
    """Severity of a log record, with its label and console colour."""

    DEBUG = ("DEBUG", "\033[0;36m")
    INFO = ("INFO", "\033[0;32m")
    WARNING = ("WARNING", "\033[0;33m")
    ERROR = ("ERROR", "\033[0;31m")
    CRITICAL = ("CRITICAL", "\033[0;35m")
    FATAL = ("FATAL", "\033[0;41m")

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def color(self) -> str:
        return self.value[1]


@dataclass
class Logger:
    """Writes timestamped records to a stream and, optionally, to a file.

    Nothing is written unless ``enabled`` is set; DEBUG records also need
    ``debug``. With ``to_file`` set every record is appended to ``file_name``.
    """

    enabled: bool = False
    debug: bool = False
    to_file: bool = False
    file_name: str = "log.txt"
    stream: TextIO | None = None

    def format_line(self, level: LogLevel, message: str, timestamp: str, color: bool) -> str:
        """Return one log line, with the level coloured if ``color`` is true."""
        if color:
            tag = f"{level.color}{level.label}{_RESET}"
        else:
            tag = level.label
        return f"[{timestamp}] [{tag}] {message}"

    def log(self, level: LogLevel, message: str, *args: object) -> str | None:
        """Record ``message % args`` and return the plain line, or None if suppressed."""
        if not self.enabled or (level is LogLevel.DEBUG and not self.debug):
            return None
        text = message % args if args else message
        text = text[:_MAX_MESSAGE]
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        out = self.stream if self.stream is not None else sys.stdout
        print(self.format_line(level, text, timestamp, color=True), file=out)

        plain = self.format_line(level, text, timestamp, color=False)
        if self.to_file:
            try:
                with Path(self.file_name).open("a", encoding="utf-8") as handle:
                    handle.write(plain + "\n")
            except OSError:
                pass
        return plain


logger = Logger()