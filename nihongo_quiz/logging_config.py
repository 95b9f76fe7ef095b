"""Logging setup for the quiz service.

Log lines are single-line ``key=value`` records written to stdout so they can
be grepped locally and shipped as-is by the container runtime.
"""

import logging
import sys
from typing import Union


class KeyValueFormatter(logging.Formatter):
    """Render records as ``ts=... level=... logger=... msg="..."``."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage().replace('"', '\\"')
        line = (
            f"ts={self.formatTime(record, '%Y-%m-%dT%H:%M:%S')} "
            f"level={record.levelname} logger={record.name} "
            f'msg="{message}"'
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: Union[int, str] = "INFO") -> logging.Logger:
    """Configure root logging to stdout and return the package logger."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(KeyValueFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)
    return logging.getLogger("nihongo_quiz")
