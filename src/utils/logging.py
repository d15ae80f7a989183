"""Logging setup for the CLI.

Human mode renders through rich's handler on the shared console; JSON mode
writes one JSON object per line for CI logs.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "src"


class JSONFormatter(logging.Formatter):
    """Formatter for JSON lines output.

    Format: {"level":"INFO","ts":"2026-01-31T19:45:23+00:00","logger":"...","msg":"..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "level": record.levelname,
            "ts": datetime.now(timezone.utc).isoformat(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            log_entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def setup_logging(
    verbose: bool = False,
    json_output: bool = False,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        verbose: Log DEBUG messages instead of WARNING and above
        json_output: Emit JSON lines instead of rich-formatted records
        console: Console the rich handler writes to

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.handlers.clear()

    if json_output:
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
    else:
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=verbose,
            rich_tracebacks=verbose,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)
    logger.propagate = False
    return logger
