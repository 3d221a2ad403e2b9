"""Log formatting for the command-line tool."""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from colorama import Fore, Style, just_fix_windows_console

from dim_explorer.config import LoggingConfig


class ColoredConsoleFormatter(logging.Formatter):
    """Custom formatter that outputs colored logs for console."""

    COLORS = {
        "DEBUG": Fore.CYAN,
        "INFO": Fore.GREEN,
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "CRITICAL": Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors.

        Args:
            record: Log record to format

        Returns:
            Colored log string
        """
        level_color = self.COLORS.get(record.levelname, "")
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{level_color}{record.levelname}{Style.RESET_ALL}"
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """Custom formatter that outputs logs as valid JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def configure_logging(config: LoggingConfig) -> logging.Handler:
    """Attach a stderr handler to the root logger.

    Stdout is reserved for results, so raw JSON output stays parseable.
    """
    just_fix_windows_console()

    handler = logging.StreamHandler(sys.stderr)
    if config.format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            ColoredConsoleFormatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_dim_explorer", False):
            root.removeHandler(existing)
    handler._dim_explorer = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.level.upper(), logging.WARNING))
    return handler
