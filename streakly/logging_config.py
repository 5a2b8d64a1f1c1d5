"""
Logging setup for Streakly.

Development gets short colored console lines; production gets JSON lines on
the console and in a rotating file. Evaluation passes tag their records with
the user they run for through LogContext, and both formatters print that
context.
"""

import json
import logging
import logging.handlers
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

LOGS_DIR = Path(__file__).parent.parent / "logs"
LOG_FILE_NAME = "streakly.log"

LOG_LEVELS = {
    "development": logging.DEBUG,
    "production": logging.INFO,
    "testing": logging.WARNING,
}


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, "context", None) or {}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with any LogContext values under "context"."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = _context(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line output for development."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        context = " ".join(f"{k}={v}" for k, v in _context(record).items())

        line = f"{color}[{timestamp}] {record.levelname:8}{self.RESET} {record.name}: {record.getMessage()}"
        if context:
            line += f" [{context}]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: Optional[str] = None,
    json_logs: bool = False,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Log level name; defaults by FLASK_ENV
        json_logs: JSON lines on the console instead of colored text
        log_file: Also write JSON lines to this rotating file. Production
            writes to logs/streakly.log when none is given.

    Returns:
        The root logger
    """
    env = os.environ.get("FLASK_ENV", "development")
    if level:
        log_level = getattr(logging, level.upper(), logging.INFO)
    else:
        log_level = LOG_LEVELS.get(env, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(JSONFormatter() if json_logs else ConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_file is None and env == "production":
        LOGS_DIR.mkdir(exist_ok=True)
        log_file = str(LOGS_DIR / LOG_FILE_NAME)
    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    # Request lines from the dev server
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext(logging.Filter):
    """
    Tag every record logged through one logger with key/value context.

    Used as a context manager; nested contexts merge, inner values winning.

    Example:
        with LogContext(logger, user_id=user_id):
            logger.info("Achievement unlocked")
    """

    def __init__(self, logger: logging.Logger, **context):
        super().__init__()
        self.logger = logger
        self.context = context

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = {**_context(record), **self.context}
        return True

    def __enter__(self):
        self.logger.addFilter(self)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.removeFilter(self)
