"""
Logging Configuration
=====================

Console and JSON-lines logging for the sorter.

Modules attach context to records with ``extra=``; the fields listed in
``CONTEXT_FIELDS`` are picked up by both formatters, so a failed move
shows which file, where it was going and why in either output.
"""

import logging
import logging.handlers
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional
from dataclasses import dataclass, field


ROOT_LOGGER_NAME = "dirsorter"

# Record attributes carried into structured output, in display order
CONTEXT_FIELDS = ("file_path", "destination", "directory", "error_code")


def record_context(record: logging.LogRecord) -> Dict[str, str]:
    """Collect the context fields present on a record."""
    return {
        name: getattr(record, name)
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, context fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(record_context(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line output with the error code appended."""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_color: bool = True):
        super().__init__(fmt="[%(asctime)s] %(levelname)-8s %(name)s: %(message)s", datefmt="%H:%M:%S")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        error_code = getattr(record, "error_code", None)
        if error_code:
            line += f" ({error_code})"
        if self.use_color:
            color = self.LEVEL_COLORS.get(record.levelno, '')
            line = f"{color}{line}{self.RESET}"
        return line


@dataclass
class LoggingConfig:
    """Configuration for the logging system.

    Attributes:
        level: Name of the minimum level to emit.
        log_dir: Directory for the rotating JSON log file.
        console_output: Log to stdout.
        file_output: Also write ``dirsorter.log`` under ``log_dir``.
        json_format: Use JSON instead of colored text on the console.
        max_file_size: Rotation threshold in bytes.
        backup_count: Rotated files to keep.
    """
    level: str = "INFO"
    log_dir: Path = field(default_factory=lambda: Path.home() / ".dirsorter" / "logs")
    console_output: bool = True
    file_output: bool = False
    json_format: bool = False
    max_file_size: int = 10 * 1024 * 1024
    backup_count: int = 5


def _build_handlers(config: LoggingConfig) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []

    if config.console_output:
        console = logging.StreamHandler(sys.stdout)
        if config.json_format:
            console.setFormatter(JSONFormatter())
        else:
            console.setFormatter(ConsoleFormatter(use_color=sys.stdout.isatty()))
        handlers.append(console)

    if config.file_output:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = logging.handlers.RotatingFileHandler(
            config.log_dir / "dirsorter.log",
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
            encoding='utf-8'
        )
        log_file.setFormatter(JSONFormatter())
        handlers.append(log_file)

    return handlers


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Configure the application logger.

    Replaces (and closes) any handlers installed by an earlier call.

    Args:
        config: Logging configuration. Uses defaults if not provided.

    Returns:
        The application's root logger.
    """
    config = config or LoggingConfig()
    app_logger = logging.getLogger(ROOT_LOGGER_NAME)
    app_logger.setLevel(config.level.upper())

    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()
    for handler in _build_handlers(config):
        app_logger.addHandler(handler)

    # Records stop at the application logger
    app_logger.propagate = False
    return app_logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the application namespace.

    Args:
        name: Module name, typically __name__.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
