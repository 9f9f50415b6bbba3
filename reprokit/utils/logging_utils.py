"""
Logging utilities for reprokit.

Log records can optionally carry the reproduction attempt ID and stage.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .context import ReproContext


# Global logger configuration
_LOGGER_CONFIGURED = False
_LOG_LEVEL = logging.INFO
_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_LOG_FORMAT_WITH_ATTEMPT = "%(asctime)s - %(name)s - %(levelname)s - [%(attempt_id)s|%(stage)s] - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: Optional[int] = None,
    log_file: Optional[Path] = None,
    format_str: Optional[str] = None,
    use_tracing: bool = False,
    use_colors: bool = False,
    force: bool = False,
) -> None:
    """
    Configure global logging settings.

    Args:
        level: Logging level (e.g., logging.INFO)
        log_file: Optional file to write logs to
        format_str: Custom format string for log messages
        use_tracing: Include the reproduction attempt ID and stage in logs
        use_colors: Enable colored output for console
        force: Reconfigure even if logging was already set up
    """
    global _LOGGER_CONFIGURED, _LOG_LEVEL

    if _LOGGER_CONFIGURED and not force:
        return

    if level is not None:
        _LOG_LEVEL = level

    if format_str is not None:
        log_format = format_str
    elif use_tracing:
        log_format = _LOG_FORMAT_WITH_ATTEMPT
    else:
        log_format = _LOG_FORMAT

    root_logger = logging.getLogger()
    root_logger.setLevel(_LOG_LEVEL)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if use_tracing and use_colors:
        console_formatter = ColoredTracingFormatter(log_format, _DATE_FORMAT)
    elif use_tracing:
        console_formatter = TracingFormatter(log_format, _DATE_FORMAT)
    elif use_colors:
        console_formatter = ColoredFormatter(log_format, _DATE_FORMAT)
    else:
        console_formatter = logging.Formatter(log_format, _DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(_LOG_LEVEL)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(_LOG_LEVEL)
        if use_tracing:
            file_formatter = TracingFormatter(log_format, _DATE_FORMAT)
        else:
            file_formatter = logging.Formatter(log_format, _DATE_FORMAT)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    disable_third_party_logs()

    _LOGGER_CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    if not _LOGGER_CONFIGURED:
        setup_logging()

    return logging.getLogger(name)


def set_log_level(level: int) -> None:
    """
    Set the global logging level.

    Args:
        level: Logging level (e.g., logging.DEBUG)
    """
    global _LOG_LEVEL
    _LOG_LEVEL = level

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)


def add_file_handler(log_file: Path) -> None:
    """
    Add a file handler to the root logger.

    Args:
        log_file: Path to log file
    """
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(_LOG_LEVEL)
    formatter = logging.Formatter(_LOG_FORMAT, _DATE_FORMAT)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.addHandler(file_handler)


class TracingFormatter(logging.Formatter):
    """
    Formatter that includes the reproduction attempt ID and stage.
    """

    def format(self, record):
        attempt_id = ReproContext.get_attempt_id()
        stage = ReproContext.get_stage()

        record.attempt_id = attempt_id if attempt_id else "-"
        record.stage = stage if stage else "-"

        return super().format(record)


class ColoredFormatter(logging.Formatter):
    """
    Colored formatter for console output.
    """

    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }
    RESET = "\033[0m"

    def format(self, record):
        """Format the log record with colors."""
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

        formatted = super().format(record)

        # Reset levelname for other handlers
        record.levelname = levelname

        return formatted


class ColoredTracingFormatter(TracingFormatter, ColoredFormatter):
    """
    Combined formatter with both attempt context and color support.
    """

    def format(self, record):
        attempt_id = ReproContext.get_attempt_id()
        stage = ReproContext.get_stage()
        record.attempt_id = attempt_id if attempt_id else "-"
        record.stage = stage if stage else "-"

        return ColoredFormatter.format(self, record)


def disable_third_party_logs() -> None:
    """
    Quieten verbose logging from third-party libraries.
    """
    third_party_loggers = [
        "matplotlib",
        "sklearn",
        "numexpr",
    ]

    for logger_name in third_party_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
