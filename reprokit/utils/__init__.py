"""
Shared utilities: logging and reproduction attempt context.
"""

from .context import ReproAttempt, ReproContext
from .logging_utils import get_logger, setup_logging, set_log_level

__all__ = [
    "ReproAttempt",
    "ReproContext",
    "get_logger",
    "setup_logging",
    "set_log_level",
]
