"""
Logging configuration for the prediction league service.
"""

import logging

from .config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output"""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",  # Reset
    }

    def format(self, record):
        log_color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset_color = self.COLORS["RESET"]
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{log_color}{record.levelname}{reset_color}"
        return super().format(record)


def setup_logging(level: str = LOG_LEVEL, colored: bool = True):
    """
    Configure the package logger with a single console handler.

    Safe to call more than once; existing handlers are replaced.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    package_logger = logging.getLogger("prediction_league")
    package_logger.setLevel(log_level)

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    formatter_class = ColoredFormatter if colored else logging.Formatter
    console_handler.setFormatter(formatter_class(LOG_FORMAT))
    package_logger.addHandler(console_handler)
    package_logger.propagate = False

    return package_logger
