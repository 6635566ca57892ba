"""
Logging configuration for icloud-album.

The library only ever obtains loggers through get_logger(); it never
installs handlers. Applications (and the bundled CLI) call setup_logging()
once at startup to get:
    - Console: colored, tqdm-compatible output at the configured level
    - log_full_{timestamp}.log: every record (DEBUG and above), optional
    - log_errors_{timestamp}.log: only ERROR and CRITICAL, optional

Decode warnings from the tolerant decoder are routed through
log_decode_warning(), which attaches the field path as an 'extra' so
handlers can pick them out.

Usage:
    from icloud_album.core.logger import setup_logging, get_logger

    setup_logging("INFO", log_dir=None)  # Call once at startup
    logger = get_logger(__name__)        # Get logger for each module
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from tqdm import tqdm

if TYPE_CHECKING:
    from icloud_album.core.decoder import LenientCoercionWarning


# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that colors the level name for console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        return f"{colored_levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes through tqdm.write().

    Parallel album resolution shows a tqdm progress bar on stderr; plain
    stream handlers would break its in-place updates. tqdm.write() prints
    messages above any active bar.
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class ErrorOnlyFilter(logging.Filter):
    """Filter that only allows ERROR and CRITICAL level records."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(level: str = "INFO", log_dir: Path | None = None) -> None:
    """
    Configure the logging system for an application using icloud-album.

    This function should be called ONCE at application startup.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_dir: Optional directory for log files. Created if missing.
                 When None, only the console handler is installed.

    Behavior:
        1. Set root logger level to DEBUG and clear existing handlers
        2. Add a colored TqdmLoggingHandler at the requested level
        3. If log_dir is given, add a full log file handler (DEBUG) and an
           error-only file handler, both named with a run timestamp
        4. Quiet urllib3's connection-pool chatter
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

        full_handler = logging.FileHandler(
            log_dir / f"log_full_{timestamp}.log", mode="w", encoding="utf-8"
        )
        full_handler.setLevel(logging.DEBUG)
        full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
        root_logger.addHandler(full_handler)

        error_handler = logging.FileHandler(
            log_dir / f"log_errors_{timestamp}.log", mode="w", encoding="utf-8"
        )
        error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
        error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
        error_handler.addFilter(ErrorOnlyFilter())
        root_logger.addHandler(error_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Returns:
        logging.Logger: A logger in the 'icloud_album' hierarchy.
    """
    return logging.getLogger(name)


def log_decode_warning(
    logger: logging.Logger,
    warning: "LenientCoercionWarning",
    token: str | None = None
) -> None:
    """
    Log a lenient decode warning.

    Args:
        logger: The logger to use for the message.
        warning: The decode event.
        token: Album token the payload belonged to, if known.

    Behavior:
        Logs a WARNING level message and attaches 'decode_warning_field'
        and 'decode_warning_token' extra fields.
    """
    logger.warning(
        f"Tolerated malformed field {warning.field}: {warning.reason}",
        extra={
            "decode_warning_field": warning.field,
            "decode_warning_token": token,
        }
    )


def shutdown_logging() -> None:
    """
    Flush and close all root handlers.

    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except Exception:
            pass
        root_logger.removeHandler(handler)
