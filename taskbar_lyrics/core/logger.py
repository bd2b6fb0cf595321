"""
Logging configuration for taskbar-lyrics.

Three outputs per run:
    - Console: coloured, tqdm-compatible output (level configurable)
    - log_full_{timestamp}.log: Complete log of all events (DEBUG and above)
    - log_errors_{timestamp}.log: Only ERROR and CRITICAL level messages

Lyric resolution swallows almost every failure (a missing lyric is never
an error for the caller), so the DEBUG file log is where swallowed
transport and cache failures become visible.

Usage:
    from taskbar_lyrics.core.logger import setup_logging, get_logger

    setup_logging(log_dir)          # Call once at startup
    logger = get_logger(__name__)   # Get logger for each module

    logger.info("Resolved lyrics")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

import colorama
from colorama import Fore, Style
from tqdm import tqdm


# File lines carry time, level and logger name
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Console lines stay short so they fit above a tqdm bar
CONSOLE_LOG_FORMAT = "%(levelname)s: %(message)s"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that colours the level name for console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bright Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Fore.BLUE,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Style.BRIGHT + Fore.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Fore.WHITE)
        colored_levelname = f"{color}{record.levelname}{Style.RESET_ALL}"
        return f"{colored_levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking tqdm progress bars.

    The demo command shows a tqdm bar while it polls the session. Writing
    log lines with tqdm.write() keeps them above the bar instead of tearing
    it.

    Attributes:
        stream: The output stream (defaults to sys.stderr).
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
    """Keeps ERROR and CRITICAL records only, for the errors file."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path, console_level: str = "INFO") -> None:
    """
    Route every taskbar_lyrics record to the console and two run files.

    Called by the CLI right after load_config(); library users that embed
    the resolver in their own application can skip it and keep their own
    handlers.

    Args:
        log_dir: Where log_full_<run>.log and log_errors_<run>.log go.
        console_level: Console threshold (the files always get DEBUG).

    Any handlers already on the root logger are closed and replaced, so
    calling it twice does not duplicate output.
    """
    colorama.just_fix_windows_console()

    log_dir.mkdir(parents=True, exist_ok=True)
    run_stamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    _close_handlers(root)

    console = TqdmLoggingHandler()
    console.setLevel(console_level.upper())
    console.setFormatter(ColoredConsoleFormatter(CONSOLE_LOG_FORMAT))
    root.addHandler(console)

    root.addHandler(_run_file_handler(log_dir / f"log_full_{run_stamp}.log"))
    root.addHandler(
        _run_file_handler(log_dir / f"log_errors_{run_stamp}.log", ErrorOnlyFilter())
    )

    # aiohttp logs every connection detail at DEBUG
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def _run_file_handler(path: Path, record_filter: logging.Filter | None = None) -> logging.FileHandler:
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    if record_filter is not None:
        handler.addFilter(record_filter)
    return handler


def _close_handlers(target: logging.Logger) -> None:
    for handler in list(target.handlers):
        handler.flush()
        handler.close()
        target.removeHandler(handler)


def shutdown_logging() -> None:
    """Flush and detach the handlers installed by setup_logging()."""
    _close_handlers(logging.getLogger())


def get_logger(name: str) -> logging.Logger:
    """
    Return the module logger for `name` (pass __name__).

    Records propagate to the root handlers, so a logger fetched at import
    time picks up whatever setup_logging() installs later.
    """
    return logging.getLogger(name)
