"""
Logging configuration for factorio-prototypes.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..settings import AppSettings
    from ..settings.logging import LoggingSettings

PROJECT_LOGGER = "factorio_prototypes"
CONSOLE_FORMAT = "%(asctime)s : %(levelname)-8s : %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Third-party loggers that are too chatty at DEBUG
QUIET_LOGGERS = ("PIL", "PIL.PngImagePlugin", "PIL.Image")


class ColoredFormatter(logging.Formatter):
    """Console formatter that wraps the level name in an ANSI colour."""

    RESET = "\033[0m"
    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelname)
        if color is None:
            return text
        # First occurrence only, the message may repeat the level name
        return text.replace(record.levelname, f"{color}{record.levelname}{self.RESET}", 1)


class CSVFormatter(logging.Formatter):
    """One semicolon separated row per record: time;level;uptime;logger;line;message."""

    def format(self, record: logging.LogRecord) -> str:
        columns = (
            self.formatTime(record, self.datefmt),
            f"{int(record.relativeCreated)} ms",
            record.name,
            str(record.lineno),
            record.getMessage().replace('"', '""'),
        )
        time, uptime, name, line, message = (f'"{column}"' for column in columns)
        return ";".join((time, record.levelname.ljust(8), uptime, name, line, message))


def _console_handler(options: "LoggingSettings") -> logging.Handler:
    if options.console_use_colors:
        formatter: logging.Formatter = ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt="%H:%M:%S")
    else:
        formatter = logging.Formatter(fmt=CONSOLE_FORMAT, datefmt="%H:%M:%S")
    handler = logging.StreamHandler()
    handler.setLevel(getattr(logging, options.console_log_level.upper(), logging.INFO))
    handler.setFormatter(formatter)
    return handler


def _file_handler(log_path: Path) -> Optional[logging.Handler]:
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
    except OSError as e:
        logging.getLogger(__name__).warning(f"File logging disabled, cannot open {log_path}: {e}")
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(CSVFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(settings: "AppSettings") -> None:
    """
    Replace the root handlers with the ones enabled in settings.

    The console handler honours the configured level; the CSV file handler
    always records DEBUG and rotates at 10 MB.

    Args:
        settings: AppSettings whose logging subsystem is applied
    """
    options = settings.logging

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    logging.getLogger(PROJECT_LOGGER).setLevel(logging.DEBUG)

    if options.console_logging:
        root_logger.addHandler(_console_handler(options))

    log_path = None
    if options.file_logging:
        log_path = Path(options.log_file_path)
        file_handler = _file_handler(log_path)
        if file_handler is None:
            log_path = None
        else:
            root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO)

    logger = logging.getLogger(__name__)
    logger.info("Logging initialized")
    if options.console_logging:
        logger.debug(f"Console: {options.console_log_level}, colours {options.console_use_colors}")
    if log_path is not None:
        logger.debug(f"CSV log: {log_path.absolute()}")
