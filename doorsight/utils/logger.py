"""Logging setup with colored console output for DoorSight."""

import copy
import logging
import sys
from typing import Optional
from colorama import Fore, Back, Style, init

# Translate ANSI codes on Windows consoles; no-op elsewhere
init(autoreset=True)

ROOT_LOGGER_NAME = "doorsight"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name and highlights warnings/errors."""

    COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Back.WHITE + Style.BRIGHT,
    }

    def __init__(self, fmt: str, use_colors: bool = True):
        """
        Initialize colored formatter.

        Args:
            fmt: Log format string.
            use_colors: Whether to emit ANSI color codes.
        """
        super().__init__(fmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record, coloring a copy so other handlers see plain text.

        Args:
            record: Log record to format.

        Returns:
            Formatted log line.
        """
        if not self.use_colors:
            return super().format(record)

        colored = copy.copy(record)
        color = self.COLORS.get(record.levelname, '')
        colored.levelname = f"{color}{record.levelname}{Style.RESET_ALL}"

        if record.levelno >= logging.ERROR:
            colored.msg = f"{Fore.RED}{record.msg}{Style.RESET_ALL}"
        elif record.levelno == logging.WARNING:
            colored.msg = f"{Fore.YELLOW}{record.msg}{Style.RESET_ALL}"

        return super().format(colored)


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str = "INFO",
    fmt: Optional[str] = None,
    use_colors: bool = True
) -> logging.Logger:
    """
    Set up a logger with a colored stdout handler.

    Configuring the package root (the default) makes every module logger
    obtained through get_logger() inherit the handler.

    Args:
        name: Logger name.
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: Custom format string. If None, uses DEFAULT_FORMAT.
        use_colors: Whether to use colored output.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    numeric_level = getattr(logging, level.upper())
    logger.setLevel(numeric_level)

    # Re-running setup only adjusts the level
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(numeric_level)
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    fmt = fmt or DEFAULT_FORMAT
    if use_colors:
        handler.setFormatter(ColoredFormatter(fmt, use_colors=True))
    else:
        handler.setFormatter(logging.Formatter(fmt))

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def configure_logging(logging_config) -> logging.Logger:
    """
    Configure the package logger from a LoggingConfig section.

    Args:
        logging_config: LoggingConfig from settings.

    Returns:
        The configured package root logger.
    """
    return setup_logger(
        ROOT_LOGGER_NAME,
        level=logging_config.level,
        fmt=logging_config.format,
        use_colors=logging_config.console_colors
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
