"""
Logging setup for xpost.

The curses UI owns the terminal while it runs, so log records go to a file.
A coloured console handler is only attached for the non-interactive commands.
"""
import logging
import os
from typing import Optional

ROOT_LOGGER_NAME = "xpost"


class CustomFormatter(logging.Formatter):
    """
    A custom formatter for logging messages with different log levels.

    Attributes:
        grey (str): ANSI escape sequence for grey color.
        yellow (str): ANSI escape sequence for yellow color.
        red (str): ANSI escape sequence for red color.
        bold_red (str): ANSI escape sequence for bold red color.
        reset (str): ANSI escape sequence to reset color.
        format (str): The log message format.
        FORMATS (dict): A dictionary mapping log levels to their respective log message formats.
    """
    grey = "\x1b[37;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    dark_grey = "\x1b[30;1m"
    reset = "\x1b[0m"
    format = '[%(levelname)s] %(asctime)s - %(message)s'

    FORMATS = {
        logging.DEBUG: dark_grey + format + reset,
        logging.INFO: grey + format + reset,
        logging.WARNING: yellow + format + reset,
        logging.ERROR: red + format + reset,
        logging.CRITICAL: bold_red + format + reset
    }

    def format(self, record):
        """
        Formats the log record based on its log level.

        Args:
            record (logging.LogRecord): The log record to be formatted.

        Returns:
            str: The formatted log message.
        """
        log_fmt = self.FORMATS.get(record.levelno)
        formatter = logging.Formatter(log_fmt)
        return formatter.format(record)


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger that lives under the application's root logger.

    Args:
        name: Usually the calling module's ``__name__``.

    Returns:
        logging.Logger: The child logger.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_file_logging(log_file: Optional[str], level: int = logging.INFO,
                       console: bool = False) -> logging.Logger:
    """
    Configure the application root logger.

    Args:
        log_file: Path of the log file, or None to skip the file handler.
        level: Logging level applied to the root logger and its handlers.
        console: Also log to stderr with the coloured formatter.

    Returns:
        logging.Logger: The configured root logger.
    """
    log = logging.getLogger(ROOT_LOGGER_NAME)
    log.setLevel(level)

    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()

    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s - %(message)s'
        ))
        log.addHandler(fh)

    if console:
        ch = logging.StreamHandler()
        ch.setLevel(level)
        ch.setFormatter(CustomFormatter())
        log.addHandler(ch)

    if not log.handlers:
        log.addHandler(logging.NullHandler())

    # Keep records away from the terminal that curses is drawing on.
    log.propagate = False
    return log
