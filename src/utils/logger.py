import atexit
import logging

from rich.console import Console
from rich.logging import RichHandler

from utils import config

_log_console = None
_log_file = None


class CenteredFormatter(logging.Formatter):
    longest_name_length = 14  # Initial default width

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=14):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )

        dynamic_width = CenteredFormatter.longest_name_length + 2
        record.name = f"{record.name.center(dynamic_width - 2)}"
        return super().format(record)


def _console():
    """Console shared by every handler, writing to LOG_FILE when one is configured."""
    global _log_console, _log_file
    if _log_console is None:
        if config.LOG_FILE:
            _log_file = open(config.LOG_FILE, "a", encoding="utf-8")
            atexit.register(close_log)
            _log_console = Console(
                file=_log_file,
                width=140,
                no_color=True,
            )
        else:
            _log_console = Console(stderr=True)
    return _log_console


def close_log():
    """Close LOG_FILE. Loggers made before this keep their console, so call it last."""
    global _log_file
    if _log_file is not None and not _log_file.closed:
        _log_file.close()
    _log_file = None


def get_logger(name=None) -> logging.Logger:
    """
    Creates and returns a logger configured with RichHandler for rich output.

    The level is DEBUG when the DEBUG environment variable is set.
    """
    if name is None:
        name = "itemku"
    logger = logging.getLogger(name)
    log_level = logging.DEBUG if config.DEBUG else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        formatter = CenteredFormatter("[%(name)s]  %(message)s")

        console_handler = RichHandler(
            console=_console(),
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)

        logger.propagate = False
        logger.debug(f"Logger for '{name}' initialized with RichHandler.")

    return logger
