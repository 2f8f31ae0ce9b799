import logging

from rich.console import Console
from rich.logging import RichHandler

from utils.config import get_settings

# the TUI owns stdout, log lines go to stderr
_console = Console(stderr=True)


class CenteredFormatter(logging.Formatter):
    longest_name_length = 16  # grows as longer logger names show up

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=16):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, initial_width
        )

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )
        width = CenteredFormatter.longest_name_length
        record.name = record.name.center(width)
        return super().format(record)


def get_logger(name=None) -> logging.Logger:
    """
    Returns a logger writing through RichHandler.

    Level is DEBUG when DEBUG is set in the environment, INFO otherwise.
    Handlers are attached once per logger name.
    """
    if name is None:
        name = "wholesale"
    logger = logging.getLogger(name)
    log_level = logging.DEBUG if get_settings().debug else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        formatter = CenteredFormatter("[%(name)s]  %(message)s")

        handler = RichHandler(
            console=_console,
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        logger.addHandler(handler)

        logger.propagate = False
        logger.debug(f"Logger for '{name}' initialized.")

    return logger
