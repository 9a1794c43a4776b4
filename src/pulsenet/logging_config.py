import logging
from typing import Union

from rich.console import Console
from rich.logging import RichHandler


LOGGER_NAME = "pulsenet"


def setup_logging(log_level: Union[int, str] = logging.WARNING) -> logging.Logger:
    """Configures the package logger with a rich console handler on stderr."""
    if isinstance(log_level, str):
        log_level = logging.getLevelName(log_level.upper())
        if not isinstance(log_level, int):
            log_level = logging.WARNING

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    if logger.hasHandlers():
        logger.handlers.clear()

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    logger.debug("Logging configured at %s", logging.getLevelName(log_level))
    return logger
