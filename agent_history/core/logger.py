"""Logging setup for agent-history.

History events are logged as structured loguru records with an ``event`` field
in ``extra``; the sinks below render that field next to the message.
"""

import sys
from pathlib import Path

from loguru import logger

from agent_history.config.settings import Settings

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level> | {extra}"

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message} | {extra}"


def setup_logger(level: str = "INFO", log_file: str | None = None, rotation: str = "10 MB") -> None:
    """Route history logs to stderr and, if log_file is set, to a rotating file.

    Args:
        level: Minimum level for every sink
        log_file: Path of the file sink; parent directories are created
        rotation: loguru rotation rule for the file sink
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_path, format=FILE_FORMAT, level=level, rotation=rotation, diagnose=False)

    logger.debug("logging_configured", level=level, log_file=log_file, event="logging_configured")


def configure_logging(settings: Settings, debug: bool = False) -> None:
    """Apply LOG_LEVEL and LOG_FILE from settings; debug forces DEBUG."""
    setup_logger(level="DEBUG" if debug else settings.log_level, log_file=settings.log_file)
