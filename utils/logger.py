import sys
from typing import Optional

import loguru

from config.models import LoggingConfig

# stdout is reserved for folded JSON, so console logs always go to stderr
CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logger(settings: Optional[LoggingConfig] = None, verbose: bool = False):
    """
    Routes loguru output according to the `logging` config section.

    Args:
        settings: Level and optional log file. Defaults apply when None.
        verbose: Forces DEBUG on the console, whatever the configured level.
    """
    settings = settings or LoggingConfig()
    loguru.logger.remove()

    loguru.logger.add(
        sys.stderr,
        level="DEBUG" if verbose else settings.level,
        format=CONSOLE_FORMAT,
        colorize=True,
    )

    if settings.file:
        loguru.logger.add(
            settings.file,
            level="DEBUG",
            format=FILE_FORMAT,
            rotation="10 MB",
            retention="7 days",
            enqueue=True,
            backtrace=True,
            diagnose=verbose,
        )

    return loguru.logger


logger = setup_logger()
