import sys
import os
from loguru import logger

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <7}</level> | "
    "<cyan>{name}</cyan> | "
    "{message}"
)


def configure_logging(
    *,
    level: str = "INFO",
    colorize: bool = True,
    format: str = DEFAULT_FORMAT,
    sink=sys.stdout,
    only_fullcal: bool = False,
    replace: bool = True,
) -> int:
    """
    Install a loguru sink for feed conversion logs.

    Parameters:
    - level: minimum log level ("DEBUG", "INFO", ...). FULLCAL_LOG_LEVEL wins.
    - colorize: ANSI colors on the console. FULLCAL_LOG_COLORIZE wins.
    - format: Loguru format string. FULLCAL_LOG_FORMAT wins.
    - sink: stdout unless the host application passes its own.
    - only_fullcal: drop records that do not come from this package.
    - replace: remove the sinks already installed, loguru's default
      stderr one included. Host applications keeping their own sinks
      pass False.

    Returns the id of the installed handler, for logger.remove().
    """
    env_level = os.getenv("FULLCAL_LOG_LEVEL", "").upper()
    env_colorize = os.getenv("FULLCAL_LOG_COLORIZE", "").lower()
    env_format = os.getenv("FULLCAL_LOG_FORMAT", "")

    effective_level = env_level if env_level else (level or "INFO")
    effective_colorize = env_colorize in ("1", "true", "yes") if env_colorize else colorize
    effective_format = env_format if env_format else format

    if replace:
        logger.remove()

    return logger.add(
        sink,
        level=effective_level,
        colorize=effective_colorize,
        format=effective_format,
        filter="fullcal" if only_fullcal else None,
    )
