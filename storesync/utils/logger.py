"""
Logging configuration

Console output always; daily rotating files only when LOG_DIR is set.
"""
import os
import sys

from loguru import logger

from storesync.config import get_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def _file_sinks(log_dir: str):
    os.makedirs(log_dir, exist_ok=True)

    # Everything at INFO and above, zipped after rotation
    logger.add(
        os.path.join(log_dir, "storesync_{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention="30 days",
        compression="zip",
        level="INFO",
    )

    # Failed runs and rejected webhooks are kept longer
    logger.add(
        os.path.join(log_dir, "errors_{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention="90 days",
        level="ERROR",
        backtrace=False,
    )


def setup_logger():
    """Replace loguru's default handler with the service sinks"""
    settings = get_settings()
    logger.remove()

    logger.add(sys.stdout, colorize=True, format=CONSOLE_FORMAT, level=settings.log_level.upper())

    if settings.log_dir:
        _file_sinks(settings.log_dir)

    return logger


log = setup_logger()
