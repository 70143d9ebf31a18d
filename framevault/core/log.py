import sys

from loguru import logger

from framevault.core.config import settings


def setup_logging(level: str | None = None) -> None:
    """Route loguru output to stderr at the configured level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.LOG_LEVEL).upper(),
        backtrace=settings.APP_ENV == "development",
        diagnose=settings.APP_ENV == "development",
    )
