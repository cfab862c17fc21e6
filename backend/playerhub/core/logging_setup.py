import logging

from playerhub.core.config import Settings

logger = logging.getLogger("playerhub")


def configure_logging(settings: Settings) -> None:
    level = logging.getLevelName(settings.log_level.strip().upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def log_failure(log: logging.Logger, message: str, *args, verbose: bool = False) -> None:
    """Log a recoverable failure, with the traceback only in verbose mode."""
    log.error(message, *args, exc_info=verbose)
