import logging
import sys

from settings import LOG_LEVEL

LOGGER_NAME = "roombook"


def setup_logging() -> logging.Logger:
    """Library-friendly: do NOT touch root.
    Ensure the 'roombook' logger exists, set its level, add NullHandler to avoid warnings.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    if not any(isinstance(h, logging.NullHandler) for h in logger.handlers):
        logger.addHandler(logging.NullHandler())
    logger.propagate = True
    return logger


def attach_stream_handler(stream=sys.stdout) -> None:
    """Used by the app entry point; the library modules never add handlers."""
    logger = logging.getLogger(LOGGER_NAME)
    if any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        return
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    base = logging.getLogger(LOGGER_NAME)
    return base.getChild(name) if name else base


logger = setup_logging()
