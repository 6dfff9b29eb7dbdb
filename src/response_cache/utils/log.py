"""Logging setup for the API entry point."""

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the ``response_cache`` logger.

    Safe to call more than once; the handler is only added the first time.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
    """
    logger = logging.getLogger("response_cache")
    logger.setLevel(level.upper())

    if not any(getattr(h, "_response_cache", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._response_cache = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
