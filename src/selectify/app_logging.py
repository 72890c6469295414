"""Logging configuration helpers."""

import logging

# Loggers of the Supabase client stack that log every request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "hpack")


def configure_logging(level: str = "INFO") -> None:
    """Configure the ``selectify`` logger with a single stream handler.

    Safe to call more than once; the level is updated on every call.
    """
    logger = logging.getLogger("selectify")
    logger.setLevel(level.upper())
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s: %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
