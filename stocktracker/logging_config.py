"""Logging setup for the command line and scheduler."""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

_HANDLER_NAME = "stocktracker"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach one stream handler to the package logger.

    Calling it again only changes the level.
    """
    logger = logging.getLogger("stocktracker")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    # yfinance is chatty at INFO
    logging.getLogger("yfinance").setLevel(max(level, logging.WARNING))
    return logger
