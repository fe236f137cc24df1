"""
Logging setup for the Wallet Service.

Every module logs through ``logging.getLogger(__name__)``, so all records land
under the ``wallet_service`` logger hierarchy. This module attaches a single
stream handler to that root once, at application startup.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", logger_name: str = "wallet_service") -> logging.Logger:
    """
    Configure the application logger.

    Calling this more than once replaces the handler instead of stacking
    duplicates (uvicorn --reload re-imports the app).

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        logger_name: Root of the logger hierarchy to configure.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(logger_name)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    return logger
