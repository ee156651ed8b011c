import logging

from peer_review.core.config import settings

ROOT_LOGGER_NAME = "peer_review"


def setup_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Configure the package logger once with a console handler."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a child of the package logger (module loggers propagate to it)."""
    return logging.getLogger(name or ROOT_LOGGER_NAME)
