"""
Logging setup for processes that embed the reactions services
Modules log through logging.getLogger(__name__); this only configures the root logger
"""
import logging

from comment_reactions.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Configure the root logger with the level from settings (or the override)

    A handler is only installed when the root logger has none yet.
    """
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level or settings.LOG_LEVEL)
