"""Application-wide logging setup.

Configures the root logger once with a single stream handler; modules get
their own loggers through `logging.getLogger(__name__)`.
"""
import logging
import sys

from feedbacts.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str | None = None) -> None:
    root = logging.getLogger()
    if getattr(root, "_feedbacts_configured", False):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel((level or settings.LOG_LEVEL).upper())
    root._feedbacts_configured = True

    logger = logging.getLogger(__name__)
    if settings.uses_default_secret and settings.ENV.lower() == "production":
        logger.warning("Using default JWT secret - set JWT_SECRET_KEY for production")
