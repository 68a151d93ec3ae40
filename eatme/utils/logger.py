"""
Logging configuration.

Everything logs under the ``eatme`` namespace so one handler on that
logger covers the API, the services and the scripts.
"""
import logging
import sys
from eatme.config import get_settings

settings = get_settings()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROOT_LOGGER = "eatme"


def configure_logging(debug: bool | None = None) -> logging.Logger:
    """Attach a stdout handler to the ``eatme`` logger (idempotent)."""
    if debug is None:
        debug = settings.DEBUG

    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.propagate = False

    root.setLevel(logging.DEBUG if debug else logging.INFO)
    return root


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the ``eatme`` namespace, configuring it on first use."""
    configure_logging()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
