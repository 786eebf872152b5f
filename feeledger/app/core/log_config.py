"""Logging setup for the FeeLedger service."""

import logging

from feeledger.app.core.settings import get_settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once; later calls only adjust the level."""
    global _configured
    resolved = (level or get_settings().log_level).upper()
    if not _configured:
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
        _configured = True
    logging.getLogger("feeledger").setLevel(resolved)
