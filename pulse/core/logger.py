from __future__ import annotations

import logging

from shared.logging.json import configure_logging as _shared_configure_logging
from shared.logging.logger import get_logger as _shared_get_logger

from .config import settings

_configured = False


def configure_logging():
    """Install the JSON handler on the root logger (entrypoints only)."""
    global _configured
    if _configured:
        return
    _shared_configure_logging(
        service=settings.service_name,
        level=settings.app_log_level,
        environment=settings.app_environment,
        redaction_patterns=settings.app_log_redaction_patterns,
    )
    _configured = True


def get_logger(name: str) -> logging.Logger:
    return _shared_get_logger(f"pulse.{name}")
