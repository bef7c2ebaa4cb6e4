"""Shared logger utility.

get_logger falls back to a plain text configuration when nothing has called
configure_logging yet (library use, tests).
"""

from __future__ import annotations

import logging

_configured = False


def get_logger(name: str, auto_configure: bool = True) -> logging.Logger:
    """Get a preconfigured logger.

    Args:
        name: Logger name (usually dotted component name)
        auto_configure: Whether to install the minimal config on first use
    """
    global _configured

    if auto_configure and not _configured:
        _configure_minimal_logging()
        _configured = True

    return logging.getLogger(name)


def _configure_minimal_logging():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def mark_configured():
    """Called by shared.logging.json.configure_logging."""
    global _configured
    _configured = True
