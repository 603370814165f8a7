"""Logging setup for hosts embedding autodetect.

The package only ever creates loggers (``autodetect.<module>`` and
``autodetect.candidates.<name>``); it never configures them on import.
Hosts that want the configured defaults call ``configure_logging()`` once.
"""
from __future__ import annotations

import logging.config

from dynaconf import Dynaconf

from .settings import get_settings


def configure_logging(settings: Dynaconf | None = None) -> dict:
    """
    Apply the ``LOGGING`` setting through ``logging.config.dictConfig``.

    Returns:
        The dictConfig mapping that was applied.
    """
    settings = settings or get_settings()
    config = settings.as_dict()["LOGGING"]
    logging.config.dictConfig(config)
    return config
