"""Default registry, configured from settings on first use."""
from __future__ import annotations

import logging

from .registry import CandidateRegistry, parse_rank_overrides, registry
from .settings import get_settings

logger = logging.getLogger("autodetect.bootstrap")

_registry_initialized = False


def get_registry() -> CandidateRegistry:
    """
    Return the default registry, applying settings on first call.

    Settings:
        ENABLED:        list of candidate names to whitelist
        DISABLED:       list of candidate names to blacklist
        RANK_OVERRIDES: per-name rank overrides
        RANK_FILE:      YAML rank table applied last
    """
    global _registry_initialized
    if not _registry_initialized:
        settings = get_settings()
        registry.discover()
        registry.apply_filter(
            enabled=settings.get("ENABLED"),
            disabled=settings.get("DISABLED"),
        )
        for name, rank in parse_rank_overrides(settings.get("RANK_OVERRIDES")).items():
            registry.set_rank(name, rank)

        rank_file = settings.get("RANK_FILE")
        if rank_file:
            registry.load_rank_table(rank_file)
            logger.info("get_registry: applied rank table %s", rank_file)
        _registry_initialized = True
    return registry


def reset_registry() -> None:
    """Clear the default registry so the next ``get_registry()`` reconfigures it."""
    global _registry_initialized
    registry.reset()
    _registry_initialized = False
