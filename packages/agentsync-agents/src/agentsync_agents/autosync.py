"""Detect when agents were added or changed outside of agentsync."""
from __future__ import annotations

from typing import TYPE_CHECKING

from agentsync_core.logging import get_logger

from agentsync_agents.definitions.types import Scope

if TYPE_CHECKING:
    from agentsync_agents.paths import ScopePaths
    from agentsync_agents.registry import Registry

logger = get_logger("agents.autosync")


def needs_sync(paths: ScopePaths, registry: Registry) -> bool:
    """True when either agents directory changed after the last recorded sync."""
    last_sync = registry.last_sync_time() or 0.0

    for scope in (Scope.USER, Scope.PROJECT):
        agents_dir = paths.agents_dir(scope)
        if not agents_dir.is_dir():
            continue
        if agents_dir.stat().st_mtime > last_sync:
            logger.debug("Directory %s modified after last sync", agents_dir)
            return True
    return False
