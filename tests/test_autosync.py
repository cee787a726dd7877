from __future__ import annotations

import os
from typing import TYPE_CHECKING

from agentsync_agents import Scope, needs_sync

if TYPE_CHECKING:
    from agentsync_agents import Registry, ScopePaths


class TestNeedsSync:
    def test_no_agent_directories(self, paths: ScopePaths, registry: Registry) -> None:
        assert needs_sync(paths, registry) is False

    def test_never_synced(self, paths: ScopePaths, registry: Registry) -> None:
        paths.ensure(Scope.PROJECT)

        assert needs_sync(paths, registry) is True

    def test_compares_directory_mtime_with_last_sync(
        self, paths: ScopePaths, registry: Registry
    ) -> None:
        agents_dir = paths.ensure(Scope.USER)
        os.utime(agents_dir, (1_000_000, 1_000_000))

        registry.mark_synced(when=2_000_000)
        assert needs_sync(paths, registry) is False

        registry.mark_synced(when=500_000)
        assert needs_sync(paths, registry) is True
