"""Filesystem locations of each scope's agents directory and registry file.

The registry file sits beside the app directory, as ``<base>/.<app>-agents.json``,
where existing installs already keep it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from agentsync_agents.definitions.types import Scope

if TYPE_CHECKING:
    from agentsync_core.config import AgentsyncConfig


@dataclass(frozen=True, slots=True)
class ScopePaths:
    """Resolves ``<base>/.<app>/agents`` and ``<base>/.<app>-agents.json``.

    The base directory is the home directory for the user scope and the
    working directory for the project scope.
    """

    home: Path = field(default_factory=Path.home)
    cwd: Path = field(default_factory=Path.cwd)
    app_name: str = "claude"

    @classmethod
    def from_config(
        cls,
        config: AgentsyncConfig,
        home: Path | None = None,
        cwd: Path | None = None,
    ) -> ScopePaths:
        return cls(
            home=home or Path.home(),
            cwd=cwd or Path.cwd(),
            app_name=config.paths.app_name,
        )

    def base_dir(self, scope: Scope) -> Path:
        return self.cwd if scope is Scope.PROJECT else self.home

    def app_dir(self, scope: Scope) -> Path:
        return self.base_dir(scope) / f".{self.app_name}"

    def agents_dir(self, scope: Scope) -> Path:
        return self.app_dir(scope) / "agents"

    def registry_path(self, scope: Scope) -> Path:
        return self.base_dir(scope) / f".{self.app_name}-agents.json"

    def single_file_path(self, scope: Scope, identifier: str) -> Path:
        return self.agents_dir(scope) / f"{identifier}.md"

    def ensure(self, scope: Scope) -> Path:
        """Create the scope's agents directory if needed and return it."""
        path = self.agents_dir(scope)
        path.mkdir(parents=True, exist_ok=True)
        return path
