"""Convert directory-with-sidecars definitions into single-file documents."""
from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from agentsync_core.errors import DefinitionError
from agentsync_core.logging import get_logger

from agentsync_agents.definitions.loader import DefinitionLoader
from agentsync_agents.definitions.types import SourceLayout

if TYPE_CHECKING:
    from pathlib import Path

    from agentsync_agents.definitions.types import Scope
    from agentsync_agents.paths import ScopePaths

logger = get_logger("agents.layout")


@dataclass(slots=True)
class LayoutMigrationReport:
    migrated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    backup_path: Path | None = None


class LayoutMigrator:
    """Rewrites legacy ``<id>/metadata.json + agent.md`` directories as ``<id>.md``.

    The merged header is rendered as YAML above the body.  Directories
    whose single-file counterpart already exists are skipped.
    """

    def __init__(self, paths: ScopePaths, loader: DefinitionLoader | None = None) -> None:
        self._paths = paths
        self._loader = loader or DefinitionLoader()

    def migrate(
        self,
        scope: Scope,
        *,
        backup: bool = False,
        cleanup: bool = False,
    ) -> LayoutMigrationReport:
        """Migrate every legacy definition in *scope*.

        Args:
            scope: Scope whose agents directory is migrated.
            backup: Copy the whole agents directory aside first.
            cleanup: Delete each legacy directory once its single file
                has been written.
        """
        report = LayoutMigrationReport()
        agents_dir = self._paths.agents_dir(scope)
        candidates = [
            c for c in self._loader.candidates(agents_dir)
            if c.layout is SourceLayout.DIRECTORY_WITH_SIDECARS
        ]
        if not candidates:
            return report

        if backup:
            report.backup_path = self._backup(scope, agents_dir)

        for candidate in candidates:
            target = self._paths.single_file_path(scope, candidate.identifier)
            if target.exists():
                logger.debug("Skipping %s - already migrated", candidate.identifier)
                report.skipped.append(candidate.identifier)
                continue

            try:
                definition = self._loader.load_strict(candidate.path, scope)
                target.write_text(definition.raw_text, encoding="utf-8")
                if cleanup:
                    shutil.rmtree(candidate.path)
            except (OSError, DefinitionError) as exc:
                logger.error("Failed to migrate %s: %s", candidate.identifier, exc)
                report.failed[candidate.identifier] = str(exc)
                continue

            logger.info("Migrated %s to %s", candidate.identifier, target)
            report.migrated.append(candidate.identifier)

        return report

    def _backup(self, scope: Scope, agents_dir: Path) -> Path:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        backup_root = self._paths.base_dir(scope) / f".{self._paths.app_name}-agents-backup"
        destination = backup_root / stamp
        shutil.copytree(agents_dir, destination)
        logger.info("Backup created at: %s", destination)
        return destination
