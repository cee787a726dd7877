from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from agentsync_agents import LayoutMigrator, Scope, SourceLayout

if TYPE_CHECKING:
    from agentsync_agents import DefinitionLoader, ScopePaths

_METADATA = {
    "name": "api-designer",
    "description": "Designs HTTP APIs",
    "version": "1.3.0",
    "requirements": {"tools": ["Read"]},
}


@pytest.fixture
def legacy(write_legacy_agent):
    return write_legacy_agent(
        Scope.USER, "api-designer", metadata=_METADATA, body="# API Designer\n"
    )


class TestLayoutMigrator:
    def test_writes_single_file(
        self, paths: ScopePaths, loader: DefinitionLoader, legacy
    ) -> None:
        report = LayoutMigrator(paths, loader).migrate(Scope.USER)

        target = paths.single_file_path(Scope.USER, "api-designer")
        assert report.migrated == ["api-designer"]
        assert report.backup_path is None
        assert legacy.exists()

        definition = loader.load_strict(target, Scope.USER)
        assert definition.source_layout is SourceLayout.SINGLE_FILE
        assert definition.description == "Designs HTTP APIs"
        assert definition.version == "1.3.0"
        assert definition.tools == ["Read"]
        assert definition.body == "# API Designer"

    def test_cleanup_and_backup(self, paths: ScopePaths, loader: DefinitionLoader, legacy) -> None:
        report = LayoutMigrator(paths, loader).migrate(Scope.USER, backup=True, cleanup=True)

        assert not legacy.exists()
        assert report.backup_path is not None
        assert (report.backup_path / "api-designer" / "metadata.json").exists()
        assert report.backup_path.parent == paths.home / ".claude-agents-backup"

    def test_already_migrated_is_skipped(
        self, paths: ScopePaths, loader: DefinitionLoader, write_agent, legacy
    ) -> None:
        existing = write_agent(Scope.USER, "api-designer")
        before = existing.read_text(encoding="utf-8")

        report = LayoutMigrator(paths, loader).migrate(Scope.USER)

        assert report.skipped == ["api-designer"]
        assert existing.read_text(encoding="utf-8") == before

    def test_broken_directory_is_reported(
        self, paths: ScopePaths, loader: DefinitionLoader, write_legacy_agent
    ) -> None:
        write_legacy_agent(Scope.PROJECT, "half-done", body="Body only\n")

        report = LayoutMigrator(paths, loader).migrate(Scope.PROJECT)

        assert report.migrated == []
        assert list(report.failed) == ["half-done"]
        assert not paths.single_file_path(Scope.PROJECT, "half-done").exists()

    def test_nothing_to_migrate(self, paths: ScopePaths, write_agent) -> None:
        write_agent(Scope.USER, "code-reviewer")

        report = LayoutMigrator(paths).migrate(Scope.USER, backup=True)

        assert report.migrated == []
        assert report.backup_path is None
