from __future__ import annotations

import json
import logging
import textwrap
from pathlib import Path

import pytest
from agentsync_agents import (
    DefinitionLoader,
    NameMigrationTable,
    PlanExecutor,
    ReconciliationEngine,
    Registry,
    Scope,
    ScopePaths,
)


def agent_md(
    identifier: str,
    description: str = "Handles a focused task",
    body: str = "You are a focused agent.",
    **extra: str,
) -> str:
    """Render a minimal single-file agent document."""
    lines = ["---", f"name: {identifier}", f"description: {description}"]
    lines.extend(f"{key}: {value}" for key, value in extra.items())
    lines.extend(["---", "", body, ""])
    return "\n".join(lines)


@pytest.fixture
def paths(tmp_path: Path) -> ScopePaths:
    home = tmp_path / "home"
    project = tmp_path / "project"
    home.mkdir()
    project.mkdir()
    return ScopePaths(home=home, cwd=project)


@pytest.fixture
def registry(paths: ScopePaths) -> Registry:
    return Registry(paths)


@pytest.fixture
def loader() -> DefinitionLoader:
    return DefinitionLoader()


@pytest.fixture
def engine(paths: ScopePaths, registry: Registry, loader: DefinitionLoader) -> ReconciliationEngine:
    return ReconciliationEngine(paths, registry=registry, loader=loader)


@pytest.fixture
def executor(paths: ScopePaths, registry: Registry) -> PlanExecutor:
    return PlanExecutor(paths, registry)


@pytest.fixture
def make_engine(paths: ScopePaths, registry: Registry, loader: DefinitionLoader):
    """Build an engine with a custom migration table."""

    def _make(mapping: dict[str, str | None]) -> ReconciliationEngine:
        return ReconciliationEngine(
            paths,
            registry=registry,
            loader=loader,
            migrations=NameMigrationTable(mapping),
        )

    return _make


@pytest.fixture
def write_agent(paths: ScopePaths):
    """Write ``<agents>/<identifier>.md`` in a scope and return its path."""

    def _write(scope: Scope, identifier: str, content: str | None = None) -> Path:
        agents_dir = paths.ensure(scope)
        path = agents_dir / f"{identifier}.md"
        path.write_text(content if content is not None else agent_md(identifier), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_legacy_agent(paths: ScopePaths):
    """Write a directory-with-sidecars definition and return the directory."""

    def _write(
        scope: Scope,
        identifier: str,
        metadata: dict | None = None,
        body: str | None = None,
    ) -> Path:
        directory = paths.ensure(scope) / identifier
        directory.mkdir()
        if metadata is not None:
            (directory / "metadata.json").write_text(json.dumps(metadata), encoding="utf-8")
        if body is not None:
            (directory / "agent.md").write_text(textwrap.dedent(body), encoding="utf-8")
        return directory

    return _write


@pytest.fixture(autouse=True)
def _reset_agentsync_logger():
    """Drop handlers installed by setup_logging so streams don't leak across tests."""
    yield
    logger = logging.getLogger("agentsync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def agent_doc():
    """The ``agent_md`` renderer, for tests that tweak the header."""
    return agent_md
