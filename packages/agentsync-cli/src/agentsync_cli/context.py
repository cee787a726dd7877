"""Builds the engine objects the commands share from layered config."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import typer
from agentsync_agents import (
    DefinitionLoader,
    GitignoreMatcher,
    NameMigrationTable,
    ReconciliationEngine,
    Registry,
    ScopePaths,
)
from agentsync_core.config import AgentsyncConfig
from agentsync_core.errors import AgentsyncError
from agentsync_core.logging import setup_logging
from rich.console import Console
from rich.markup import escape

console = Console()


@dataclass(frozen=True, slots=True)
class CliContext:
    config: AgentsyncConfig
    paths: ScopePaths
    registry: Registry
    loader: DefinitionLoader
    engine: ReconciliationEngine


def build_context(verbose: bool = False) -> CliContext:
    """Load config for the current directory and wire up the engine."""
    config = AgentsyncConfig.load()
    setup_logging(
        "DEBUG" if verbose else config.logging.level,
        json_output=config.logging.json,
    )

    paths = ScopePaths.from_config(config, home=Path.home(), cwd=Path.cwd())
    registry = Registry(paths)
    loader = DefinitionLoader()
    ignore = GitignoreMatcher(
        paths.cwd,
        patterns=config.sync.ignore_patterns,
        use_gitignore=config.sync.use_gitignore,
    )
    engine = ReconciliationEngine(
        paths,
        registry=registry,
        loader=loader,
        migrations=NameMigrationTable(),
        ignore=ignore,
    )
    return CliContext(
        config=config,
        paths=paths,
        registry=registry,
        loader=loader,
        engine=engine,
    )


def verbose_from(ctx: typer.Context) -> bool:
    return bool((ctx.obj or {}).get("verbose", False))


@contextmanager
def reported_errors() -> Iterator[None]:
    """Print any agentsync error in red and exit with status 1."""
    try:
        yield
    except AgentsyncError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from None
