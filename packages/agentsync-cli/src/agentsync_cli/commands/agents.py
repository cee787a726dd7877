"""Agent management commands: list, enable, disable, remove, validate."""
from __future__ import annotations

import shutil
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from agentsync_agents import DefinitionValidator, Scope
from InquirerPy import inquirer
from rich.markup import escape
from rich.table import Table

from agentsync_cli.context import build_context, console, reported_errors, verbose_from

if TYPE_CHECKING:
    from agentsync_agents import Definition, DefinitionLoader, ScopePaths


def list_command(
    ctx: typer.Context,
    installed_only: bool = typer.Option(
        False, "--installed", help="Only show agents recorded in a registry"
    ),
) -> None:
    """List agents on disk and in the registries, with their status."""
    with reported_errors():
        cli = build_context(verbose_from(ctx))
        installed = cli.registry.installed()
        on_disk = _discover(cli.paths, cli.loader)

    identifiers = set(installed)
    if not installed_only:
        identifiers |= set(on_disk)

    if not identifiers:
        console.print(
            "[yellow]No agents found.[/yellow] "
            f"Place agent files in {cli.paths.agents_dir(Scope.USER)} "
            f"or {cli.paths.agents_dir(Scope.PROJECT)}."
        )
        raise typer.Exit(0)

    table = Table(title="Agents", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Version", justify="center")
    table.add_column("Scope", justify="center")
    table.add_column("Status", justify="center")
    table.add_column("Description")

    with reported_errors():
        for identifier in sorted(identifiers):
            entry = installed.get(identifier)
            definition = on_disk.get(identifier)
            if entry is None:
                status = "[yellow]unregistered[/yellow]"
            elif cli.registry.is_enabled(identifier):
                status = "[green]enabled[/green]"
            else:
                status = "[red]disabled[/red]"

            if entry is not None:
                version = entry.version
                scope = entry.scope.value
                description = str(entry.metadata.get("description", ""))
            else:
                version = definition.version
                scope = definition.scope.value
                description = definition.description

            table.add_row(identifier, version, scope, status, description or "-")

    console.print(table)
    console.print(f"\n[dim]{len(identifiers)} agent(s), {len(installed)} registered.[/dim]")


def enable_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Agent identifier"),
    project: bool = typer.Option(
        False, "--project", "-p", help="Change the project registry instead of the user one"
    ),
) -> None:
    """Enable an installed agent."""
    scope = Scope.PROJECT if project else Scope.USER
    with reported_errors():
        cli = build_context(verbose_from(ctx))
        cli.registry.enable(scope, name)
    console.print(f"[green]Enabled[/green] {name} [dim]({scope.value})[/dim]")


def disable_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Agent identifier"),
    project: bool = typer.Option(
        False, "--project", "-p", help="Change the project registry instead of the user one"
    ),
) -> None:
    """Disable an installed agent without removing it."""
    scope = Scope.PROJECT if project else Scope.USER
    with reported_errors():
        cli = build_context(verbose_from(ctx))
        cli.registry.disable(scope, name)
    console.print(f"[yellow]Disabled[/yellow] {name} [dim]({scope.value})[/dim]")


def remove_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Agent identifier"),
    project: bool = typer.Option(
        False, "--project", "-p", help="Remove from the project scope instead of the user one"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete an agent's files and its registry entry."""
    scope = Scope.PROJECT if project else Scope.USER

    with reported_errors():
        cli = build_context(verbose_from(ctx))
        targets = [
            c.path for c in cli.loader.candidates(cli.paths.agents_dir(scope))
            if c.identifier == name
        ]
        registered = name in cli.registry.load(scope)

        if not targets and not registered:
            console.print(f"[red]Agent not found:[/red] '{name}' in {scope.value} scope")
            raise typer.Exit(1)

        if not yes:
            confirmed = inquirer.confirm(
                message=f"Remove '{name}' from {scope.value} scope?",
                default=False,
            ).execute()
            if not confirmed:
                console.print("[yellow]Removal cancelled.[/yellow]")
                return

        try:
            for path in targets:
                if path.is_dir():
                    shutil.rmtree(path)
                else:
                    path.unlink()
        except OSError as exc:
            console.print(f"[red]Error:[/red] could not remove {escape(str(exc))}")
            raise typer.Exit(1) from None
        cli.registry.remove(scope, name)

    console.print(f"[green]Removed[/green] {name} [dim]({scope.value})[/dim]")


def validate_command(
    ctx: typer.Context,
    path: str | None = typer.Argument(
        None,
        help="Path to an agent file or directory. "
        "If omitted, validates every agent in both scopes.",
    ),
) -> None:
    """Validate agent definition(s) and report errors."""
    validator = DefinitionValidator()

    with reported_errors():
        cli = build_context(verbose_from(ctx))
        if path is not None:
            target = Path(path).expanduser().resolve()
            if not target.exists():
                console.print(f"[red]Invalid path:[/red] '{path}' does not exist.")
                raise typer.Exit(1)
            definitions = [cli.loader.load_strict(target, Scope.PROJECT)]
            load_failures = 0
        else:
            definitions, load_failures = _validate_discovered(cli.paths, cli.loader)

    if not definitions and not load_failures:
        console.print("[yellow]No agents found to validate.[/yellow]")
        raise typer.Exit(0)

    total_errors = load_failures
    for definition in definitions:
        errors = validator.validate(definition)
        _report_validation(definition.identifier, errors)
        total_errors += len(errors)

    console.print()
    if total_errors == 0:
        console.print(f"[green]All {len(definitions)} agent(s) passed validation.[/green]")
    else:
        console.print(
            f"[red]{total_errors} error(s) across {len(definitions)} agent(s).[/red]"
        )
        raise typer.Exit(1)


# ── Helpers ──────────────────────────────────────────────────────────


def _discover(paths: ScopePaths, loader: DefinitionLoader) -> dict[str, Definition]:
    """Loadable definitions from both scopes; project shadows user."""
    found: dict[str, Definition] = {}
    for scope in (Scope.USER, Scope.PROJECT):
        for candidate in loader.candidates(paths.agents_dir(scope)):
            definition = loader.load(candidate.path, scope)
            if definition is not None:
                found[candidate.identifier] = definition
    return found


def _validate_discovered(
    paths: ScopePaths, loader: DefinitionLoader
) -> tuple[list[Definition], int]:
    """Load every candidate, reporting load failures as validation failures."""
    definitions: list[Definition] = []
    failures = 0
    for scope in (Scope.USER, Scope.PROJECT):
        for candidate in loader.candidates(paths.agents_dir(scope)):
            result = loader.try_load(candidate.path, scope)
            if result.error is not None:
                _report_validation(candidate.identifier, [str(result.error)])
                failures += 1
                continue
            definitions.append(result.definition)
    return definitions, failures


def _report_validation(name: str, errors: list[str]) -> None:
    """Print validation results for a single agent."""
    if not errors:
        console.print(f"  [green]OK[/green]  {name}")
    else:
        console.print(f"  [red]FAIL[/red] {name}")
        for err in errors:
            console.print(f"        [red]-[/red] {escape(err)}")
