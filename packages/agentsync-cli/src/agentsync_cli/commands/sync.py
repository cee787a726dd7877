"""Sync, cleanup and layout migration commands."""
from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from agentsync_agents import ActionKind, LayoutMigrator, Scope, needs_sync
from InquirerPy import inquirer
from rich.markup import escape
from rich.table import Table

from agentsync_cli.context import build_context, console, reported_errors, verbose_from

if TYPE_CHECKING:
    from agentsync_agents import (
        Diagnostic,
        ExecutionSummary,
        ReconciliationEngine,
        ReconciliationPlan,
    )

_KIND_STYLE = {
    ActionKind.REGISTER: "green",
    ActionKind.COPY_TO_PROJECT: "cyan",
    ActionKind.RENAME: "yellow",
    ActionKind.REMOVE: "red",
    ActionKind.SKIP: "dim",
}


def sync_command(
    ctx: typer.Context,
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Apply every planned action without prompting"
    ),
    copy: bool = typer.Option(
        False, "--copy", help="Also copy new user agents into the project scope"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would change without writing anything"
    ),
    check: bool = typer.Option(
        False, "--check", help="Only report whether agents changed since the last sync"
    ),
) -> None:
    """Register agents found on disk that are missing from the registry."""
    with reported_errors():
        cli = build_context(verbose_from(ctx))

        if check:
            if needs_sync(cli.paths, cli.registry):
                console.print("[yellow]Agents changed since the last sync.[/yellow]")
                raise typer.Exit(1)
            console.print("[green]Registry is up to date.[/green]")
            return

        plan = cli.engine.scan(eager_copy=copy or cli.config.sync.eager_copy)
        _print_diagnostics(plan.diagnostics)

        if plan.is_noop:
            console.print("[green]All agents are properly registered.[/green]")
            if not dry_run:
                cli.registry.mark_synced()
            return

        _print_plan(plan, title="Planned Changes")

        if not yes and not dry_run:
            plan = _select(plan)
            if plan.is_noop:
                console.print("[yellow]Nothing selected.[/yellow]")
                return

        summary = cli.engine.execute(plan, dry_run=dry_run)
        if not dry_run:
            cli.registry.mark_synced()
        _print_summary(summary)

    if summary.failed:
        raise typer.Exit(1)


def cleanup_command(
    ctx: typer.Context,
    force: bool = typer.Option(
        False, "--force", "-f", help="Remove without asking for confirmation"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be removed without removing it"
    ),
) -> None:
    """Remove deprecated agents from disk and from both registries."""
    with reported_errors():
        cli = build_context(verbose_from(ctx))
        plan = cli.engine.cleanup_plan()

        if plan.is_noop:
            console.print("[green]No deprecated agents found.[/green]")
            return

        _print_plan(plan, title="Deprecated Agents")

        if not force and not dry_run:
            confirmed = inquirer.confirm(
                message=f"Remove {len(plan)} deprecated agent(s)?",
                default=False,
            ).execute()
            if not confirmed:
                console.print("[yellow]Cleanup cancelled.[/yellow]")
                return

        summary = _run(cli.engine, plan, dry_run=dry_run)

    if summary.failed:
        raise typer.Exit(1)


def migrate_command(
    ctx: typer.Context,
    project: bool = typer.Option(
        False, "--project", "-p", help="Migrate the project scope instead of the user scope"
    ),
    backup: bool = typer.Option(
        False, "--backup", help="Copy the agents directory aside before migrating"
    ),
    cleanup: bool = typer.Option(
        False, "--cleanup", help="Delete legacy directories after migrating them"
    ),
) -> None:
    """Convert legacy agent directories into single-file documents."""
    scope = Scope.PROJECT if project else Scope.USER

    with reported_errors():
        cli = build_context(verbose_from(ctx))
        migrator = LayoutMigrator(cli.paths, cli.loader)
        report = migrator.migrate(scope, backup=backup, cleanup=cleanup)

    if report.backup_path is not None:
        console.print(f"[dim]Backup created at {report.backup_path}[/dim]")

    if not (report.migrated or report.skipped or report.failed):
        console.print(f"[green]No legacy agents found in {scope.value} scope.[/green]")
        return

    for identifier in report.migrated:
        console.print(f"  [green]OK[/green]   {identifier}")
    for identifier in report.skipped:
        console.print(f"  [dim]SKIP[/dim] {identifier} [dim](already migrated)[/dim]")
    for identifier, reason in report.failed.items():
        console.print(f"  [red]FAIL[/red] {identifier}")
        console.print(f"         [red]-[/red] {escape(reason)}")

    console.print(
        f"\n[dim]{len(report.migrated)} migrated, {len(report.skipped)} skipped, "
        f"{len(report.failed)} failed.[/dim]"
    )
    if report.failed:
        raise typer.Exit(1)


# ── Helpers ──────────────────────────────────────────────────────────


def _select(plan: ReconciliationPlan) -> ReconciliationPlan:
    """Let the user pick which identifiers to act on."""
    choices = []
    seen: set[str] = set()
    for action in plan.actions:
        if not action.actionable or action.identifier in seen:
            continue
        seen.add(action.identifier)
        choices.append({
            "name": f"{action.identifier} ({action.kind.value}, {action.scope.value})",
            "value": action.identifier,
            "enabled": True,
        })

    selected = inquirer.checkbox(
        message="Select agents to sync:",
        choices=choices,
    ).execute()
    return plan.restrict_to(selected or [])


def _run(
    engine: ReconciliationEngine, plan: ReconciliationPlan, *, dry_run: bool
) -> ExecutionSummary:
    summary = engine.execute(plan, dry_run=dry_run)
    _print_summary(summary)
    return summary


def _print_plan(plan: ReconciliationPlan, title: str) -> None:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Agent", style="bold")
    table.add_column("Action")
    table.add_column("Scope", justify="center")
    table.add_column("Reason")

    for action in plan.actions:
        style = _KIND_STYLE[action.kind]
        table.add_row(
            action.identifier,
            f"[{style}]{action.kind.value}[/{style}]",
            action.scope.value,
            escape(action.reason or "-"),
        )
    console.print(table)


def _print_diagnostics(diagnostics: tuple[Diagnostic, ...]) -> None:
    for diagnostic in diagnostics:
        label = escape(str(diagnostic.identifier or diagnostic.path))
        console.print(
            f"  [yellow]{diagnostic.kind.value}[/yellow] {label} "
            f"[dim]({diagnostic.scope.value})[/dim]: {escape(diagnostic.message)}"
        )


def _print_summary(summary: ExecutionSummary) -> None:
    prefix = "[dim](dry run)[/dim] " if summary.dry_run else ""
    console.print(
        f"\n{prefix}[green]{len(summary.registered)} registered[/green], "
        f"{len(summary.copied)} copied, {len(summary.renamed)} renamed, "
        f"{len(summary.removed)} removed, {len(summary.skipped)} skipped."
    )
    for failure in summary.failed:
        console.print(
            f"  [red]FAIL[/red] {failure.identifier} "
            f"[dim]({failure.kind.value})[/dim]: {escape(failure.reason)}"
        )
