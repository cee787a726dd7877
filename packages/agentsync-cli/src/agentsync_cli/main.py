from __future__ import annotations

import typer
from agentsync_core import __version__
from rich.console import Console

from agentsync_cli.commands.agents import (
    disable_command,
    enable_command,
    list_command,
    remove_command,
    validate_command,
)
from agentsync_cli.commands.sync import cleanup_command, migrate_command, sync_command

console = Console()

app = typer.Typer(
    name="agentsync",
    help="Keep agent definitions on disk and their registries in sync",
    no_args_is_help=True,
)

app.command("sync")(sync_command)
app.command("cleanup")(cleanup_command)
app.command("migrate")(migrate_command)
app.command("list")(list_command)
app.command("enable")(enable_command)
app.command("disable")(disable_command)
app.command("remove")(remove_command)
app.command("validate")(validate_command)


@app.callback()
def _root(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Keep agent definitions on disk and their registries in sync."""
    ctx.obj = {"verbose": verbose}


@app.command()
def version() -> None:
    """Show the agentsync version."""
    console.print(f"agentsync {__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
