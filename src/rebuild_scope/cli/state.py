"""State file management commands."""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from ..exceptions import RebuildScopeError
from ..state.store import TextStateStore
from . import app
from ._common import console, resolve_config


@app.command()
def clear_state(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
) -> None:
    """Delete the dependency fingerprint and skipped-module ledger."""
    try:
        settings = resolve_config(config=config)
    except RebuildScopeError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    paths = [settings.fingerprint_path, settings.skipped_modules_path]
    if not any(paths):
        console.print("[yellow]No state files are configured[/yellow]")
        raise typer.Exit(0)

    for path in paths:
        if path is None:
            continue
        if TextStateStore(path).clear():
            console.print(f"Removed [blue]{path}[/blue]")
        else:
            console.print(f"[dim]{path} not present[/dim]")
