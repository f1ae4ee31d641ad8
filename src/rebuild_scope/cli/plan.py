"""Plan and record commands."""

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape

from ..exceptions import RebuildScopeError
from ..host import BuildSession, BuildSummary, LifecycleParticipant
from ..logging_config import setup_logging
from ..modules.manifest import load_manifest
from . import app
from ._common import console, plan_table, resolve_config


@app.command()
def plan(
    manifest: Path = typer.Option(
        Path("modules.toml"),
        "--manifest",
        "-m",
        help="Module manifest (TOML)",
    ),
    base_branch: Optional[str] = typer.Option(None, "--base-branch", help="Branch to diff from"),
    reference_branch: Optional[str] = typer.Option(
        None, "--reference-branch", help="Branch to compare against"
    ),
    commit_range: Optional[str] = typer.Option(
        None,
        "--commit-range",
        help="'<reference>...<base>', or '' to treat everything as changed",
    ),
    build_all: Optional[bool] = typer.Option(
        None, "--build-all/--no-build-all", help="Keep all modules, skip tests of unimpacted ones"
    ),
    make_upstream: Optional[bool] = typer.Option(
        None, "--make-upstream/--no-make-upstream", help="Also build dependencies of impacted modules"
    ),
    skip_tests: Optional[bool] = typer.Option(
        None,
        "--skip-tests/--no-skip-tests",
        help="Skip tests of modules that are built but not impacted",
    ),
    json_output: bool = typer.Option(False, "--json", help="Output in machine-readable JSON format"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
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
    """Show which modules need to be rebuilt for the current change."""
    logger = setup_logging(verbose=verbose, quiet=json_output)

    try:
        settings = resolve_config(
            config=config,
            base_branch=base_branch,
            reference_branch=reference_branch,
            commit_range=commit_range,
            build_all=build_all,
            make_upstream=make_upstream,
            skip_tests_for_not_impacted=skip_tests,
            # A report must show errors rather than fall back to building everything.
            fail_on_error=True,
        )
        loaded = load_manifest(manifest)
        session = BuildSession.from_modules(loaded.modules, loaded.current)
        result = LifecycleParticipant(settings).after_modules_read(session)
    except RebuildScopeError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if result is None:
        console.print("[yellow]Analysis skipped; every module would be built.[/yellow]")
        raise typer.Exit(0)

    if json_output:
        print(json.dumps(result.to_dict(), indent=2))
        return

    console.print(plan_table(result))
    console.print(
        f"{len(result.module_ids)} of {len(loaded.modules)} modules, "
        f"{len(result.changed_paths)} changed files"
    )
    if result.goals is not None:
        console.print(f"Goals replaced with: [bold]{' '.join(result.goals)}[/bold]")


@app.command()
def record(
    manifest: Path = typer.Option(
        Path("modules.toml"),
        "--manifest",
        "-m",
        help="Module manifest (TOML)",
    ),
    built: Optional[List[str]] = typer.Option(
        None,
        "--built",
        "-b",
        help="Id of a module that produced a result (repeatable)",
    ),
    module: Optional[List[str]] = typer.Option(
        None,
        "--module",
        help="Id of a module that was part of the build (repeatable, default: all)",
    ),
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
    """Write the skipped-module ledger after a build finished."""
    logger = setup_logging()

    try:
        settings = resolve_config(config=config)
        loaded = load_manifest(manifest)
    except RebuildScopeError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if not settings.skipped_modules_file:
        console.print("[yellow]skipped_modules_file is not configured[/yellow]")
        raise typer.Exit(1)

    session = BuildSession.from_modules(loaded.modules, loaded.current)
    if module:
        wanted = set(module)
        session.modules = [m for m in loaded.modules if m.id in wanted]
    session.summaries = {module_id: BuildSummary(module_id) for module_id in built or []}

    skipped = LifecycleParticipant(settings).after_session_end(session)
    if skipped:
        console.print(f"Recorded {len(skipped)} skipped modules:")
        for module_id in skipped:
            console.print(f"  [magenta]{module_id}[/magenta]")
    else:
        console.print("[green]No skipped modules[/green]")
