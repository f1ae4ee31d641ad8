"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from ..analysis.models import RebuildPlan
from ..config import RebuildConfig, load_config

console = Console()


def resolve_config(config: Optional[Path] = None, **overrides) -> RebuildConfig:
    """Build settings from CLI options; options left unset do not override files."""
    return load_config(config_file=config, **overrides)


def plan_table(plan: RebuildPlan) -> Table:
    table = Table(title="Rebuild plan", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Module", style="cyan")
    table.add_column("Reason")
    table.add_column("Tests")

    for position, module_id in enumerate(plan.module_ids, start=1):
        if plan.validate_only:
            reason = "[yellow]validate only[/yellow]"
        elif module_id in plan.changed_ids:
            reason = "[red]changed[/red]"
        elif module_id in plan.impacted_ids:
            reason = "impacted"
        elif module_id in plan.upstream_ids:
            reason = "upstream"
        else:
            reason = "[magenta]retry[/magenta]"
        directive = plan.directives.get(module_id)
        tests = directive.value if directive is not None else "run"
        table.add_row(str(position), module_id, reason, tests)
    return table
