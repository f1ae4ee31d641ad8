"""CLI entry point: registers all subcommands."""

from typing import Optional

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="rebuild-scope",
    help="rebuild-scope - decide which modules a change needs rebuilt",
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"rebuild-scope {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Impact analysis for multi-module builds."""


# Import subcommands to register them
from .plan import plan as _plan, record as _record  # noqa: F401, E402
from .state import clear_state as _clear_state  # noqa: F401, E402
