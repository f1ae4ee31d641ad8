"""Logging setup shared by the CLI and the host integration.

The analysis reports to stderr through rich, which keeps its output apart
from whatever the host build prints on stdout and leaves stdout free for
``plan --json``.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "rebuild_scope"


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """Install the stderr handler and return the package logger.

    ``quiet`` wins over ``verbose``: a JSON run only shows errors. With
    ``verbose`` the handler also prints timestamps, call sites and locals
    in tracebacks. ``log_file`` appends plain-text records next to it.
    """
    level = logging.ERROR if quiet else logging.DEBUG if verbose else logging.INFO

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
            markup=False,
            show_time=verbose,
            show_path=verbose,
        )
    ]
    if log_file:
        to_file = logging.FileHandler(log_file, mode="a")
        to_file.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
        )
        handlers.append(to_file)

    # basicConfig is a no-op once the root logger has handlers, so repeated
    # CLI invocations in one process only adjust the level below.
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=handlers)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the ``rebuild_scope`` namespace; bare names get the prefix."""
    if name is None:
        return logging.getLogger(PACKAGE_LOGGER)
    if not name.startswith(PACKAGE_LOGGER):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
