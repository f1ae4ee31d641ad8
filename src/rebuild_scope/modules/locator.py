"""Map changed files to the module that owns them."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Optional

from ..logging_config import get_logger
from .models import Module

logger = get_logger(__name__)


class ModuleLocator:
    """Longest-prefix lookup of paths against module root directories.

    Nested modules win over their enclosing module because the walk starts
    at the path itself and stops at the first directory that is a root.
    """

    def __init__(self, modules: Iterable[Module]):
        self._roots: dict[Path, Module] = {}
        for module in modules:
            root = _normalize(module.basedir)
            if root in self._roots:
                logger.warning(
                    f"Modules {self._roots[root].id} and {module.id} share root {root}; "
                    f"using {self._roots[root].id}"
                )
                continue
            self._roots[root] = module

    def locate(self, path: Path) -> Optional[Module]:
        """Return the most specific module containing ``path``, or None."""
        current = _normalize(path)
        while True:
            module = self._roots.get(current)
            if module is not None:
                logger.debug(f"Changed file: {path}")
                return module
            if current.parent == current:
                break
            current = current.parent

        logger.warning(f"Changed file outside build project: {path}")
        return None

    def locate_all(self, paths: Iterable[Path]) -> set[Module]:
        found = set()
        for path in paths:
            module = self.locate(path)
            if module is not None:
                found.add(module)
        return found


def _normalize(path: Path) -> Path:
    return Path(os.path.normpath(os.path.abspath(path)))
