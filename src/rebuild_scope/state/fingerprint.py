"""Dependency fingerprint cache.

Records, per module, the sorted list of artifacts it depends on. If the
record is byte-identical to the previous run's, no module's dependency set
changed, so an edit to a build descriptor (a comment, a plugin bump) need
not trigger a rebuild on its own.

Serialization, one line per module key in ascending order::

    com.acme:app=com.acme:core,org.slf4j:slf4j-api:2.0.9,
    com.acme:core=junit:junit:4.13.2,

Internal dependencies are written without a version because module
versions change with every release.
"""

from __future__ import annotations

from typing import Iterable

from ..logging_config import get_logger
from ..modules.models import Module
from .store import TextStateStore

logger = get_logger(__name__)


def dependency_map(modules: Iterable[Module]) -> dict[str, list[str]]:
    """Map each module key to the sorted identifiers of its dependencies."""
    modules = list(modules)
    internal = {m.id for m in modules}

    result: dict[str, list[str]] = {}
    for module in modules:
        names = []
        for dependency in module.dependencies:
            if str(dependency) in internal:
                names.append(dependency.key)
            else:
                names.append(str(dependency))
        result[module.key] = sorted(set(names))
    return result


def serialize(dependencies: dict[str, list[str]]) -> str:
    """Deterministic text form of a dependency map."""
    lines = []
    for key in sorted(dependencies):
        names = "".join(f"{name}," for name in sorted(dependencies[key]))
        lines.append(f"{key}={names}\n")
    return "".join(lines)


class FingerprintCache:
    """Compares the current dependency map against the one persisted last run."""

    def __init__(self, store: TextStateStore):
        self.store = store
        self._previous: str | None = None
        self._loaded = False

    def load(self) -> None:
        self._previous = self.store.load()
        self._loaded = True

    def check_and_update(self, dependencies: dict[str, list[str]]) -> bool:
        """Return True if the dependency map differs from the persisted one.

        The in-memory record is replaced with the current map; call
        :meth:`flush` to write it.
        """
        if not self._loaded:
            self.load()

        current = serialize(dependencies)
        changed = self._previous is None or current.strip() != self._previous.strip()
        if changed:
            logger.debug("Dependency fingerprint changed")
        self.store.text = current
        return changed

    def flush(self) -> bool:
        return self.store.flush()
