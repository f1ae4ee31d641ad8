"""Ledger of modules that produced no result in the previous build."""

from __future__ import annotations

from typing import Iterable, Mapping

from ..logging_config import get_logger
from ..modules.models import Module
from .store import TextStateStore

logger = get_logger(__name__)


class SkippedModuleLedger:
    """Module ids read at run start, rewritten at run end. One id per line."""

    def __init__(self, store: TextStateStore):
        self.store = store
        self.skipped: list[str] = []

    def load(self) -> set[str]:
        text = self.store.load()
        if text is None:
            return set()
        ids = {line.strip() for line in text.splitlines() if line.strip()}
        if ids:
            logger.info(f"Previously skipped modules: {', '.join(sorted(ids))}")
        return ids

    def record(self, modules: Iterable[Module], summaries: Mapping[str, object]) -> list[str]:
        """Remember every module that has no build summary after the run."""
        self.skipped = [m.id for m in modules if summaries.get(m.id) is None]
        self.store.text = "".join(f"{module_id}\n" for module_id in self.skipped)
        return self.skipped

    def flush(self) -> bool:
        return self.store.flush()
