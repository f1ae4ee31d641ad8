"""State kept between builds: dependency fingerprint and skipped-module ledger."""

from .fingerprint import FingerprintCache, dependency_map, serialize
from .ledger import SkippedModuleLedger
from .store import TextStateStore

__all__ = [
    "TextStateStore",
    "FingerprintCache",
    "SkippedModuleLedger",
    "dependency_map",
    "serialize",
]
