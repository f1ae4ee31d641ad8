"""Build modules: model, manifest loading, path ownership and dependency graph."""

from .graph import DependencyGraph
from .locator import ModuleLocator
from .manifest import Manifest, load_manifest
from .models import Dependency, Module

__all__ = [
    "Dependency",
    "Module",
    "Manifest",
    "ModuleLocator",
    "DependencyGraph",
    "load_manifest",
]
