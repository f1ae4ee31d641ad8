"""
rebuild-scope - incremental builds for multi-module repositories

Combines a git diff between two revisions with the build's module
dependency graph to decide which modules must be rebuilt, and which of
the rest can skip their tests.
"""

__version__ = "0.1.0"

from .analysis import BuildView, ImpactAnalyzer, RebuildPlan, TestDirective
from .config import RebuildConfig, load_config
from .host import BuildSession, LifecycleParticipant, apply_plan
from .modules import Dependency, Module

__all__ = [
    "ImpactAnalyzer",  # Core entry point
    "LifecycleParticipant",  # Host integration
    "BuildSession",
    "BuildView",
    "RebuildPlan",
    "TestDirective",
    "RebuildConfig",
    "Module",
    "Dependency",
    "apply_plan",
    "load_config",
]
