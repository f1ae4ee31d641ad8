"""Impact analysis and its result types."""

from .analyzer import ImpactAnalyzer
from .models import BuildView, RebuildPlan, TestDirective, TestSelectorRequest

__all__ = [
    "ImpactAnalyzer",
    "BuildView",
    "RebuildPlan",
    "TestDirective",
    "TestSelectorRequest",
]
