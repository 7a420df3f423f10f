"""Safe-removal planning for tracked tools and bundles."""

from .models import (
    DependencyAction,
    DependencyFate,
    KeepReason,
    RemovalAction,
    RemovalMethod,
    RemovalOptions,
    RemovalPlan,
    RemovalSummary,
    SafetyLevel,
    SafetyWarning,
    WarningLevel,
    describe_removal_method,
    get_removal_method,
)
from .planner import RemovalPlanner, render_removal_plan, render_validation

__all__ = [
    "SafetyLevel",
    "RemovalMethod",
    "DependencyFate",
    "WarningLevel",
    "RemovalOptions",
    "RemovalAction",
    "KeepReason",
    "SafetyWarning",
    "DependencyAction",
    "RemovalSummary",
    "RemovalPlan",
    "RemovalPlanner",
    "get_removal_method",
    "describe_removal_method",
    "render_removal_plan",
    "render_validation",
]
