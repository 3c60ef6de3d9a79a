# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Cross-file resolution engine."""

from vb6_xref.resolver.engine import ResolutionEngine, ResolutionStats, resolve_project
from vb6_xref.resolver.environment import EnvironmentBuilder, ScopeContext, TypeEnvironment
from vb6_xref.resolver.indexes import ProjectIndex, Target, TargetKind

__all__ = [
    "EnvironmentBuilder",
    "ProjectIndex",
    "ResolutionEngine",
    "ResolutionStats",
    "ScopeContext",
    "Target",
    "TargetKind",
    "TypeEnvironment",
    "resolve_project",
]
