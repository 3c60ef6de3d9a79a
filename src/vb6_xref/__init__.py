# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""VB6 cross-file analyzer and conventional-name rewriter."""

from .config import Config, ConfigurationError
from .exporters import ExportError, ExportResult, ProjectExporter, export_project
from .manifest import ManifestError, load_project
from .models import (
    LineEdit,
    SymbolKind,
    VbModule,
    VbProcedure,
    VbProject,
    VbReference,
    sort_project,
)
from .naming import NameAssigner, NamingOracle, assign_names
from .pipeline import Action, AnalysisResult, Pipeline, RunReport, run_pipeline
from .resolver import ResolutionEngine, resolve_project
from .rewrite import (
    RewriteApplier,
    RewritePlan,
    RewritePlanBuilder,
    apply_rewrite_plan,
    build_rewrite_plan,
)
from .source_io import BackupSession, SourceCache, SourceWriteError

__version__ = "0.1.0"

__all__ = [
    "Action",
    "AnalysisResult",
    "BackupSession",
    "Config",
    "ConfigurationError",
    "ExportError",
    "ExportResult",
    "LineEdit",
    "ManifestError",
    "NameAssigner",
    "NamingOracle",
    "Pipeline",
    "ProjectExporter",
    "ResolutionEngine",
    "RewriteApplier",
    "RewritePlan",
    "RewritePlanBuilder",
    "RunReport",
    "SourceCache",
    "SourceWriteError",
    "SymbolKind",
    "VbModule",
    "VbProcedure",
    "VbProject",
    "VbReference",
    "apply_rewrite_plan",
    "assign_names",
    "build_rewrite_plan",
    "export_project",
    "load_project",
    "resolve_project",
    "run_pipeline",
    "sort_project",
]
