# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Position-exact rewrite engine.

Components:
- RewritePlanBuilder: resolved references -> per-module LineEdits, sorted
  descending by (line, start)
- RewriteApplier: applies a plan bottom-to-top and right-to-left with
  per-edit validation and a single backup tree per run
"""

from vb6_xref.rewrite.applier import (
    ApplyResult,
    RewriteApplier,
    apply_edits_to_lines,
    apply_line_edits,
    apply_rewrite_plan,
)
from vb6_xref.rewrite.plan_builder import RewritePlan, RewritePlanBuilder, build_rewrite_plan

__all__ = [
    "ApplyResult",
    "RewriteApplier",
    "RewritePlan",
    "RewritePlanBuilder",
    "apply_edits_to_lines",
    "apply_line_edits",
    "apply_rewrite_plan",
    "build_rewrite_plan",
]
