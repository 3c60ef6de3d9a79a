# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Pipeline - orchestration of one vb6-xref run.

Owns the per-run components (source cache, parser, backup session) and
chains the phases in their required order:

1. Parse every module listed by the manifest (Phase A)
2. Resolve cross-file references (Phase B)
3. Assign conventional names
4. Sort for stable export ordering
5. Build the rewrite plan
6. Export analysis files
7. Apply the plan and/or run post-processors

Rename edits never change line counts, and neither do type annotation or
declaration reordering, so one parsed model serves every step of the
composite action. Spacing harmonization changes line counts and runs last.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from vb6_xref.config import Config
from vb6_xref.exporters import ExportResult, export_project
from vb6_xref.manifest import load_project
from vb6_xref.models import VbProject, sort_project
from vb6_xref.module_parser import ModuleParser
from vb6_xref.naming import NameAssigner, NamingStats, build_reserved_words
from vb6_xref.postprocess import (
    DeclarationReorderer,
    PostProcessor,
    PostProcessResult,
    PostProcessRunner,
    SpacingHarmonizer,
    TypeAnnotator,
)
from vb6_xref.progress import NullProgressReporter, ProgressReporter
from vb6_xref.resolver import ResolutionStats, resolve_project
from vb6_xref.rewrite import ApplyResult, RewritePlan, apply_rewrite_plan, build_rewrite_plan
from vb6_xref.source_io import BackupSession, SourceCache

logger = logging.getLogger(__name__)


class Action:
    """Pipeline actions selectable from the CLI.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    ANALYZE = "analyze"
    RENAME = "rename"
    ANNOTATE = "annotate"
    REORDER = "reorder"
    SPACING = "spacing"
    ALL = "all"

    CHOICES = (ANALYZE, RENAME, ANNOTATE, REORDER, SPACING, ALL)


@dataclass
class AnalysisResult:
    """Parsed, resolved, named and sorted project plus its rewrite plan."""

    project: VbProject
    resolution: ResolutionStats
    naming: NamingStats
    plan: RewritePlan
    exports: Optional[ExportResult] = None


@dataclass
class RunReport:
    """Summary of one pipeline action."""

    action: str
    manifest: str
    modules: int = 0
    resolution: Dict[str, Any] = field(default_factory=dict)
    naming: Dict[str, Any] = field(default_factory=dict)
    planned_edits: int = 0
    exports: Dict[str, str] = field(default_factory=dict)
    rename: Optional[Dict[str, Any]] = None
    post_processing: List[Dict[str, Any]] = field(default_factory=list)
    backup_dir: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "manifest": self.manifest,
            "modules": self.modules,
            "resolution": self.resolution,
            "naming": self.naming,
            "planned_edits": self.planned_edits,
            "exports": self.exports,
            "rename": self.rename,
            "post_processing": self.post_processing,
            "backup_dir": self.backup_dir,
        }


class Pipeline:
    """Runs vb6-xref actions against one project manifest.

    Design Notes:
    - One SourceCache per run: the parser and the resolver share it, the
      applier invalidates rewritten files
    - One BackupSession per action, so a composite run leaves a single
      backup tree holding each file's original content
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        progress: Optional[ProgressReporter] = None,
        now: Optional[datetime] = None,
    ):
        """Initialize the pipeline.

        Args:
            config: Run configuration (default: Config.from_mapping({})).
            progress: Progress reporter passed to every phase.
            now: Fixed timestamp for the backup folder name (tests).
        """
        self.config = config if config is not None else Config.from_mapping({})
        self.progress = progress or NullProgressReporter()
        self._now = now
        self.source_cache = SourceCache(self.config.source_encoding)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def analyze(self, manifest_path: str, write_exports: Optional[bool] = None) -> AnalysisResult:
        """Parse, resolve, name, sort and plan; optionally export.

        Raises:
            ManifestError: If the manifest is missing or unreadable.
            ExportError: If exports are requested and cannot be written.
        """
        self.source_cache.invalidate()
        parser = ModuleParser(
            source_cache=self.source_cache, header_scan_lines=self.config.header_scan_lines
        )

        # Stage 1: Parse
        project = load_project(manifest_path, self.source_cache, parser, self.progress)

        # Stage 2: Resolve
        resolution = resolve_project(project, self.source_cache, self.progress)

        # Stage 3: Name
        reserved = build_reserved_words(
            self.config.reserved_word_profiles, self.config.extra_reserved_words
        )
        naming = NameAssigner(reserved_words=reserved).assign(project)

        # Stage 4: Sort
        sort_project(project)

        # Stage 5: Plan
        plan = build_rewrite_plan(project, self.source_cache, self.progress)

        result = AnalysisResult(project=project, resolution=resolution, naming=naming, plan=plan)

        # Stage 6: Export
        if write_exports is None:
            write_exports = self.config.write_exports
        if write_exports:
            result.exports = export_project(project, plan, self.config.export_dir)
        return result

    def new_backup_session(self, project: VbProject) -> BackupSession:
        return BackupSession(
            Path(project.path).parent,
            backup_root=self.config.backup_root,
            timestamp_format=self.config.backup_suffix_format,
            now=self._now,
        )

    def apply_rename(self, analysis: AnalysisResult, backup: BackupSession) -> ApplyResult:
        return apply_rewrite_plan(
            analysis.project,
            analysis.plan,
            backup,
            self.config.source_encoding,
            self.source_cache,
        )

    def post_process(
        self, project: VbProject, processor: PostProcessor, backup: BackupSession
    ) -> PostProcessResult:
        runner = PostProcessRunner(
            project, backup, self.config.source_encoding, self.source_cache, self.progress
        )
        return runner.run(processor)

    def post_processor(self, action: str) -> PostProcessor:
        if action == Action.ANNOTATE:
            return TypeAnnotator()
        if action == Action.REORDER:
            return DeclarationReorderer(self.config.indent_width)
        if action == Action.SPACING:
            return SpacingHarmonizer(self.config.max_consecutive_blank_lines)
        raise ValueError(f"Not a post-processing action: {action}")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def run(self, manifest_path: str, action: str = Action.ANALYZE) -> RunReport:
        """Run one action end to end.

        Raises:
            ValueError: If action is unknown.
            ManifestError: If the manifest is missing or unreadable.
            ExportError: If export files cannot be written.
        """
        if action not in Action.CHOICES:
            raise ValueError(f"Unknown action: {action}")

        logger.info(f"Running '{action}' on {manifest_path}")
        exports_wanted = action in (Action.ANALYZE, Action.RENAME, Action.ALL)
        analysis = self.analyze(manifest_path, write_exports=None if exports_wanted else False)

        report = RunReport(
            action=action,
            manifest=analysis.project.path,
            modules=len(analysis.project.modules),
            resolution=analysis.resolution.to_dict(),
            naming=analysis.naming.to_dict(),
            planned_edits=analysis.plan.total,
            exports=dict(analysis.exports.files) if analysis.exports else {},
        )
        if action == Action.ANALYZE:
            return report

        backup = self.new_backup_session(analysis.project)
        if action in (Action.RENAME, Action.ALL):
            report.rename = self.apply_rename(analysis, backup).to_dict()

        if action == Action.ALL:
            steps = [Action.ANNOTATE, Action.REORDER, Action.SPACING]
        elif action == Action.RENAME:
            steps = []
        else:
            steps = [action]
        for step in steps:
            result = self.post_process(analysis.project, self.post_processor(step), backup)
            report.post_processing.append(result.to_dict())

        if backup.files_backed_up:
            report.backup_dir = str(backup.backup_dir)
            logger.info(f"Backup of {len(backup.files_backed_up)} files in {backup.backup_dir}")
        return report


def run_pipeline(
    manifest_path: str,
    action: str = Action.ANALYZE,
    config: Optional[Config] = None,
    progress: Optional[ProgressReporter] = None,
) -> RunReport:
    """Convenience wrapper: run one Pipeline action."""
    return Pipeline(config, progress).run(manifest_path, action)
