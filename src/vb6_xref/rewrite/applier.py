# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Application of a RewritePlan to the source files.

Per module with pending edits:
1. Read the current file text (shared-external modules are never written)
2. Apply edits bottom-to-top, right-to-left within a line, re-checking that
   each span still reads the expected old text (case-insensitive)
3. If the content changed, back up the original and write the new text
   through the BackupSession, preserving line endings and code page

A stale edit is skipped with a warning; the rest of the file still gets its
valid edits. A failed write is logged and the run continues with the next
file.
"""

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from vb6_xref.models import LineEdit, VbModule, VbProject
from vb6_xref.progress import NullProgressReporter, ProgressReporter
from vb6_xref.rewrite.plan_builder import RewritePlan
from vb6_xref.source_io import (
    DEFAULT_ENCODING,
    BackupSession,
    SourceCache,
    SourceWriteError,
    detect_line_ending,
    has_trailing_newline,
    join_lines,
    read_source_text,
    split_lines,
)

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Outcome of applying a plan."""

    files_written: List[str] = field(default_factory=list)
    edits_applied: int = 0
    edits_skipped: int = 0
    failed_files: List[str] = field(default_factory=list)
    backup_dir: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def edits_by_line(edits: List[LineEdit]) -> Dict[int, List[LineEdit]]:
    """Group edits by line, each group sorted descending by start."""
    grouped: Dict[int, List[LineEdit]] = {}
    for edit in edits:
        grouped.setdefault(edit.line, []).append(edit)
    for group in grouped.values():
        group.sort(key=lambda e: e.start, reverse=True)
    return grouped


def apply_line_edits(text: str, edits: List[LineEdit]) -> Tuple[str, int, int]:
    """Apply edits of one line right-to-left.

    Each span is re-validated against the live text before substituting.
    An edit reaching into a span already rewritten by a later-starting edit
    is stale and skipped.

    Returns:
        Tuple of (new text, applied count, skipped count).
    """
    applied = 0
    skipped = 0
    boundary = len(text)
    for edit in sorted(edits, key=lambda e: e.start, reverse=True):
        current = text[edit.start : edit.end]
        if (
            edit.start < 0
            or edit.end > boundary
            or current.lower() != edit.old_text.lower()
        ):
            logger.warning(
                f"⚠️ {edit.module}:{edit.line}: stale edit skipped, expected '{edit.old_text}' "
                f"at {edit.start}-{edit.end}, found '{current}'",
                extra={"vb_module": edit.module, "vb_line": edit.line},
            )
            skipped += 1
            continue
        text = text[: edit.start] + edit.new_text + text[edit.end :]
        boundary = edit.start
        applied += 1
    return text, applied, skipped


def apply_edits_to_lines(lines: List[str], edits: List[LineEdit]) -> Tuple[List[str], int, int]:
    """Apply edits bottom-to-top over a copy of lines.

    Returns:
        Tuple of (new lines, applied count, skipped count).
    """
    result = list(lines)
    applied = 0
    skipped = 0
    grouped = edits_by_line(edits)
    for line_no in sorted(grouped, reverse=True):
        line_edits = grouped[line_no]
        if not 1 <= line_no <= len(result):
            logger.warning(
                f"⚠️ {line_edits[0].module}: line {line_no} is beyond end of file, "
                f"skipping {len(line_edits)} edits",
                extra={"vb_module": line_edits[0].module, "vb_line": line_no},
            )
            skipped += len(line_edits)
            continue
        new_text, line_applied, line_skipped = apply_line_edits(result[line_no - 1], line_edits)
        result[line_no - 1] = new_text
        applied += line_applied
        skipped += line_skipped
    return result, applied, skipped


class RewriteApplier:
    """Applies RewritePlans to files on disk.

    Design Notes:
    - The BackupSession is shared across every file of one invocation, so a
      run produces a single timestamped backup tree
    - Files are read fresh from disk, not from the resolution cache; the
      cache entry is dropped after a successful write
    """

    def __init__(
        self,
        project: VbProject,
        backup: BackupSession,
        encoding: str = DEFAULT_ENCODING,
        source_cache: Optional[SourceCache] = None,
        progress: Optional[ProgressReporter] = None,
    ):
        self.project = project
        self.backup = backup
        self.encoding = encoding
        self.source_cache = source_cache
        self.progress = progress or NullProgressReporter()

    def apply(self, plan: RewritePlan) -> ApplyResult:
        """Apply every module's edits in the plan."""
        result = ApplyResult()
        modules = [m for m in self.project.modules if plan.for_module(m.name)]
        total = len(modules)
        self.progress.start("Applying rewrite plan", total)
        for position, module in enumerate(modules, start=1):
            self.progress.advance("Applying rewrite plan", position, total, module.name)
            self._apply_module(module, plan.for_module(module.name), result)
        self.progress.finish("Applying rewrite plan")

        if self.backup.files_backed_up:
            result.backup_dir = str(self.backup.backup_dir)
        logger.info(
            f"Applied {result.edits_applied} edits to {len(result.files_written)} files "
            f"({result.edits_skipped} skipped, {len(result.failed_files)} failed)"
        )
        return result

    def _apply_module(self, module: VbModule, edits: List[LineEdit], result: ApplyResult) -> None:
        if module.is_shared_external:
            logger.info(f"Skipping shared external module {module.name} ({len(edits)} edits)")
            return

        path = Path(module.path)
        original = read_source_text(path, self.encoding)
        if original is None:
            result.edits_skipped += len(edits)
            return

        line_ending = detect_line_ending(original)
        new_lines, applied, skipped = apply_edits_to_lines(split_lines(original), edits)
        result.edits_applied += applied
        result.edits_skipped += skipped

        new_text = join_lines(new_lines, line_ending, has_trailing_newline(original))
        if new_text == original:
            logger.debug(f"{module.name}: no change")
            return

        try:
            self.backup.write_with_backup(path, new_text, self.encoding)
        except SourceWriteError as e:
            logger.error(f"Failed to rewrite {module.name}: {e}")
            result.failed_files.append(str(path))
            return

        if self.source_cache is not None:
            self.source_cache.invalidate(str(path))
        result.files_written.append(str(path))
        logger.debug(f"{module.name}: {applied} edits applied")


def apply_rewrite_plan(
    project: VbProject,
    plan: RewritePlan,
    backup: BackupSession,
    encoding: str = DEFAULT_ENCODING,
    source_cache: Optional[SourceCache] = None,
) -> ApplyResult:
    """Convenience wrapper: run a RewriteApplier over plan."""
    return RewriteApplier(project, backup, encoding, source_cache).apply(plan)
