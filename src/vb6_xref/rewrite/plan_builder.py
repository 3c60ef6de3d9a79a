# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Rewrite plan construction.

Turns resolved references into character-addressed LineEdits. Positions are
always computed against the physical source lines (never the collapsed
logical lines), so every edit addresses exactly one token of one line.

For every symbol whose conventional name differs from its raw name, or
whose references need qualification:
1. Declaration edit at the declared name (controls: every Begin line;
   modules: the quoted Attribute VB_Name value)
2. "Attribute Name.VB_..." line right after the declaration
3. One edit per referenced token (pinned occurrences, or every match on
   the line when none are pinned)

Enum values whose conventional name is shared by more than one enum are
written "Enum.Value" at bare reference sites. A bare reference to a
module-level variable, constant or property whose new name collides with
a parameter or local of the referencing procedure is qualified with the
owning module.

Edits are deduplicated, overlapping spans are dropped with a warning, and
each module's list is sorted descending by (line, start) for the applier.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from vb6_xref.models import (
    EditCategory,
    LineEdit,
    SymbolEntry,
    SymbolKind,
    VbControl,
    VbEnumDef,
    VbModule,
    VbProcedure,
    VbProject,
    iter_symbol_entries,
)
from vb6_xref.progress import NullProgressReporter, ProgressReporter
from vb6_xref.resolver.members import header_end_line
from vb6_xref.source_io import SourceCache
from vb6_xref.source_text import (
    comment_start,
    find_token_positions,
    find_token_positions_raw,
    is_member_access_token,
    is_qualified_enum_reference,
    position_of_occurrence,
)

logger = logging.getLogger(__name__)

ATTRIBUTE_LINE_RE = re.compile(r"^\s*Attribute\s", re.IGNORECASE)
ATTRIBUTE_VAR_RE = re.compile(r"^\s*Attribute\s+(\w+)\.", re.IGNORECASE)
VB_NAME_VALUE_RE = re.compile(r'^\s*Attribute\s+VB_Name\s*=\s*"([^"]*)"', re.IGNORECASE)
CONTROL_BEGIN_RE = re.compile(r"^\s*Begin\s+\S+\s+(\w+)", re.IGNORECASE)

# Module-level kinds that a same-named local can shadow after renaming
QUALIFIABLE_KINDS = (SymbolKind.VARIABLE, SymbolKind.CONSTANT, SymbolKind.PROPERTY)


@dataclass
class RewritePlan:
    """Edits per module name, each list sorted descending by (line, start)."""

    edits: Dict[str, List[LineEdit]] = field(default_factory=dict)
    overlaps_dropped: int = 0

    def for_module(self, module_name: str) -> List[LineEdit]:
        return self.edits.get(module_name.lower(), [])

    def all_edits(self) -> List[LineEdit]:
        result: List[LineEdit] = []
        for key in sorted(self.edits):
            result.extend(self.edits[key])
        return result

    @property
    def total(self) -> int:
        return sum(len(edits) for edits in self.edits.values())

    def category_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for edit in self.all_edits():
            counts[edit.category] = counts.get(edit.category, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "total": self.total,
            "modules": {
                key: [e.to_dict() for e in edits] for key, edits in sorted(self.edits.items())
            },
        }


def enum_values_needing_qualification(project: VbProject) -> Set[int]:
    """ids of enum values whose conventional name is declared by 2+ enums."""
    owners: Dict[str, Set[str]] = {}
    values: Dict[str, List[int]] = {}
    for module in project.modules:
        for enum in module.enums:
            for value in enum.values:
                key = (value.conventional_name or value.name).lower()
                owners.setdefault(key, set()).add(f"{module.name.lower()}.{enum.name.lower()}")
                values.setdefault(key, []).append(id(value))
    result: Set[int] = set()
    for key, enum_names in owners.items():
        if len(enum_names) > 1:
            result.update(values[key])
    return result


class RewritePlanBuilder:
    """Builds a RewritePlan from a resolved and named project.

    The project is read-only here. Source lines come from the shared
    SourceCache; a file that cannot be read yields no edits.
    """

    def __init__(
        self,
        project: VbProject,
        source_cache: Optional[SourceCache] = None,
        progress: Optional[ProgressReporter] = None,
    ):
        self.project = project
        self.source_cache = source_cache or SourceCache()
        self.progress = progress or NullProgressReporter()
        self._pending: Dict[str, Dict[int, List[LineEdit]]] = {}
        self._overlaps = 0

    def build(self) -> RewritePlan:
        """Compute every edit for the project."""
        self._pending = {}
        self._overlaps = 0

        # Stage 1: Enum values that must be qualified at bare sites
        qualified_values = enum_values_needing_qualification(self.project)

        # Stage 2: Declarations, attributes and references per symbol
        modules = [m for m in self.project.modules if not m.is_shared_external]
        total = len(modules)
        self.progress.start("Building rewrite plan", total)
        for position, module in enumerate(modules, start=1):
            self.progress.advance("Building rewrite plan", position, total, module.name)
            for entry in iter_symbol_entries(module):
                qualify = id(entry.symbol) in qualified_values
                if not entry.symbol.needs_rename and not qualify:
                    continue
                self._plan_symbol(entry, qualify)
        self.progress.finish("Building rewrite plan")

        # Stage 3: Order per module for right-to-left, bottom-to-top application
        plan = RewritePlan(overlaps_dropped=self._overlaps)
        for key, by_line in self._pending.items():
            edits = [edit for line_edits in by_line.values() for edit in line_edits]
            edits.sort(key=lambda e: (e.line, e.start), reverse=True)
            plan.edits[key] = edits

        logger.info(
            f"Rewrite plan: {plan.total} edits in {len(plan.edits)} modules"
            + (f", {self._overlaps} overlapping edits dropped" if self._overlaps else "")
        )
        return plan

    def _lines(self, module: VbModule) -> List[str]:
        return self.source_cache.get_lines(module.path)

    def _plan_symbol(self, entry: SymbolEntry, qualify: bool) -> None:
        symbol = entry.symbol
        old = symbol.name
        new = symbol.conventional_name or symbol.name

        if symbol.needs_rename:
            self._declaration_edits(entry, old, new)
            self._attribute_var_edit(entry, old, new)

        enum_qualifier = None
        if qualify and isinstance(entry.parent, VbEnumDef):
            enum_qualifier = entry.parent.conventional_name or entry.parent.name

        for ref in symbol.references:
            ref_module = self.project.get_module(ref.module)
            if ref_module is None or ref_module.is_shared_external:
                continue
            lines = self._lines(ref_module)
            for line_no in ref.line_numbers:
                if not 1 <= line_no <= len(lines):
                    logger.debug(f"{ref_module.name}: line {line_no} out of range for {old}")
                    continue
                text = lines[line_no - 1]
                positions = self._token_positions(text, old)
                pinned = ref.occurrences_for(line_no)
                if pinned:
                    chosen = [positions[n - 1] for n in pinned if 1 <= n <= len(positions)]
                else:
                    chosen = positions
                if not chosen:
                    logger.debug(f"{ref_module.name}:{line_no}: '{old}' not found")
                    continue

                for pos in chosen:
                    replacement = new
                    if enum_qualifier is not None:
                        if not is_qualified_enum_reference(text, pos):
                            replacement = f"{enum_qualifier}.{new}"
                    elif entry.kind in QUALIFIABLE_KINDS and not is_member_access_token(text, pos):
                        qualifier = self._shadow_qualifier(entry, ref_module, line_no, new)
                        if qualifier:
                            replacement = f"{qualifier}.{new}"
                    self._add(
                        ref_module,
                        line_no,
                        pos,
                        text[pos : pos + len(old)],
                        replacement,
                        EditCategory.tag(entry.kind, EditCategory.REFERENCE),
                    )

    @staticmethod
    def _token_positions(text: str, token: str) -> List[int]:
        """Standalone token matches in code; attribute lines include quoted text."""
        if ATTRIBUTE_LINE_RE.match(text):
            limit = comment_start(text)
            return [p for p in find_token_positions_raw(text, token) if p < limit]
        return find_token_positions(text, token)

    def _shadow_qualifier(
        self, entry: SymbolEntry, ref_module: VbModule, line_no: int, new: str
    ) -> Optional[str]:
        """Qualifier needed when a local of the referencing scope takes the new name."""
        owner = ref_module.owner_of_line(line_no)
        if owner is None or not self._declares_conventional(owner, new):
            return None
        if entry.module.is_standard:
            return entry.module.conventional_name or entry.module.name
        if ref_module is entry.module:
            return "Me"
        return None

    @staticmethod
    def _declares_conventional(proc: VbProcedure, name: str) -> bool:
        key = name.lower()
        for local in [*proc.parameters, *proc.local_variables, *proc.local_constants]:
            if (local.conventional_name or local.name).lower() == key:
                return True
        return False

    def _declaration_edits(self, entry: SymbolEntry, old: str, new: str) -> None:
        module = entry.module
        lines = self._lines(module)
        category = EditCategory.tag(entry.kind, EditCategory.DECLARATION)
        symbol = entry.symbol

        if entry.kind == SymbolKind.MODULE:
            self._vb_name_edit(module, lines, old, new)
            return

        if isinstance(symbol, VbControl):
            for line_no in symbol.line_numbers or [symbol.line_number]:
                if not 1 <= line_no <= len(lines):
                    continue
                match = CONTROL_BEGIN_RE.match(lines[line_no - 1])
                if match and match.group(1).lower() == old.lower():
                    self._add(module, line_no, match.start(1), match.group(1), new, category)
            return

        line_no = symbol.line_number
        if not 1 <= line_no <= len(lines):
            logger.warning(f"⚠️ {module.name}: no declaration line for {entry.kind} {old}")
            return
        text = lines[line_no - 1]
        pos = position_of_occurrence(text, old, symbol.name_occurrence or 1)
        if pos < 0:
            positions = find_token_positions(text, old)
            if not positions:
                logger.warning(
                    f"⚠️ {module.name}:{line_no}: declared name '{old}' not found on its line"
                )
                return
            pos = positions[0]
        self._add(module, line_no, pos, text[pos : pos + len(old)], new, category)

    def _vb_name_edit(self, module: VbModule, lines: List[str], old: str, new: str) -> None:
        candidates = [module.line_number] if module.line_number > 0 else []
        candidates.extend(range(1, len(lines) + 1))
        for line_no in candidates:
            if not 1 <= line_no <= len(lines):
                continue
            match = VB_NAME_VALUE_RE.match(lines[line_no - 1])
            if match and match.group(1).lower() == old.lower():
                self._add(
                    module,
                    line_no,
                    match.start(1),
                    match.group(1),
                    new,
                    EditCategory.tag(SymbolKind.MODULE, EditCategory.ATTRIBUTE_VB_NAME),
                )
                return

    def _attribute_var_edit(self, entry: SymbolEntry, old: str, new: str) -> None:
        """Rewrite "Attribute Old.VB_..." on the line after the declaration."""
        symbol = entry.symbol
        if entry.kind in (SymbolKind.MODULE, SymbolKind.CONTROL) or symbol.line_number <= 0:
            return
        lines = self._lines(entry.module)
        if isinstance(symbol, VbProcedure) and symbol.start_line > 0:
            next_line = header_end_line(lines, symbol.start_line) + 1
        else:
            next_line = symbol.line_number + 1
        if not 1 <= next_line <= len(lines):
            return
        match = ATTRIBUTE_VAR_RE.match(lines[next_line - 1])
        if match and match.group(1).lower() == old.lower():
            self._add(
                entry.module,
                next_line,
                match.start(1),
                match.group(1),
                new,
                EditCategory.tag(entry.kind, EditCategory.ATTRIBUTE_VAR),
            )

    def _add(
        self, module: VbModule, line: int, start: int, old_text: str, new_text: str, category: str
    ) -> None:
        if old_text == new_text:
            return
        edit = LineEdit(
            module=module.name,
            line=line,
            start=start,
            end=start + len(old_text),
            old_text=old_text,
            new_text=new_text,
            category=category,
        )
        pending = self._pending.setdefault(module.name.lower(), {}).setdefault(line, [])
        for existing in pending:
            if not existing.overlaps(edit):
                continue
            if (existing.start, existing.end, existing.new_text) == (
                edit.start,
                edit.end,
                edit.new_text,
            ):
                return
            self._overlaps += 1
            logger.warning(
                f"⚠️ {module.name}:{line}: dropping {category} '{old_text}' -> '{new_text}', "
                f"overlaps {existing.category} -> '{existing.new_text}'"
            )
            return
        pending.append(edit)


def build_rewrite_plan(
    project: VbProject,
    source_cache: Optional[SourceCache] = None,
    progress: Optional[ProgressReporter] = None,
) -> RewritePlan:
    """Convenience wrapper: run a RewritePlanBuilder over project."""
    return RewritePlanBuilder(project, source_cache, progress).build()
