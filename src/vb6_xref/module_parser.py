# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Staged parser for one VB6 source file.

Pipeline per file:
1. Read: physical lines via the shared SourceCache (unreadable -> no lines)
2. Header scan: Attribute VB_Name in the first lines fixes the module name
   before any reference is recorded against it
3. Collapse: line continuations joined into logical lines
4. Dispatch: every logical line goes to the recognizers in priority order;
   the first one returning True consumes the line
5. Finalize: clamp unterminated blocks, group designer controls into arrays

Error Recovery:
- Recognizer exceptions are logged and the line is skipped
- Unterminated procedures/Type/Enum blocks are clamped with a warning
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from vb6_xref.continuation import collapse_line_continuations, physical_spans
from vb6_xref.models import ModuleKind, VbControl, VbModule
from vb6_xref.recognizers import RecognizerRegistry, create_default_registry
from vb6_xref.recognizers.state import LineContext, ParseState
from vb6_xref.source_io import SourceCache
from vb6_xref.source_text import mask_string_literals, split_code_and_comment

logger = logging.getLogger(__name__)

VB_NAME_RE = re.compile(r'^\s*Attribute\s+VB_Name\s*=\s*"([^"]+)"', re.IGNORECASE)
DEFAULT_HEADER_SCAN_LINES = 20


def find_vb_name(lines: List[str], scan_lines: int = DEFAULT_HEADER_SCAN_LINES) -> Optional[str]:
    """Return the Attribute VB_Name value from the file header, if any.

    Form files put the designer section first, so lines inside Begin/End
    blocks and the VERSION/Object header do not count toward scan_lines.
    """
    depth = 0
    counted = 0
    for line in lines:
        match = VB_NAME_RE.match(line)
        if match:
            return match.group(1)
        stripped = line.strip().lower()
        if stripped.startswith("begin"):
            depth += 1
            continue
        if depth > 0:
            if stripped in ("end", "endproperty"):
                depth -= 1
            continue
        if stripped.startswith(("version ", "object")):
            continue
        counted += 1
        if counted >= scan_lines:
            break
    return None


class ModuleParser:
    """Parses source files into VbModule instances (Phase A)."""

    def __init__(
        self,
        source_cache: Optional[SourceCache] = None,
        registry: Optional[RecognizerRegistry] = None,
        header_scan_lines: int = DEFAULT_HEADER_SCAN_LINES,
    ):
        """Initialize the parser.

        Args:
            source_cache: Shared line cache; a private one is created if None.
            registry: Recognizer registry; defaults to every built-in recognizer.
            header_scan_lines: Lines scanned for Attribute VB_Name.
        """
        self.source_cache = source_cache or SourceCache()
        self.registry = registry or create_default_registry()
        self.header_scan_lines = header_scan_lines

    def parse_file(self, path: str, kind: str) -> VbModule:
        """Parse one file from disk. An unreadable file yields an empty module."""
        lines = self.source_cache.get_lines(path)
        return self.parse_lines(lines, path, kind)

    def parse_lines(self, lines: List[str], path: str, kind: str) -> VbModule:
        """Parse already-split physical lines.

        Args:
            lines: Physical lines without terminators.
            path: File path recorded on the module.
            kind: One of ModuleKind.ALL.

        Returns:
            Populated VbModule (declarations only; no resolution).
        """
        if kind not in ModuleKind.ALL:
            raise ValueError(f"Unknown module kind: {kind}")

        module = VbModule(name=Path(path).stem, kind=kind, path=path)

        # Stage 1: Header scan
        declared_name = find_vb_name(lines, self.header_scan_lines)
        if declared_name:
            module.name = declared_name

        # Stage 2: Collapse continuations
        logical, start_lines = collapse_line_continuations(lines)
        spans = physical_spans(start_lines, len(lines))

        state = ParseState(
            module=module,
            raw_lines=lines,
            start_lines=start_lines,
            spans=spans,
            designer_done=not module.is_form,
        )

        # Stage 3: Dispatch
        recognizers = self.registry.get_recognizers()
        for index, text in enumerate(logical):
            ctx = self._build_context(text, index, start_lines[index])
            if not ctx.code:
                continue
            for recognizer in recognizers:
                try:
                    if recognizer.recognize(ctx, state):
                        break
                except Exception as e:
                    logger.error(
                        f"Error in recognizer '{recognizer.name()}' for {path} "
                        f"line {ctx.physical_line}: {e}"
                    )

        # Stage 4: Finalize
        self._finalize(state, len(lines))
        logger.debug(
            f"Parsed {module.name} ({kind}): {len(module.procedures)} procedures, "
            f"{len(module.properties)} properties, {len(module.variables)} variables"
        )
        return module

    def _build_context(self, text: str, index: int, physical_line: int) -> LineContext:
        code_part, _ = split_code_and_comment(text)
        lead = len(code_part) - len(code_part.lstrip())
        code = code_part.strip()
        return LineContext(
            logical=text,
            code=code,
            offset=lead,
            index=index,
            physical_line=physical_line,
            indented=lead > 0,
            masked=mask_string_literals(code),
        )

    def _finalize(self, state: ParseState, total_lines: int) -> None:
        module = state.module
        end = max(total_lines, 1)

        proc = state.current_procedure
        if proc is not None:
            logger.warning(
                f"⚠️ {module.name}: {proc.kind} {proc.name} is not terminated, "
                f"clamping span to end of file (line {end})",
                extra={"vb_module": module.name, "vb_line": end},
            )
            state.close_procedure(max(end, proc.start_line))

        if state.current_type is not None:
            logger.warning(f"⚠️ {module.name}: Type {state.current_type.name} is not terminated")
            state.current_type.end_line = end
            state.current_type = None
        if state.current_enum is not None:
            logger.warning(f"⚠️ {module.name}: Enum {state.current_enum.name} is not terminated")
            state.current_enum.end_line = end
            state.current_enum = None

        module.controls = group_controls(state.raw_controls)


def group_controls(raw_controls: List[VbControl]) -> List[VbControl]:
    """Merge same-named designer blocks into one control (control arrays).

    The first block keeps its declaration position; every block-opening line
    is collected in line_numbers. A control flagged used by any block stays
    used.
    """
    grouped: Dict[str, VbControl] = {}
    order: List[VbControl] = []
    for raw in raw_controls:
        key = raw.name.lower()
        existing = grouped.get(key)
        if existing is None:
            raw.line_numbers = [raw.line_number]
            grouped[key] = raw
            order.append(raw)
            continue
        if raw.line_number not in existing.line_numbers:
            existing.line_numbers.append(raw.line_number)
        existing.used = existing.used or raw.used
        if existing.index is None and raw.index is not None:
            existing.index = raw.index
    return order
