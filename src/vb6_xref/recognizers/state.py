# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Parse state shared by declaration recognizers.

A ParseState is created per source file by the ModuleParser. Recognizers
read the current logical line from a LineContext and mutate the state
(open blocks, current procedure, With stack, designer control stack).
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from vb6_xref.models import VbControl, VbEnumDef, VbModule, VbProcedure, VbTypeDef
from vb6_xref.source_text import searchable_code, token_pattern

logger = logging.getLogger(__name__)


@dataclass
class LineContext:
    """One logical line as seen by recognizers.

    Attributes:
        logical: Full logical line (continuations joined).
        code: Comment-stripped, trimmed code portion.
        offset: Offset of code[0] within logical.
        index: 0-based logical line index.
        physical_line: 1-based physical line where the logical line starts.
        indented: True when the raw line starts with whitespace.
    """

    logical: str
    code: str
    offset: int
    index: int
    physical_line: int
    indented: bool = False
    masked: str = ""  # code with string contents blanked, same length


@dataclass
class DesignerFrame:
    """Open Begin ... End block in a form designer section."""

    control: Optional[VbControl]  # None for the form itself and property blocks


@dataclass
class ParseState:
    """Mutable state for one module parse."""

    module: VbModule
    raw_lines: List[str]
    start_lines: List[int]
    spans: List[Tuple[int, int]]
    current_procedure: Optional[VbProcedure] = None
    current_type: Optional[VbTypeDef] = None
    current_enum: Optional[VbEnumDef] = None
    with_stack: List[str] = field(default_factory=list)
    designer_stack: List[DesignerFrame] = field(default_factory=list)
    designer_done: bool = False
    raw_controls: List[VbControl] = field(default_factory=list)

    @property
    def in_procedure(self) -> bool:
        return self.current_procedure is not None

    @property
    def in_block(self) -> bool:
        return self.current_type is not None or self.current_enum is not None

    def physical_span(self, ctx: LineContext) -> Tuple[int, int]:
        return self.spans[ctx.index]

    def locate(self, ctx: LineContext, code_pos: int, token: str) -> Tuple[int, int]:
        """Map a token match in ctx.code back to its physical position.

        Counts how many standalone matches of token precede code_pos in the
        logical line, then walks the physical lines of the span consuming
        matches until the same one is reached.

        Args:
            ctx: Current logical line.
            code_pos: Offset of the token within ctx.code.
            token: The identifier as written.

        Returns:
            Tuple of (physical_line, occurrence) with a 1-based occurrence
            within that physical line. Falls back to (start line, 1).
        """
        pattern = token_pattern(token)
        logical_pos = ctx.offset + code_pos
        masked = searchable_code(ctx.logical)
        preceding = sum(1 for m in pattern.finditer(masked) if m.start() < logical_pos)

        first, last = self.physical_span(ctx)
        seen = 0
        for line_no in range(first, last + 1):
            if line_no - 1 >= len(self.raw_lines):
                break
            matches = list(pattern.finditer(searchable_code(self.raw_lines[line_no - 1])))
            if seen + len(matches) > preceding:
                return line_no, preceding - seen + 1
            seen += len(matches)

        logger.debug(f"Could not locate '{token}' in span {first}-{last}, using start line")
        return ctx.physical_line, 1

    def close_procedure(self, end_line: int) -> None:
        if self.current_procedure is not None:
            self.current_procedure.end_line = end_line
            self.current_procedure = None
            self.with_stack.clear()
