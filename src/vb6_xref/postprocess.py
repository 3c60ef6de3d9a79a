# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Source post-processors run after (or instead of) the rename rewrite.

Post-processors:
- TypeAnnotator: adds "As <Type>" to untyped variable and constant
  declarations, from the type-suffix character, the constant's literal,
  or Variant
- DeclarationReorderer: moves Static then Dim declarations, each group
  alphabetical, to the top of every procedure body
- SpacingHarmonizer: collapses runs of blank lines and leaves exactly one
  blank line after each procedure block

Each post-processor turns one module's physical lines into new lines (or
None when nothing changes) and the shared runner writes changed files
through the run's BackupSession. Line counts only change in the spacing
pass, which therefore runs last.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from vb6_xref.continuation import ends_with_continuation
from vb6_xref.models import VbModule, VbProject
from vb6_xref.progress import NullProgressReporter, ProgressReporter
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
from vb6_xref.source_text import split_code_and_comment

logger = logging.getLogger(__name__)

TYPE_SUFFIXES = {
    "$": "String",
    "%": "Integer",
    "&": "Long",
    "!": "Single",
    "#": "Double",
    "@": "Currency",
}

VARIABLE_KEYWORD_RE = re.compile(
    r"^((?:Public|Private|Friend|Global|Dim|Static)\s+(?:WithEvents\s+)?)", re.IGNORECASE
)
NOT_VARIABLE_RE = re.compile(
    r"^(?:Public|Private|Friend|Global|Static)\s+"
    r"(?:Sub|Function|Property|Const|Type|Enum|Declare|Event)\b",
    re.IGNORECASE,
)
VARIABLE_SEGMENT_RE = re.compile(
    r"^(WithEvents\s+)?(\w+)([$%&!#@]?)(\([^)]*\))?\s*$", re.IGNORECASE
)
HAS_AS_RE = re.compile(r"\bAs\b", re.IGNORECASE)
CONST_NO_AS_RE = re.compile(
    r"^((?:(?:Public|Private|Friend|Global)\s+)?Const\s+)(\w+)([$%&!#@]?)\s*=\s*(.+)$",
    re.IGNORECASE,
)
CONST_HAS_AS_RE = re.compile(
    r"^(?:(?:Public|Private|Friend|Global)\s+)?Const\s+\w+[$%&!#@]?\s+As\s+", re.IGNORECASE
)
CONST_LIST_RE = re.compile(r",\s*\w+[$%&!#@]?\s*=")
DECLARATION_RE = re.compile(r"^(Dim|Static)\s+\w", re.IGNORECASE)
DECLARED_NAME_RE = re.compile(r"^(?:Dim|Static)\s+(?:WithEvents\s+)?(\w+)", re.IGNORECASE)
PROCEDURE_END_RE = re.compile(r"^\s*End\s+(?:Sub|Function|Property)\b", re.IGNORECASE)
_DECIMAL_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eEdD][+-]?\d+)?$")


@dataclass
class PostProcessResult:
    """Outcome of one post-processor run over a project."""

    processor: str
    files_written: List[str] = field(default_factory=list)
    failed_files: List[str] = field(default_factory=list)
    modules_changed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Type inference helpers
# ---------------------------------------------------------------------------


def split_top_level(text: str) -> List[str]:
    """Split on commas outside parentheses and string literals."""
    parts: List[str] = []
    depth = 0
    in_string = False
    current: List[str] = []
    for ch in text:
        if ch == '"':
            in_string = not in_string
        elif not in_string:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth = max(0, depth - 1)
            elif ch == "," and depth == 0:
                parts.append("".join(current))
                current = []
                continue
        current.append(ch)
    parts.append("".join(current))
    return parts


def infer_literal_type(raw_value: str) -> Optional[str]:
    """Type of a constant's literal value, None when it is an expression.

    Hex and octal literals are Integer up to 16 bits and Long up to 32
    bits; decimal integers are Integer, Long or Double by range.
    """
    value = raw_value.strip()
    if not value:
        return None
    if value.startswith('"'):
        return "String"
    if value.lower() in ("true", "false"):
        return "Boolean"
    if len(value) > 1 and value[-1] in TYPE_SUFFIXES and not value[-2].isspace():
        return TYPE_SUFFIXES[value[-1]]

    lowered = value.lower()
    if lowered.startswith("&h") or lowered.startswith("&o"):
        base = 16 if lowered.startswith("&h") else 8
        digits = value[2:].strip()
        try:
            number = int(digits, base)
        except ValueError:
            return "Long" if base == 16 else None
        if number <= 0xFFFF:
            return "Integer"
        return "Long" if number <= 0xFFFFFFFF or base == 16 else None

    if _DECIMAL_RE.match(value):
        number = int(value)
        if -32768 <= number <= 32767:
            return "Integer"
        if -2147483648 <= number <= 2147483647:
            return "Long"
        return "Double"
    if _FLOAT_RE.match(value):
        return "Double"
    return None


def annotate_variable_line(line: str) -> Optional[str]:
    """Add "As <Type>" to each untyped declarator of a variable line."""
    code, comment = split_code_and_comment(line)
    stripped = code.strip()
    if NOT_VARIABLE_RE.match(stripped):
        return None
    match = VARIABLE_KEYWORD_RE.match(stripped)
    if not match:
        return None

    keyword = match.group(1)
    rest = stripped[len(keyword) :]
    if not rest.strip():
        return None

    changed = False
    segments: List[str] = []
    for segment in split_top_level(rest):
        text = segment.strip()
        seg_match = VARIABLE_SEGMENT_RE.match(text)
        if HAS_AS_RE.search(text) or not seg_match:
            segments.append(text)
            continue
        with_events, name, suffix, dims = seg_match.groups()
        type_name = TYPE_SUFFIXES.get(suffix, "Variant")
        segments.append(f"{with_events or ''}{name}{dims or ''} As {type_name}")
        changed = True

    if not changed:
        return None
    indent = code[: len(code) - len(code.lstrip())]
    new_line = indent + keyword + ", ".join(segments)
    return f"{new_line} {comment}" if comment else new_line


def annotate_constant_line(line: str) -> Optional[str]:
    """Add "As <Type>" to an untyped single-constant declaration."""
    code, comment = split_code_and_comment(line)
    stripped = code.strip()
    if CONST_HAS_AS_RE.match(stripped):
        return None
    match = CONST_NO_AS_RE.match(stripped)
    if not match:
        return None

    keyword, name, suffix, raw_value = match.groups()
    raw_value = raw_value.rstrip()
    if not raw_value.lstrip().startswith('"') and CONST_LIST_RE.search(raw_value):
        # Const A = 1, B = 2
        return None

    type_name = TYPE_SUFFIXES.get(suffix) if suffix else None
    if type_name is None:
        type_name = infer_literal_type(raw_value) or "Variant"

    indent = code[: len(code) - len(code.lstrip())]
    new_line = f"{indent}{keyword}{name} As {type_name} = {raw_value}"
    return f"{new_line} {comment}" if comment else new_line


# ---------------------------------------------------------------------------
# Declaration reordering
# ---------------------------------------------------------------------------


@dataclass
class _DeclarationBlock:
    first: int
    last: int
    is_static: bool
    name: str


def reorder_declarations(proc_lines: List[str], indent: str = "  ") -> Optional[List[str]]:
    """Move Dim/Static declarations of one procedure to the top of its body.

    proc_lines runs from the signature line to the End line inclusive.
    Declarations land after the signature (with its continuations) and the
    leading comment block: Static ones first, then Dim, each alphabetical.

    Returns:
        New lines, or None if the procedure is already ordered.
    """
    if len(proc_lines) < 3:
        return None

    signature_end = 0
    while signature_end < len(proc_lines) - 1 and ends_with_continuation(
        proc_lines[signature_end]
    ):
        signature_end += 1

    end_index = len(proc_lines) - 1
    body_from = signature_end + 1
    body_to = end_index - 1
    if body_from > body_to:
        return None

    header_end = body_from
    while header_end <= body_to and proc_lines[header_end].lstrip().startswith("'"):
        header_end += 1

    blocks: List[_DeclarationBlock] = []
    moved: Set[int] = set()
    i = body_from
    while i <= body_to:
        trimmed = proc_lines[i].lstrip()
        if not DECLARATION_RE.match(trimmed):
            i += 1
            continue
        first = i
        while i < body_to and ends_with_continuation(proc_lines[i]):
            i += 1
        name_match = DECLARED_NAME_RE.match(trimmed)
        blocks.append(
            _DeclarationBlock(
                first=first,
                last=i,
                is_static=trimmed.lower().startswith("static"),
                name=name_match.group(1) if name_match else "",
            )
        )
        moved.update(range(first, i + 1))
        i += 1

    if not blocks:
        return None

    result = list(proc_lines[: signature_end + 1])
    result.extend(proc_lines[j] for j in range(body_from, header_end) if j not in moved)

    ordered = sorted(blocks, key=lambda b: (not b.is_static, b.name.lower()))
    for block in ordered:
        for j in range(block.first, block.last + 1):
            result.append(indent + proc_lines[j].lstrip())

    result.extend(proc_lines[j] for j in range(header_end, body_to + 1) if j not in moved)
    result.append(proc_lines[end_index])

    if result == proc_lines:
        return None
    return result


# ---------------------------------------------------------------------------
# Spacing
# ---------------------------------------------------------------------------


def harmonize_spacing(lines: List[str], max_blank: int = 1) -> Optional[List[str]]:
    """Collapse blank-line runs and normalize spacing between procedures.

    Runs of blank lines longer than max_blank are shortened. After every
    End Sub/Function/Property exactly one blank line precedes the next
    non-blank line; trailing blank lines at end of file are dropped.

    Returns:
        New lines, or None if nothing changed.
    """
    result: List[str] = []
    blank_run = 0
    after_end = False
    for line in lines:
        if not line.strip():
            blank_run += 1
            continue

        if after_end and result:
            blanks = 1
        else:
            blanks = min(blank_run, max_blank)
        if result:
            result.extend([""] * blanks)
        blank_run = 0
        result.append(line)
        after_end = bool(PROCEDURE_END_RE.match(line))

    if result == lines:
        return None
    return result


# ---------------------------------------------------------------------------
# Post-processors
# ---------------------------------------------------------------------------


class PostProcessor(ABC):
    """Base class for one source post-processing step.

    Design Notes:
    - process_lines works on the physical lines of one module and the
      module's parsed declarations; it must not touch the file system
    - Returning None means "no change" so the runner can skip the write
    """

    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def process_lines(self, module: VbModule, lines: List[str]) -> Optional[List[str]]:
        pass


class TypeAnnotator(PostProcessor):
    """Adds explicit types to untyped variable and constant declarations."""

    def name(self) -> str:
        return "TypeAnnotator"

    def process_lines(self, module: VbModule, lines: List[str]) -> Optional[List[str]]:
        variable_lines, constant_lines = self._untyped_declaration_lines(module)
        result = list(lines)
        changed = False
        for line_no in sorted(variable_lines | constant_lines):
            index = line_no - 1
            if not 0 <= index < len(result):
                continue
            if ends_with_continuation(result[index]) or (
                index > 0 and ends_with_continuation(result[index - 1])
            ):
                logger.debug(f"{module.name}:{line_no}: continued declaration left as is")
                continue
            if line_no in constant_lines:
                new_line = annotate_constant_line(result[index])
            else:
                new_line = annotate_variable_line(result[index])
            if new_line is not None and new_line != result[index]:
                result[index] = new_line
                changed = True
        return result if changed else None

    @staticmethod
    def _untyped_declaration_lines(module: VbModule) -> Tuple[Set[int], Set[int]]:
        variable_lines: Set[int] = set()
        constant_lines: Set[int] = set()
        variables = list(module.variables)
        constants = list(module.constants)
        for proc in module.all_procedures():
            variables.extend(proc.local_variables)
            constants.extend(proc.local_constants)
        for variable in variables:
            if not variable.type and variable.line_number > 0:
                variable_lines.add(variable.line_number)
        for constant in constants:
            if not constant.type and constant.line_number > 0:
                constant_lines.add(constant.line_number)
        return variable_lines, constant_lines


class DeclarationReorderer(PostProcessor):
    """Moves local declarations to the top of each procedure."""

    def __init__(self, indent_width: int = 2):
        self.indent = " " * indent_width

    def name(self) -> str:
        return "DeclarationReorderer"

    def process_lines(self, module: VbModule, lines: List[str]) -> Optional[List[str]]:
        spans = [
            (proc.start_line, proc.end_line)
            for proc in module.all_procedures()
            if not proc.is_external and 0 < proc.start_line < proc.end_line
        ]
        result = list(lines)
        changed = False
        # Bottom-up so earlier spans keep their indexes
        for start, end in sorted(spans, reverse=True):
            if end > len(result):
                continue
            reordered = reorder_declarations(result[start - 1 : end], self.indent)
            if reordered is None:
                continue
            result[start - 1 : end] = reordered
            changed = True
        return result if changed else None


class SpacingHarmonizer(PostProcessor):
    """Normalizes blank lines."""

    def __init__(self, max_consecutive_blank_lines: int = 1):
        self.max_blank = max_consecutive_blank_lines

    def name(self) -> str:
        return "SpacingHarmonizer"

    def process_lines(self, module: VbModule, lines: List[str]) -> Optional[List[str]]:
        return harmonize_spacing(lines, self.max_blank)


class PostProcessRunner:
    """Runs one post-processor over every module and writes changed files."""

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

    def run(self, processor: PostProcessor) -> PostProcessResult:
        result = PostProcessResult(processor=processor.name())
        modules = [m for m in self.project.modules if not m.is_shared_external]
        phase = f"Running {processor.name()}"
        self.progress.start(phase, len(modules))
        for position, module in enumerate(modules, start=1):
            self.progress.advance(phase, position, len(modules), module.name)
            self._run_module(processor, module, result)
        self.progress.finish(phase)
        logger.info(
            f"{processor.name()}: changed {result.modules_changed} modules "
            f"({len(result.failed_files)} failed)"
        )
        return result

    def process_text(self, processor: PostProcessor, module: VbModule, text: str) -> Optional[str]:
        """Apply processor to a file's text; None when nothing changed."""
        new_lines = processor.process_lines(module, split_lines(text))
        if new_lines is None:
            return None
        new_text = join_lines(new_lines, detect_line_ending(text), has_trailing_newline(text))
        return new_text if new_text != text else None

    def _run_module(
        self, processor: PostProcessor, module: VbModule, result: PostProcessResult
    ) -> None:
        path = Path(module.path)
        original = read_source_text(path, self.encoding)
        if original is None:
            return
        new_text = self.process_text(processor, module, original)
        if new_text is None:
            return

        try:
            self.backup.write_with_backup(path, new_text, self.encoding)
        except SourceWriteError as e:
            logger.error(f"{processor.name()} failed to rewrite {module.name}: {e}")
            result.failed_files.append(str(path))
            return

        if self.source_cache is not None:
            self.source_cache.invalidate(str(path))
        result.modules_changed += 1
        result.files_written.append(str(path))
        logger.debug(f"{processor.name()}: rewrote {module.name}")
