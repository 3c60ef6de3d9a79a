# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Procedure, property, Declare and Event header recognizers.

Parameter lists are parsed in declaration order and every parameter keeps
the physical line and occurrence of its own name, so multi-line signatures
joined with " _" still address the right physical line.
"""

import logging
import re
from typing import List, Optional, Tuple

from vb6_xref.models import ProcedureKind, VbEvent, VbParameter, VbProcedure
from vb6_xref.recognizers.base import DeclarationRecognizer
from vb6_xref.recognizers.state import LineContext, ParseState
from vb6_xref.source_text import normalize_type_name

logger = logging.getLogger(__name__)

_PARAMS = r"\(((?:[^()]|\([^()]*\))*)\)"

FUNCTION_RE = re.compile(
    r"^(?:(Public|Private|Friend)\s+)?(Static\s+)?Function\s+(\w+)[$%&!#@]?\s*"
    + _PARAMS
    + r"\s*(?:As\s+([\w\.]+)(?:\(\s*\))?)?",
    re.IGNORECASE,
)
SUB_RE = re.compile(
    r"^(?:(Public|Private|Friend)\s+)?(Static\s+)?Sub\s+(\w+)\s*(?:" + _PARAMS + r")?",
    re.IGNORECASE,
)
PROPERTY_RE = re.compile(
    r"^(?:(Public|Private|Friend)\s+)?(Static\s+)?Property\s+(Get|Let|Set)\s+(\w+)\s*"
    + _PARAMS
    + r"\s*(?:As\s+([\w\.]+)(?:\(\s*\))?)?",
    re.IGNORECASE,
)
DECLARE_RE = re.compile(
    r"^(?:(Public|Private)\s+)?Declare\s+(?:PtrSafe\s+)?(Function|Sub)\s+(\w+)[$%&!#@]?\s+"
    r'Lib\s+"([^"]*)"(?:\s+Alias\s+"[^"]*")?\s*(?:' + _PARAMS + r")?\s*(?:As\s+([\w\.]+))?",
    re.IGNORECASE,
)
EVENT_RE = re.compile(
    r"^(?:(Public|Private|Friend)\s+)?Event\s+(\w+)\s*(?:" + _PARAMS + r")?",
    re.IGNORECASE,
)
PARAM_RE = re.compile(
    r"^(Optional\s+)?(?:(ByVal|ByRef)\s+)?(ParamArray\s+)?(\w+)([$%&!#@]?)(\(\s*\))?\s*"
    r"(?:As\s+([\w\.]+))?\s*(?:=\s*(.+))?$",
    re.IGNORECASE,
)


def split_arguments(text: str, base_offset: int = 0) -> List[Tuple[str, int]]:
    """Split a comma-separated list at top level.

    Commas inside parentheses or string literals do not split.

    Returns:
        List of (segment, offset) pairs; offset is base_offset plus the
        segment's start within text.
    """
    segments: List[Tuple[str, int]] = []
    depth = 0
    in_string = False
    start = 0
    for i, ch in enumerate(text):
        if ch == '"':
            in_string = not in_string
        elif in_string:
            continue
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif ch == "," and depth == 0:
            segments.append((text[start:i], base_offset + start))
            start = i + 1
    segments.append((text[start:], base_offset + start))
    return segments


def parse_parameters(
    ctx: LineContext, state: ParseState, params_text: Optional[str], params_offset: int
) -> List[VbParameter]:
    """Parse a parameter list, preserving declaration order.

    Args:
        ctx: Logical line holding the signature.
        state: Parse state (used to locate physical positions).
        params_text: Text between the signature parentheses.
        params_offset: Offset of params_text within ctx.code.
    """
    result: List[VbParameter] = []
    if not params_text or not params_text.strip():
        return result

    for segment, offset in split_arguments(params_text, params_offset):
        lead = len(segment) - len(segment.lstrip())
        text = segment.strip()
        if not text:
            continue
        match = PARAM_RE.match(text)
        if not match:
            logger.debug(f"{state.module.name}: unparsed parameter '{text}'")
            continue

        name = match.group(4)
        line, occurrence = state.locate(ctx, offset + lead + match.start(4), name)
        param = VbParameter(
            name=name,
            passing="ByVal" if (match.group(2) or "").lower() == "byval" else "ByRef",
            optional=match.group(1) is not None,
            param_array=match.group(3) is not None,
            is_array=match.group(6) is not None,
            type=normalize_type_name(match.group(7) or ""),
            default_value=(match.group(8) or "").strip(),
            line_number=line,
            name_occurrence=occurrence,
        )
        if param.type:
            type_token = param.type.rsplit(".", 1)[-1]
            type_pos = offset + lead + match.start(7) + match.group(7).rfind(".") + 1
            param.type_line, param.type_occurrence = state.locate(ctx, type_pos, type_token)
        result.append(param)
    return result


def _locate_return_type(
    ctx: LineContext, state: ParseState, proc: VbProcedure, match: "re.Match[str]", group: int
) -> None:
    raw = match.group(group)
    if not raw:
        return
    proc.return_type = normalize_type_name(raw)
    token = proc.return_type.rsplit(".", 1)[-1]
    position = match.start(group) + raw.rfind(".") + 1
    proc.return_type_line, proc.return_type_occurrence = state.locate(ctx, position, token)


class ProcedureRecognizer(DeclarationRecognizer):
    """Sub, Function, Property Get/Let/Set and Declare headers."""

    def recognize(self, ctx: LineContext, state: ParseState) -> bool:
        if state.in_block:
            return False

        code = ctx.code
        declare = DECLARE_RE.match(code)
        if declare:
            self._add_declare(ctx, state, declare)
            return True

        function = FUNCTION_RE.match(code)
        if function:
            proc = self._open(ctx, state, function, ProcedureKind.FUNCTION, name_group=3)
            proc.parameters = parse_parameters(ctx, state, function.group(4), function.start(4))
            _locate_return_type(ctx, state, proc, function, 5)
            state.module.procedures.append(proc)
            return True

        prop = PROPERTY_RE.match(code)
        if prop:
            kind = "Property" + prop.group(3).capitalize()
            proc = self._open(ctx, state, prop, kind, name_group=4)
            proc.parameters = parse_parameters(ctx, state, prop.group(5), prop.start(5))
            _locate_return_type(ctx, state, proc, prop, 6)
            state.module.properties.append(proc)
            return True

        sub = SUB_RE.match(code)
        if sub:
            proc = self._open(ctx, state, sub, ProcedureKind.SUB, name_group=3)
            if sub.group(4) is not None:
                proc.parameters = parse_parameters(ctx, state, sub.group(4), sub.start(4))
            state.module.procedures.append(proc)
            return True

        return False

    def _open(
        self,
        ctx: LineContext,
        state: ParseState,
        match: "re.Match[str]",
        kind: str,
        name_group: int,
    ) -> VbProcedure:
        previous = state.current_procedure
        if previous is not None:
            logger.warning(
                f"⚠️ {state.module.name}: {previous.kind} {previous.name} has no "
                f"'{ProcedureKind.end_statement(previous.kind)}', clamping at line "
                f"{ctx.physical_line - 1}"
            )
            state.close_procedure(max(previous.start_line, ctx.physical_line - 1))

        name = match.group(name_group)
        line, occurrence = state.locate(ctx, match.start(name_group), name)
        proc = VbProcedure(
            name=name,
            kind=kind,
            visibility=match.group(1) or "Public",
            is_static=match.group(2) is not None,
            start_line=ctx.physical_line,
            line_number=line,
            name_occurrence=occurrence,
        )
        state.current_procedure = proc
        state.with_stack.clear()
        self._mark_handled_control(state, proc)
        return proc

    def _mark_handled_control(self, state: ParseState, proc: VbProcedure) -> None:
        """Event handlers such as Command1_Click mark their control as used."""
        lowered = proc.name.lower()
        for control in state.raw_controls:
            if lowered.startswith(control.name.lower() + "_"):
                control.used = True

    def _add_declare(self, ctx: LineContext, state: ParseState, match: "re.Match[str]") -> None:
        name = match.group(3)
        line, occurrence = state.locate(ctx, match.start(3), name)
        first, last = state.physical_span(ctx)
        is_function = match.group(2).lower() == "function"
        proc = VbProcedure(
            name=name,
            kind=ProcedureKind.EXTERNAL_FUNCTION if is_function else ProcedureKind.EXTERNAL_SUB,
            visibility=match.group(1) or "Public",
            lib=match.group(4),
            start_line=first,
            end_line=last,
            line_number=line,
            name_occurrence=occurrence,
        )
        if match.group(5) is not None:
            proc.parameters = parse_parameters(ctx, state, match.group(5), match.start(5))
        if is_function:
            _locate_return_type(ctx, state, proc, match, 6)
        state.module.procedures.append(proc)

    def priority(self) -> int:
        return 150

    def name(self) -> str:
        return "ProcedureRecognizer"


class EventRecognizer(DeclarationRecognizer):
    """Event declarations at module level."""

    def recognize(self, ctx: LineContext, state: ParseState) -> bool:
        if state.in_procedure or state.in_block:
            return False
        match = EVENT_RE.match(ctx.code)
        if not match:
            return False

        name = match.group(2)
        line, occurrence = state.locate(ctx, match.start(2), name)
        event = VbEvent(
            name=name,
            visibility=match.group(1) or "Public",
            line_number=line,
            name_occurrence=occurrence,
        )
        if match.group(3) is not None:
            event.parameters = parse_parameters(ctx, state, match.group(3), match.start(3))
        state.module.events.append(event)
        return True

    def priority(self) -> int:
        return 140

    def name(self) -> str:
        return "EventRecognizer"
