# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Structural recognizers: attributes, form designer blocks, With blocks,
Implements, and kind-specific procedure terminators."""

import logging
import re

from vb6_xref.models import ProcedureKind, VbControl
from vb6_xref.recognizers.base import DeclarationRecognizer
from vb6_xref.recognizers.state import DesignerFrame, LineContext, ParseState

logger = logging.getLogger(__name__)

VB_NAME_RE = re.compile(r'^Attribute\s+VB_Name\s*=\s*"([^"]+)"', re.IGNORECASE)
ATTRIBUTE_RE = re.compile(r"^Attribute\s+", re.IGNORECASE)
DESIGNER_BEGIN_RE = re.compile(r"^Begin\s+(\S+)\s+(\w+)", re.IGNORECASE)
DESIGNER_BEGIN_PROPERTY_RE = re.compile(r"^BeginProperty\b", re.IGNORECASE)
DESIGNER_END_PROPERTY_RE = re.compile(r"^EndProperty\b", re.IGNORECASE)
DESIGNER_END_RE = re.compile(r"^End\s*$", re.IGNORECASE)
DESIGNER_HEADER_RE = re.compile(r"^(VERSION\s|Object\s*=)", re.IGNORECASE)
DESIGNER_INDEX_RE = re.compile(r"^Index\s*=\s*(\d+)", re.IGNORECASE)
WITH_RE = re.compile(r"^With\s+(.+)$", re.IGNORECASE)
END_WITH_RE = re.compile(r"^End\s+With\b", re.IGNORECASE)
IMPLEMENTS_RE = re.compile(r"^Implements\s+([\w\.]+)", re.IGNORECASE)
END_PROCEDURE_RE = re.compile(r"^End\s+(Sub|Function|Property)\b", re.IGNORECASE)


class AttributeRecognizer(DeclarationRecognizer):
    """Handles Attribute lines; VB_Name overrides the module name."""

    def recognize(self, ctx: LineContext, state: ParseState) -> bool:
        if not ATTRIBUTE_RE.match(ctx.code):
            return False

        match = VB_NAME_RE.match(ctx.code)
        if match:
            state.module.name = match.group(1)
            state.module.line_number = ctx.physical_line
            state.designer_done = True
        return True

    def priority(self) -> int:
        return 200

    def name(self) -> str:
        return "AttributeRecognizer"


class FormDesignerRecognizer(DeclarationRecognizer):
    """Parses the designer section of a form (Begin/End control blocks).

    The outermost block is the form itself and records a module
    self-reference at its name. Nested blocks are controls. Property
    blocks (BeginProperty/EndProperty) are skipped.
    """

    def recognize(self, ctx: LineContext, state: ParseState) -> bool:
        if state.designer_done or not state.module.is_form:
            return False
        if state.in_procedure:
            return False

        code = ctx.code
        if not state.designer_stack and DESIGNER_HEADER_RE.match(code):
            return True

        begin = DESIGNER_BEGIN_RE.match(code)
        if begin:
            control_type, control_name = begin.group(1), begin.group(2)
            line, occurrence = state.locate(ctx, begin.start(2), control_name)
            if not state.designer_stack:
                state.module.add_reference(state.module.name, "", line, occurrence)
                state.designer_stack.append(DesignerFrame(control=None))
                return True

            control = VbControl(
                name=control_name,
                control_type=control_type,
                line_number=line,
                name_occurrence=occurrence,
            )
            state.raw_controls.append(control)
            state.designer_stack.append(DesignerFrame(control=control))
            return True

        if not state.designer_stack:
            return False

        if DESIGNER_BEGIN_PROPERTY_RE.match(code):
            state.designer_stack.append(DesignerFrame(control=None))
            return True

        if DESIGNER_END_PROPERTY_RE.match(code) or DESIGNER_END_RE.match(code):
            state.designer_stack.pop()
            return True

        frame = state.designer_stack[-1]
        if frame.control is not None:
            index = DESIGNER_INDEX_RE.match(code)
            if index:
                frame.control.index = int(index.group(1))
        return True

    def priority(self) -> int:
        return 190

    def name(self) -> str:
        return "FormDesignerRecognizer"


class ProcedureEndRecognizer(DeclarationRecognizer):
    """Closes the open procedure on its own kind's terminator only.

    "End Sub" never closes a Function and "End If"/"End With" never close
    anything.
    """

    def recognize(self, ctx: LineContext, state: ParseState) -> bool:
        proc = state.current_procedure
        if proc is None:
            return False

        match = END_PROCEDURE_RE.match(ctx.code)
        if not match:
            return False

        expected = ProcedureKind.end_statement(proc.kind)
        found = f"End {match.group(1)}"
        if expected is None or found.lower() != expected.lower():
            logger.warning(
                f"⚠️ {state.module.name}: '{found}' at line {ctx.physical_line} "
                f"does not terminate {proc.kind} {proc.name}, ignoring"
            )
            return True

        _, last = state.physical_span(ctx)
        state.close_procedure(last)
        return True

    def priority(self) -> int:
        return 170

    def name(self) -> str:
        return "ProcedureEndRecognizer"


class WithRecognizer(DeclarationRecognizer):
    """Tracks the With stack. "With x" lines stay visible to later recognizers."""

    def recognize(self, ctx: LineContext, state: ParseState) -> bool:
        if END_WITH_RE.match(ctx.code):
            if state.with_stack:
                state.with_stack.pop()
            return True

        match = WITH_RE.match(ctx.code)
        if match:
            target = match.group(1).strip()
            if target.startswith(".") and state.with_stack:
                target = state.with_stack[-1] + target
            state.with_stack.append(target)
        return False

    def priority(self) -> int:
        return 165

    def name(self) -> str:
        return "WithRecognizer"


class ImplementsRecognizer(DeclarationRecognizer):
    def recognize(self, ctx: LineContext, state: ParseState) -> bool:
        match = IMPLEMENTS_RE.match(ctx.code)
        if not match:
            return False
        interface = match.group(1)
        if interface.lower() not in (i.lower() for i in state.module.implements):
            state.module.implements.append(interface)
        return True

    def priority(self) -> int:
        return 160

    def name(self) -> str:
        return "ImplementsRecognizer"
