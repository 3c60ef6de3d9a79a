# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Constant and variable declaration recognizers.

Both handle several declarators per statement ("Dim a As Long, b As String")
and both work at module level and inside procedure bodies. An untyped
declarator keeps an empty type; filling it in is the type annotator's job.
"""

import logging
import re

from vb6_xref.models import VbConstant, VbVariable
from vb6_xref.recognizers.base import DeclarationRecognizer
from vb6_xref.recognizers.procedures import split_arguments
from vb6_xref.recognizers.state import LineContext, ParseState
from vb6_xref.source_text import normalize_type_name

logger = logging.getLogger(__name__)

CONST_RE = re.compile(r"^(?:(Public|Private|Global|Friend)\s+)?Const\s+(.+)$", re.IGNORECASE)
CONST_ITEM_RE = re.compile(
    r"^(\w+)([$%&!#@]?)\s*(?:As\s+([\w\.]+))?\s*=\s*(.*)$", re.IGNORECASE
)
MODULE_VAR_RE = re.compile(r"^(Public|Private|Global|Friend|Dim)\s+(.+)$", re.IGNORECASE)
LOCAL_VAR_RE = re.compile(r"^(Dim|Static)\s+(.+)$", re.IGNORECASE)
NOT_A_VARIABLE_RE = re.compile(
    r"^(Static\s+)?(Sub|Function|Property|Declare|Event|Const|Type|Enum)\b", re.IGNORECASE
)
DECLARATOR_RE = re.compile(
    r"^(WithEvents\s+)?(\w+)([$%&!#@]?)(\((?:[^()]|\([^()]*\))*\))?"
    r"(?:\s+As\s+(New\s+)?([\w\.]+)(?:\s*\*\s*\w+)?)?\s*$",
    re.IGNORECASE,
)


def _type_position(match: "re.Match[str]", group: int, offset: int) -> int:
    value = match.group(group)
    return offset + match.start(group) + value.rfind(".") + 1


class ConstantRecognizer(DeclarationRecognizer):
    """Const statements, module-level or procedure-local."""

    def recognize(self, ctx: LineContext, state: ParseState) -> bool:
        if state.in_block:
            return False
        match = CONST_RE.match(ctx.code)
        if not match:
            return False

        visibility = match.group(1) or ("" if state.in_procedure else "Private")
        for segment, offset in split_arguments(match.group(2), match.start(2)):
            lead = len(segment) - len(segment.lstrip())
            item = CONST_ITEM_RE.match(segment.strip())
            if not item:
                logger.debug(f"{state.module.name}: unparsed constant '{segment.strip()}'")
                continue
            base = offset + lead
            name = item.group(1)
            line, occurrence = state.locate(ctx, base + item.start(1), name)
            constant = VbConstant(
                name=name,
                type=normalize_type_name(item.group(3) or ""),
                value=item.group(4).strip(),
                visibility=visibility,
                line_number=line,
                name_occurrence=occurrence,
            )
            if constant.type:
                constant.type_line, constant.type_occurrence = state.locate(
                    ctx, _type_position(item, 3, base), constant.type.rsplit(".", 1)[-1]
                )
            if state.current_procedure is not None:
                state.current_procedure.local_constants.append(constant)
            else:
                state.module.constants.append(constant)
        return True

    def priority(self) -> int:
        return 130

    def name(self) -> str:
        return "ConstantRecognizer"


class VariableRecognizer(DeclarationRecognizer):
    """Dim/Static/Public/Private/Global declarations.

    Module-level statements are consumed. Local Dim/Static statements are
    recorded but left visible to the body scanner, which may still find
    calls on the same logical line.
    """

    def recognize(self, ctx: LineContext, state: ParseState) -> bool:
        if state.in_block:
            return False

        proc = state.current_procedure
        if proc is None:
            match = MODULE_VAR_RE.match(ctx.code)
            if not match or NOT_A_VARIABLE_RE.match(match.group(2)):
                return False
            keyword = match.group(1)
            self._add_declarators(ctx, state, match, keyword, is_local=False)
            return True

        match = LOCAL_VAR_RE.match(ctx.code)
        if not match:
            return False
        keyword = match.group(1)
        self._add_declarators(ctx, state, match, keyword, is_local=True)
        return False

    def _add_declarators(
        self,
        ctx: LineContext,
        state: ParseState,
        match: "re.Match[str]",
        keyword: str,
        is_local: bool,
    ) -> None:
        for segment, offset in split_arguments(match.group(2), match.start(2)):
            lead = len(segment) - len(segment.lstrip())
            declarator = DECLARATOR_RE.match(segment.strip())
            if not declarator:
                logger.debug(f"{state.module.name}: unparsed declarator '{segment.strip()}'")
                continue
            variable = self._build(ctx, state, declarator, offset + lead, keyword, is_local)
            if is_local and state.current_procedure is not None:
                state.current_procedure.local_variables.append(variable)
            else:
                state.module.variables.append(variable)

    def _build(
        self,
        ctx: LineContext,
        state: ParseState,
        declarator: "re.Match[str]",
        base: int,
        keyword: str,
        is_local: bool,
    ) -> VbVariable:
        name = declarator.group(2)
        line, occurrence = state.locate(ctx, base + declarator.start(2), name)
        variable = VbVariable(
            name=name,
            type=normalize_type_name(declarator.group(6) or ""),
            visibility="" if is_local else keyword.capitalize(),
            is_static=is_local and keyword.lower() == "static",
            is_array=declarator.group(4) is not None,
            with_events=declarator.group(1) is not None,
            is_new=declarator.group(5) is not None,
            suffix=declarator.group(3) or "",
            line_number=line,
            name_occurrence=occurrence,
        )
        if variable.type:
            variable.type_line, variable.type_occurrence = state.locate(
                ctx, _type_position(declarator, 6, base), variable.type.rsplit(".", 1)[-1]
            )
        return variable

    def priority(self) -> int:
        return 120

    def name(self) -> str:
        return "VariableRecognizer"
