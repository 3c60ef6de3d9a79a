# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Type ... End Type and Enum ... End Enum block recognizers."""

import logging
import re

from vb6_xref.models import VbEnumDef, VbEnumValue, VbField, VbTypeDef
from vb6_xref.recognizers.base import DeclarationRecognizer
from vb6_xref.recognizers.state import LineContext, ParseState
from vb6_xref.source_text import normalize_type_name

logger = logging.getLogger(__name__)

TYPE_START_RE = re.compile(r"^(?:(Public|Private|Friend)\s+)?Type\s+(\w+)\s*$", re.IGNORECASE)
TYPE_END_RE = re.compile(r"^End\s+Type\b", re.IGNORECASE)
FIELD_RE = re.compile(
    r"^(\w+)(\([^)]*\))?\s+As\s+([\w\.]+)(\s*\*\s*\w+)?",
    re.IGNORECASE,
)
ENUM_START_RE = re.compile(r"^(?:(Public|Private|Friend)\s+)?Enum\s+(\w+)\s*$", re.IGNORECASE)
ENUM_END_RE = re.compile(r"^End\s+Enum\b", re.IGNORECASE)
ENUM_VALUE_RE = re.compile(r"^(\w+)\s*(?:=\s*(.+))?$")


def type_token_offset(match: "re.Match[str]", group: int) -> int:
    """Offset of the last segment of a possibly qualified type in a match."""
    value = match.group(group)
    return match.start(group) + value.rfind(".") + 1


class TypeBlockRecognizer(DeclarationRecognizer):
    """User-defined Type blocks and their fields."""

    def recognize(self, ctx: LineContext, state: ParseState) -> bool:
        current = state.current_type
        if current is not None:
            if TYPE_END_RE.match(ctx.code):
                _, current.end_line = state.physical_span(ctx)
                state.current_type = None
                return True
            match = FIELD_RE.match(ctx.code)
            if match:
                line, occurrence = state.locate(ctx, match.start(1), match.group(1))
                field = VbField(
                    name=match.group(1),
                    type=normalize_type_name(match.group(3)),
                    is_array=match.group(2) is not None,
                    line_number=line,
                    name_occurrence=occurrence,
                )
                type_token = field.type.rsplit(".", 1)[-1]
                field.type_line, field.type_occurrence = state.locate(
                    ctx, type_token_offset(match, 3), type_token
                )
                current.fields.append(field)
            elif ctx.code:
                logger.debug(f"{state.module.name}: unrecognized Type member '{ctx.code}'")
            return True

        if state.in_procedure or state.current_enum is not None or ctx.indented:
            return False

        match = TYPE_START_RE.match(ctx.code)
        if not match:
            return False

        line, occurrence = state.locate(ctx, match.start(2), match.group(2))
        type_def = VbTypeDef(
            name=match.group(2),
            visibility=match.group(1) or "Public",
            line_number=line,
            name_occurrence=occurrence,
        )
        state.module.types.append(type_def)
        state.current_type = type_def
        return True

    def priority(self) -> int:
        return 180

    def name(self) -> str:
        return "TypeBlockRecognizer"


class EnumBlockRecognizer(DeclarationRecognizer):
    """Enum blocks and their values."""

    def recognize(self, ctx: LineContext, state: ParseState) -> bool:
        current = state.current_enum
        if current is not None:
            if ENUM_END_RE.match(ctx.code):
                _, current.end_line = state.physical_span(ctx)
                state.current_enum = None
                return True
            match = ENUM_VALUE_RE.match(ctx.code)
            if match:
                line, occurrence = state.locate(ctx, match.start(1), match.group(1))
                current.values.append(
                    VbEnumValue(
                        name=match.group(1),
                        value=(match.group(2) or "").strip(),
                        line_number=line,
                        name_occurrence=occurrence,
                    )
                )
            return True

        if state.in_procedure or state.current_type is not None:
            return False

        match = ENUM_START_RE.match(ctx.code)
        if not match:
            return False

        line, occurrence = state.locate(ctx, match.start(2), match.group(2))
        enum_def = VbEnumDef(
            name=match.group(2),
            visibility=match.group(1) or "Public",
            line_number=line,
            name_occurrence=occurrence,
        )
        state.module.enums.append(enum_def)
        state.current_enum = enum_def
        return True

    def priority(self) -> int:
        return 175

    def name(self) -> str:
        return "EnumBlockRecognizer"
