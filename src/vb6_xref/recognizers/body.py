# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Procedure body scanner: parse-time call discovery.

Three call shapes are recognized on each logical line of a body:
- Name(...) and receiver.Name(...)
- a statement consisting of a single identifier ("DoWork")
- a statement starting with an identifier followed by arguments ("DoWork 1, 2")

Keywords, parameters, locals and module variables are filtered out. Calls
are deduplicated by (raw text, line). Resolution happens later.
"""

import logging
import re

from vb6_xref.models import VbCall, VbProcedure
from vb6_xref.recognizers.base import DeclarationRecognizer
from vb6_xref.recognizers.state import LineContext, ParseState
from vb6_xref.source_text import is_keyword, member_access_qualifier

logger = logging.getLogger(__name__)

CALL_RE = re.compile(r"(?:(\w+)\s*\.\s*)?(\w+)\s*\(")
BARE_CALL_RE = re.compile(r"^(\w+)\s*$")
CALL_WITHOUT_PARENS_RE = re.compile(r"^(\w+)\s+(?![=\s])")
LABEL_RE = re.compile(r"^\w+:(\s|$)")
CALL_STATEMENT_RE = re.compile(r"^Call\s+(\w+)\s*$", re.IGNORECASE)


class ProcedureBodyRecognizer(DeclarationRecognizer):
    """Collects call sites inside the open procedure."""

    def recognize(self, ctx: LineContext, state: ParseState) -> bool:
        proc = state.current_procedure
        if proc is None:
            return False

        masked = ctx.masked
        if not masked.strip() or LABEL_RE.match(masked):
            return True

        self._scan_parenthesized_calls(ctx, state, proc, masked)

        statement = CALL_STATEMENT_RE.match(masked)
        if statement:
            name = statement.group(1)
            if not self._is_excluded(state, proc, name, allow_module_vars=False):
                self._add_call(ctx, state, proc, name, "", statement.start(1))
            return True

        bare = BARE_CALL_RE.match(masked)
        if bare:
            name = bare.group(1)
            if not self._is_excluded(state, proc, name, allow_module_vars=False):
                self._add_call(ctx, state, proc, name, "", bare.start(1))
            return True

        without_parens = CALL_WITHOUT_PARENS_RE.match(masked)
        if without_parens:
            name = without_parens.group(1)
            if not self._is_excluded(state, proc, name, allow_module_vars=False):
                self._add_call(ctx, state, proc, name, "", without_parens.start(1))
        return True

    def _scan_parenthesized_calls(
        self, ctx: LineContext, state: ParseState, proc: VbProcedure, masked: str
    ) -> None:
        for match in CALL_RE.finditer(masked):
            object_name = match.group(1) or ""
            method = match.group(2)
            if is_keyword(method) and not object_name:
                continue
            if not object_name:
                if self._is_excluded(state, proc, method, allow_module_vars=True):
                    continue
                qualifier = member_access_qualifier(masked, match.start(2))
                if qualifier == "":
                    # ".Method(" inside a With block
                    if not state.with_stack:
                        continue
                    object_name = state.with_stack[-1]
                elif qualifier is not None:
                    object_name = qualifier
            self._add_call(ctx, state, proc, method, object_name, match.start(2))

    def _is_excluded(
        self, state: ParseState, proc: VbProcedure, name: str, allow_module_vars: bool
    ) -> bool:
        if is_keyword(name):
            return True
        if proc.find_parameter(name) is not None or proc.find_local(name) is not None:
            return True
        if allow_module_vars:
            return False
        if state.module.find_variable(name) is not None:
            return True
        return state.module.find_type(name) is not None

    def _add_call(
        self,
        ctx: LineContext,
        state: ParseState,
        proc: VbProcedure,
        method: str,
        object_name: str,
        code_pos: int,
    ) -> None:
        if not object_name and method.lower() == proc.name.lower():
            return
        raw = f"{object_name}.{method}" if object_name else method
        line, occurrence = state.locate(ctx, code_pos, method)
        for existing in proc.calls:
            if existing.raw.lower() == raw.lower() and existing.line_number == line:
                return
        proc.calls.append(
            VbCall(
                raw=raw,
                method_name=method,
                object_name=object_name,
                line_number=line,
                occurrence=occurrence,
            )
        )

    def priority(self) -> int:
        return 0

    def name(self) -> str:
        return "ProcedureBodyRecognizer"
