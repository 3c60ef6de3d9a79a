# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Token pass over procedure bodies.

Walks every identifier of a procedure body once, left to right, keeping a
With stack of evaluated targets:

- Member tokens ("recv.Name", ".Name" inside With) are looked up on the
  receiver's Target: class properties and procedures, UDT fields, module
  members of "Module.Member", controls of "OtherForm.Control".
- Root tokens are matched in scope order: parameters and locals (local
  shadows global), the procedure's own name (return value), procedures and
  properties of the current module, form controls, module names, then
  public procedures of standard modules.

Module-level variables, constants and enum values are left to the usage
and enum passes, which also cover module-level lines.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from vb6_xref.continuation import ends_with_continuation
from vb6_xref.models import VbModule, VbProcedure, VbSymbol
from vb6_xref.resolver.calls import EdgeRecorder
from vb6_xref.resolver.environment import ScopeContext
from vb6_xref.resolver.indexes import ProjectIndex, Target
from vb6_xref.resolver.tokens import UNKNOWN_QUALIFIER, WITH_RELATIVE, ScannedLine, Token
from vb6_xref.source_text import is_keyword

logger = logging.getLogger(__name__)


def header_end_line(lines: List[str], start_line: int) -> int:
    """Last physical line of a procedure header that may be continued."""
    line = start_line
    while line <= len(lines) and ends_with_continuation(lines[line - 1]):
        line += 1
    return min(line, max(len(lines), start_line))


class BodyResolver:
    """Resolves identifiers in one procedure body."""

    def __init__(
        self,
        index: ProjectIndex,
        record_edge: EdgeRecorder,
        sites: Set[Tuple[int, str, int]],
    ):
        """Initialize the resolver for one module.

        Args:
            index: Project indexes.
            record_edge: Callback receiving dependency edges.
            sites: Declaration sites of the module being resolved.
        """
        self.index = index
        self.record_edge = record_edge
        self.sites = sites

    def resolve(
        self, scope: ScopeContext, proc: VbProcedure, scanned: List[ScannedLine], lines: List[str]
    ) -> int:
        """Resolve every body line of proc.

        Returns:
            Number of references recorded.
        """
        if proc.is_external or proc.start_line <= 0:
            return 0

        first_body = header_end_line(lines, proc.start_line) + 1
        last = min(proc.end_line, len(scanned))
        with_stack: List[Optional[Target]] = []
        recorded = 0

        for line_no in range(first_body, last + 1):
            line = scanned[line_no - 1]
            targets: Dict[int, Optional[Target]] = {}
            for i, token in enumerate(line.tokens):
                target, count = self._resolve_token(
                    scope, proc, line, i, token, targets, with_stack
                )
                targets[i] = target
                recorded += count
            self._update_with_stack(line, targets, with_stack)

        return recorded

    def _update_with_stack(
        self,
        line: ScannedLine,
        targets: Dict[int, Optional[Target]],
        with_stack: List[Optional[Target]],
    ) -> None:
        tokens = line.tokens
        if not tokens:
            return
        first = tokens[0].key
        if first == "end" and len(tokens) > 1 and tokens[1].key == "with":
            if with_stack:
                with_stack.pop()
            return
        if first != "with":
            return

        if len(tokens) < 2:
            with_stack.append(None)
            return
        chain_root = line.root_of(1)
        if chain_root not in (1, WITH_RELATIVE):
            with_stack.append(None)
            return
        last = 1
        for k in range(1, len(tokens)):
            if line.root_of(k) == chain_root:
                last = k
        with_stack.append(targets.get(last))

    def _resolve_token(
        self,
        scope: ScopeContext,
        proc: VbProcedure,
        line: ScannedLine,
        i: int,
        token: Token,
        targets: Dict[int, Optional[Target]],
        with_stack: List[Optional[Target]],
    ) -> Tuple[Optional[Target], int]:
        if token.named_argument:
            return None, 0

        if token.member_of is not None:
            return self._resolve_member(scope, proc, line, token, targets, with_stack)

        if is_keyword(token.name) and token.key != "me":
            return None, 0

        target = scope.root_target(token.name)
        if (line.number, token.key, token.occurrence) in self.sites:
            return target, 0
        return target, self._mark_root(scope, proc, line.number, token)

    def _resolve_member(
        self,
        scope: ScopeContext,
        proc: VbProcedure,
        line: ScannedLine,
        token: Token,
        targets: Dict[int, Optional[Target]],
        with_stack: List[Optional[Target]],
    ) -> Tuple[Optional[Target], int]:
        if token.member_of == UNKNOWN_QUALIFIER:
            return None, 0
        if token.member_of == WITH_RELATIVE:
            parent = with_stack[-1] if with_stack else None
            parent_name = "<With>"
        elif token.member_of is None:
            return None, 0
        else:
            parent = targets.get(token.member_of)
            parent_name = line.tokens[token.member_of].name
        if parent is None:
            return None, 0

        hit = self.index.lookup_member(parent, token.name, scope.module)
        if not hit.found or hit.owner is None:
            return None, 0

        self._mark(hit.symbols, scope.module, proc, line.number, token.occurrence)
        if isinstance(hit.symbols[0], VbProcedure):
            self.record_edge(
                scope.module.name,
                proc.name,
                hit.owner.name,
                hit.symbols[0].name,
                f"{parent_name}.{token.name}",
            )
        return hit.target, len(hit.symbols)

    def _mark_root(self, scope: ScopeContext, proc: VbProcedure, line: int, token: Token) -> int:
        module = scope.module
        name = token.name

        local = proc.find_parameter(name) or proc.find_local(name) or proc.find_local_constant(name)
        if local is not None:
            local.mark_used(module.name, proc.name, line, token.occurrence)
            return 1

        if token.key == proc.name.lower():
            owners = module.find_properties(name) if proc.is_property else [proc]
            self._mark(owners, module, proc, line, token.occurrence)
            return len(owners)

        if module.find_variable(name) is not None or module.find_constant(name) is not None:
            return 0

        own_proc = module.find_procedure(name)
        if own_proc is not None:
            self._mark([own_proc], module, proc, line, token.occurrence)
            self.record_edge(module.name, proc.name, module.name, own_proc.name, name)
            return 1
        own_properties = module.find_properties(name)
        if own_properties:
            self._mark(own_properties, module, proc, line, token.occurrence)
            self.record_edge(module.name, proc.name, module.name, own_properties[0].name, name)
            return len(own_properties)

        control = module.find_control(name) if module.is_form else None
        if control is not None:
            self._mark([control], module, proc, line, token.occurrence)
            return 1

        other = self.index.module(name)
        if other is not None and other.name.lower() == token.key:
            other.mark_used(module.name, proc.name, line, token.occurrence)
            return 1

        for owner, found in self.index.global_procedures(name):
            self._mark([found], module, proc, line, token.occurrence)
            self.record_edge(module.name, proc.name, owner.name, found.name, name)
            return 1
        global_properties = self.index.global_properties(name)
        if global_properties:
            owner = global_properties[0][0]
            same_owner = [p for m, p in global_properties if m is owner]
            self._mark(same_owner, module, proc, line, token.occurrence)
            self.record_edge(module.name, proc.name, owner.name, same_owner[0].name, name)
            return len(same_owner)
        return 0

    @staticmethod
    def _mark(
        symbols: List[VbSymbol], module: VbModule, proc: VbProcedure, line: int, occurrence: int
    ) -> None:
        for symbol in symbols:
            symbol.mark_used(module.name, proc.name, line, occurrence)
