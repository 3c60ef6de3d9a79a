# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Resolution of call sites recorded at parse time.

Receiver calls ("obj.Method", "Module.Proc") are resolved through the
receiver's Target: properties first, then procedures, then member
variables. Unqualified calls go through the procedure index: the current
module first, then public procedures of standard modules in project order,
then a global variable of the current module (array access), then a public
Property Get.
"""

import logging
from typing import Callable, List, Optional, Tuple

from vb6_xref.models import VbCall, VbModule, VbProcedure, VbSymbol
from vb6_xref.resolver.environment import ScopeContext
from vb6_xref.resolver.indexes import MemberHit, ProjectIndex
from vb6_xref.source_text import base_type_name

logger = logging.getLogger(__name__)

RESOLVED_VARIABLE = "Variable"

# (caller module, caller procedure, callee module, callee procedure, raw)
EdgeRecorder = Callable[[str, str, str, str, str], None]


class CallResolver:
    """Resolves VbCall entries of one procedure and records references."""

    def __init__(self, index: ProjectIndex, record_edge: EdgeRecorder):
        self.index = index
        self.record_edge = record_edge

    def resolve_calls(self, scope: ScopeContext, proc: VbProcedure) -> int:
        """Resolve every parse-time call of proc.

        Returns:
            Number of calls resolved.
        """
        resolved = 0
        for call in proc.calls:
            if self.resolve_call(scope, proc, call):
                resolved += 1
            else:
                logger.debug(f"{scope.module.name}.{proc.name}: unresolved call '{call.raw}'")
        return resolved

    def resolve_call(self, scope: ScopeContext, proc: VbProcedure, call: VbCall) -> bool:
        if call.object_name:
            found = self._resolve_receiver_call(scope, call)
        else:
            found = self._resolve_bare_call(scope, call)
        if found is None:
            return False

        owner, symbols, kind = found
        call.resolved_module = owner.name
        call.resolved_procedure = symbols[0].name
        call.resolved_kind = kind
        for symbol in symbols:
            symbol.mark_used(scope.module.name, proc.name, call.line_number, call.occurrence or -1)
        if kind != RESOLVED_VARIABLE:
            self.record_edge(scope.module.name, proc.name, owner.name, symbols[0].name, call.raw)
        return True

    def _resolve_receiver_call(
        self, scope: ScopeContext, call: VbCall
    ) -> Optional[Tuple[VbModule, List[VbSymbol], str]]:
        target = scope.expression_target(call.object_name)
        if target is not None:
            hit = self.index.lookup_member(target, call.method_name, scope.module)
            return self._from_hit(hit)

        # Receiver type known by name only: match the declaring module's file name
        type_name = scope.expression_type(call.object_name)
        if type_name:
            match = self.index.procedures_in_module_named(
                call.method_name, base_type_name(type_name)
            )
            if match is not None:
                return match[0], [match[1]], match[1].kind
        return None

    def _from_hit(self, hit: MemberHit) -> Optional[Tuple[VbModule, List[VbSymbol], str]]:
        if not hit.found or hit.owner is None:
            return None
        first = hit.symbols[0]
        if isinstance(first, VbProcedure):
            return hit.owner, list(hit.symbols), first.kind
        return hit.owner, list(hit.symbols), RESOLVED_VARIABLE

    def _resolve_bare_call(
        self, scope: ScopeContext, call: VbCall
    ) -> Optional[Tuple[VbModule, List[VbSymbol], str]]:
        module = scope.module
        name = call.method_name

        local = module.find_procedure(name)
        if local is not None:
            return module, [local], local.kind
        properties = module.find_properties(name)
        if properties:
            return module, list(properties), properties[0].kind

        candidates = self.index.global_procedures(name)
        if candidates:
            owner, proc = candidates[0]
            return owner, [proc], proc.kind

        variable = module.find_variable(name)
        if variable is not None:
            return module, [variable], RESOLVED_VARIABLE

        global_properties = self.index.global_properties(name)
        if global_properties:
            owner, first = global_properties[0]
            return owner, [p for m, p in global_properties if m is owner], first.kind
        return None
