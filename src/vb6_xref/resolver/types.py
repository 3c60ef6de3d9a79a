# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Project-wide passes over declared types, enum values and events.

These run after every procedure body has been resolved:
- Type usage: "As TYPE" tokens of variables, parameters, fields, constants
  and return types mark the named Type, Enum or class module used, with a
  reference at the type token. "New X", "TypeOf v Is X" and "Implements X"
  are found by scanning the raw lines.
- Enum values: "Enum.Value" goes to that enum; a bare value goes to the
  current module's enum, else the first declaring enum in project order.
- Events: "RaiseEvent X" references the event of the same class; handlers
  named "<WithEventsVar>_<Event>" mark the event source's event used.
"""

import logging
import re
from typing import Dict, List, Optional, Set, Tuple

from vb6_xref.models import VbModule, VbProject, VbSymbol
from vb6_xref.resolver.indexes import ProjectIndex, iter_typed_symbols
from vb6_xref.resolver.tokens import ScannedLine, Token
from vb6_xref.source_text import base_type_name

logger = logging.getLogger(__name__)

TYPE_KEYWORDS = ("new", "implements")
TYPEOF_RE = re.compile(r"\bTypeOf\s+[\w\.\(\)]+\s+Is\s+$", re.IGNORECASE)

Sites = Dict[str, Set[Tuple[int, str, int]]]


def _owner_name(module: VbModule, line: int) -> str:
    owner = module.owner_of_line(line)
    return owner.name if owner is not None else ""


class TypeUsageResolver:
    """Marks user Types, Enums and class modules named as types."""

    def __init__(self, index: ProjectIndex):
        self.index = index

    def type_symbol(self, type_name: str, asking: VbModule) -> Optional[VbSymbol]:
        """Declared symbol a type name refers to: class module, Type or Enum."""
        if not type_name:
            return None
        module = self.index.module(base_type_name(type_name))
        if module is not None and (module.is_class or module.is_form):
            return module
        found_type = self.index.type_def(type_name, prefer=asking)
        if found_type is not None:
            return found_type[1]
        found_enum = self.index.enum_def(type_name, prefer=asking)
        if found_enum is not None:
            return found_enum[1]
        return None

    def resolve_declared_types(self, project: VbProject) -> int:
        count = 0
        for module in project.modules:
            for _, type_name, type_line, type_occurrence, owner in iter_typed_symbols(module):
                target = self.type_symbol(type_name, module)
                if target is None:
                    continue
                target.mark_used(module.name, owner, type_line, type_occurrence or -1)
                count += 1
        return count

    def resolve_type_keywords(self, module: VbModule, scanned: List[ScannedLine]) -> int:
        """Mark types written after New, Implements and TypeOf ... Is."""
        count = 0
        for line in scanned:
            for i, token in enumerate(line.tokens):
                if i == 0 or token.is_member:
                    continue
                previous = line.tokens[i - 1].key
                if previous in TYPE_KEYWORDS or (
                    previous == "is" and TYPEOF_RE.search(line.masked[: token.start])
                ):
                    target = self.type_symbol(token.name, module)
                    if target is not None:
                        owner = _owner_name(module, line.number)
                        target.mark_used(module.name, owner, line.number, token.occurrence)
                        count += 1
        return count


class EnumValueResolver:
    """Resolves qualified and bare enum value references in every line."""

    def __init__(self, index: ProjectIndex):
        self.index = index

    def resolve_module(self, module: VbModule, scanned: List[ScannedLine], sites: Sites) -> int:
        if not self.index.enum_values:
            return 0
        module_sites = sites.get(module.name.lower(), set())
        count = 0
        for line in scanned:
            for token in line.tokens:
                if token.named_argument:
                    continue
                if (line.number, token.key, token.occurrence) in module_sites:
                    continue
                if self._resolve_token(module, line, token):
                    count += 1
        return count

    def _resolve_token(self, module: VbModule, line: ScannedLine, token: Token) -> bool:
        candidates = self.index.enum_value_candidates(token.name)
        if not candidates:
            return False
        owner_proc = module.owner_of_line(line.number)
        scope_name = owner_proc.name if owner_proc is not None else ""

        if token.member_of is not None:
            if token.member_of < 0:
                return False
            qualifier = line.tokens[token.member_of]
            for _, enum, value in candidates:
                if enum.name.lower() == qualifier.key:
                    value.mark_used(module.name, scope_name, line.number, token.occurrence)
                    enum.mark_used(module.name, scope_name, line.number, qualifier.occurrence)
                    return True
            return False

        # Local names, and the module's own same-named declarations, shadow enum values
        if owner_proc is not None and owner_proc.declares_local_name(token.name):
            return False
        if module.find_variable(token.name) is not None:
            return False
        if module.find_constant(token.name) is not None:
            return False

        chosen = next(((e, v) for m, e, v in candidates if m is module), None)
        if chosen is None:
            chosen = (candidates[0][1], candidates[0][2])
        chosen[1].mark_used(module.name, scope_name, line.number, token.occurrence)
        return True


class EventResolver:
    """RaiseEvent statements and WithEvents handler procedures."""

    def __init__(self, index: ProjectIndex):
        self.index = index

    def resolve_module(self, module: VbModule, scanned: List[ScannedLine]) -> int:
        count = 0
        if module.events:
            for line in scanned:
                tokens = line.tokens
                for i, token in enumerate(tokens[:-1]):
                    if token.key != "raiseevent":
                        continue
                    event_token = tokens[i + 1]
                    event = module.find_event(event_token.name)
                    if event is not None:
                        event.mark_used(
                            module.name,
                            _owner_name(module, line.number),
                            line.number,
                            event_token.occurrence,
                        )
                        count += 1

        for variable in module.variables:
            if not variable.with_events:
                continue
            source = self.index.class_module(variable.type)
            prefix = variable.name.lower() + "_"
            for proc in module.procedures:
                if not proc.name.lower().startswith(prefix):
                    continue
                variable.used = True
                if source is None:
                    continue
                event = source.find_event(proc.name[len(prefix) :])
                if event is not None:
                    event.used = True
                    count += 1
        return count
