# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Usage of module-level variables and constants, and derived views.

Module-level variables and constants are found by scanning raw tokens of
every line (module-level lines included), subject to the scoping rules:
- a parameter or local of the enclosing procedure shadows the global
- the referencing module's own declaration wins over other modules'
- private declarations are invisible outside their module
- declaration sites are never uses

After all passes, DerivedViews computes module "used" flags, the read-only
set of referencing modules, and owns the deduplicated dependency edges.
"""

import logging
from typing import List, Set, Tuple

from vb6_xref.models import DependencyEdge, VbModule, VbProject
from vb6_xref.resolver.indexes import ProjectIndex
from vb6_xref.resolver.tokens import ScannedLine
from vb6_xref.source_text import is_keyword

logger = logging.getLogger(__name__)


class GlobalUsageResolver:
    """Raw-token usage scan for module-level variables and constants."""

    def __init__(self, index: ProjectIndex):
        self.index = index

    def resolve_module(
        self, module: VbModule, scanned: List[ScannedLine], sites: Set[Tuple[int, str, int]]
    ) -> int:
        count = 0
        for line in scanned:
            owner = None
            owner_resolved = False
            for token in line.tokens:
                if token.is_member or token.named_argument or is_keyword(token.name):
                    continue
                found = self.index.global_value(token.name, module)
                if found is None:
                    continue
                if (line.number, token.key, token.occurrence) in sites:
                    continue

                if not owner_resolved:
                    owner = module.owner_of_line(line.number)
                    owner_resolved = True
                if owner is not None and owner.declares_local_name(token.name):
                    continue

                _, symbol = found
                scope_name = owner.name if owner is not None else ""
                symbol.mark_used(module.name, scope_name, line.number, token.occurrence)
                count += 1
        return count


class DerivedViews:
    """Dependency edges, module used flags and referencing-module sets."""

    def __init__(self, project: VbProject):
        self.project = project
        self._edge_keys: Set[Tuple[str, str, str, str]] = {
            edge.key() for edge in project.dependencies
        }

    def record_edge(
        self,
        caller_module: str,
        caller_procedure: str,
        callee_module: str,
        callee_procedure: str,
        raw: str,
    ) -> None:
        """Add a caller -> callee edge unless it is a self-call or already known."""
        edge = DependencyEdge(
            caller_module=caller_module,
            caller_procedure=caller_procedure,
            callee_module=callee_module,
            callee_procedure=callee_procedure,
            raw=raw,
        )
        key = edge.key()
        if key[0] == key[2] and key[1] == key[3]:
            return
        if key in self._edge_keys:
            return
        self._edge_keys.add(key)
        self.project.dependencies.append(edge)

    def finalize(self) -> None:
        """Compute module used flags and referencing modules.

        Runs once, after every resolution pass; nothing computed here feeds
        back into resolution.
        """
        for module in self.project.modules:
            if any(member.used for member in module.iter_members()):
                module.used = True

            own = module.name.lower()
            referencing: List[str] = []
            seen: Set[str] = set()
            for symbol in [module, *module.iter_all_symbols()]:
                for ref in symbol.references:
                    key = ref.module.lower()
                    if key == own or key in seen:
                        continue
                    seen.add(key)
                    referencing.append(ref.module)
            module.module_references = sorted(referencing, key=str.lower)
