# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Type environments and receiver evaluation.

A TypeEnvironment maps a name to its declared or inferred type. The
environment for one procedure is layered:
1. Module-level Set-alias pre-scan ("Set x = New Cls", "Set x = y[.f]")
2. Every global variable in the project (the current module wins ties)
3. The procedure's parameters and locals
4. A Set-alias re-scan of the procedure body, which overrides the rest

Alias tracking is flow-insensitive: the last textual assignment to a name
wins. ScopeContext evaluates receiver expressions against an environment.
"""

import logging
import re
from typing import Dict, List, Optional

from vb6_xref.models import VbModule, VbProcedure
from vb6_xref.resolver.indexes import ProjectIndex, Target, TargetKind, is_generic_type, is_public
from vb6_xref.source_text import is_keyword, strip_array_suffix, strip_comment

logger = logging.getLogger(__name__)

SET_NEW_RE = re.compile(r"^\s*Set\s+(\w+)\s*=\s*New\s+([\w\.]+)", re.IGNORECASE)
SET_ALIAS_RE = re.compile(
    r"^\s*Set\s+(\w+)\s*=\s*(\w+)(?:\s*\([^()]*\))?(?:\s*\.\s*(\w+))?\s*$", re.IGNORECASE
)


class TypeEnvironment:
    """Case-insensitive name -> type mapping."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._types: Dict[str, str] = dict(initial or {})

    def bind(self, name: str, type_name: str) -> None:
        self._types[name.lower()] = type_name

    def bind_if_generic(self, name: str, type_name: str) -> None:
        """Bind unless the name already has a specific declared type."""
        if is_generic_type(self._types.get(name.lower(), "")):
            self.bind(name, type_name)

    def get(self, name: str) -> Optional[str]:
        return self._types.get(name.lower())

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._types

    def copy(self) -> "TypeEnvironment":
        return TypeEnvironment(self._types)

    def __len__(self) -> int:
        return len(self._types)


class ScopeContext:
    """Evaluates names and dotted expressions inside one module/procedure."""

    def __init__(
        self,
        index: ProjectIndex,
        module: VbModule,
        env: TypeEnvironment,
        procedure: Optional[VbProcedure] = None,
    ):
        self.index = index
        self.module = module
        self.env = env
        self.procedure = procedure

    def self_target(self) -> Target:
        return Target(kind=TargetKind.MODULE, module=self.module)

    def type_target(self, type_name: str) -> Optional[Target]:
        return self.index.target_for_type(type_name, self.module)

    def root_target(self, name: str) -> Optional[Target]:
        """Evaluate the first identifier of a dotted expression."""
        key = strip_array_suffix(name)
        if key.lower() == "me":
            return self.self_target()

        proc = self.procedure
        if proc is not None and proc.declares_local_name(key):
            return self.type_target(self.env.get(key) or "")

        bound = self.env.get(key)
        if bound is not None and not is_generic_type(bound):
            return self.type_target(bound)

        control = self.module.find_control(key) if self.module.is_form else None
        if control is not None:
            return Target(kind=TargetKind.CONTROL, module=self.module, control=control)

        if is_keyword(key):
            return None

        module = self.index.module(key)
        if module is not None:
            return Target(kind=TargetKind.MODULE, module=module)

        # A function or Property Get returning an object
        hit = self.index.lookup_member(self.self_target(), key, self.module)
        if hit.found:
            return hit.target
        for owner, found in self.index.global_procedures(key) + self.index.global_properties(key):
            target = self.index.target_for_type(found.return_type, owner)
            if target is not None:
                return target
        return None

    def member_target(self, target: Optional[Target], name: str) -> Optional[Target]:
        if target is None:
            return None
        return self.index.lookup_member(target, strip_array_suffix(name), self.module).target

    def expression_target(self, expression: str) -> Optional[Target]:
        """Evaluate "a.b(1).c" left to right. Returns None when any step is unknown."""
        parts = [p.strip() for p in _split_dotted(expression)]
        if not parts or not parts[0]:
            return None
        target = self.root_target(parts[0])
        for part in parts[1:]:
            target = self.member_target(target, part)
            if target is None:
                return None
        return target

    def expression_type(self, expression: str) -> str:
        """Declared type name of a dotted expression, "" when unknown."""
        parts = [p.strip() for p in _split_dotted(expression)]
        if not parts or not parts[0]:
            return ""
        if len(parts) == 1:
            key = strip_array_suffix(parts[0])
            bound = self.env.get(key)
            if bound:
                return bound
            module = self.index.module(key)
            if module is not None and (module.is_class or module.is_form):
                return module.name
            return ""
        target = self.root_target(parts[0])
        for part in parts[1:-1]:
            target = self.member_target(target, part)
        if target is None:
            return ""
        return self.index.member_type(target, strip_array_suffix(parts[-1]), self.module)


def _split_dotted(expression: str) -> List[str]:
    """Split at top-level dots, keeping index suffixes with their segment."""
    parts: List[str] = []
    depth = 0
    current = ""
    for ch in expression:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        if ch == "." and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += ch
    parts.append(current)
    return parts


class EnvironmentBuilder:
    """Builds module and procedure type environments.

    Design Notes:
    - Global seeding covers public module-level variables of every module;
      the current module's own variables are applied last so they win
    - Module-level aliases only refine names whose declared type is generic
    - Procedure-local aliases always override
    """

    def __init__(self, index: ProjectIndex):
        self.index = index
        self._global_env: Optional[TypeEnvironment] = None

    def global_environment(self) -> TypeEnvironment:
        if self._global_env is None:
            env = TypeEnvironment()
            for module in self.index.project.modules:
                if not module.is_standard:
                    continue
                for variable in module.variables:
                    if is_public(variable.visibility) and variable.type:
                        env.bind(variable.name, variable.type)
            self._global_env = env
        return self._global_env

    def module_environment(self, module: VbModule, lines: List[str]) -> TypeEnvironment:
        env = self.global_environment().copy()
        for variable in module.variables:
            env.bind(variable.name, variable.type)
        scope = ScopeContext(self.index, module, env)
        self.scan_aliases(scope, lines, 1, len(lines), override=False)
        return env

    def procedure_environment(
        self, module_env: TypeEnvironment, module: VbModule, proc: VbProcedure, lines: List[str]
    ) -> TypeEnvironment:
        env = module_env.copy()
        for param in proc.parameters:
            env.bind(param.name, param.type)
        for local in proc.local_variables:
            env.bind(local.name, local.type)
        scope = ScopeContext(self.index, module, env, proc)
        self.scan_aliases(scope, lines, proc.start_line, proc.end_line, override=True)
        return env

    def scan_aliases(
        self, scope: ScopeContext, lines: List[str], first: int, last: int, override: bool
    ) -> int:
        """Apply Set assignments found in lines[first..last] (1-based, inclusive).

        Module-level scans skip procedure bodies of names declared locally
        there, since those assignments retype the local, not the global.

        Returns:
            Number of bindings applied.
        """
        applied = 0
        env = scope.env
        for line_no in range(max(first, 1), min(last, len(lines)) + 1):
            code = strip_comment(lines[line_no - 1])
            if "set" not in code.lower():
                continue

            name = ""
            type_name = ""
            match = SET_NEW_RE.match(code)
            if match:
                name, type_name = match.group(1), match.group(2)
            else:
                alias = SET_ALIAS_RE.match(code)
                if alias:
                    name = alias.group(1)
                    source = alias.group(2)
                    if alias.group(3):
                        type_name = scope.expression_type(f"{source}.{alias.group(3)}")
                    else:
                        type_name = scope.expression_type(source)
            if not name or not type_name:
                continue

            if not override:
                owner = scope.module.owner_of_line(line_no)
                if owner is not None and owner.declares_local_name(name):
                    continue
                env.bind_if_generic(name, type_name)
            else:
                env.bind(name, type_name)
            applied += 1
            logger.debug(f"{scope.module.name}:{line_no} alias {name} -> {type_name}")
        return applied
