# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Name indexes over the Phase A symbol model.

ProjectIndex is built once after every module has been parsed and is not
mutated during resolution. All keys are lower-cased identifiers; values
keep project (manifest) order so "first match" is deterministic.

Target describes what a receiver expression evaluates to: a module
(standard, class or form), a user-defined Type or a form control. Member
lookups on a Target return the symbols found plus the Target of the
member's own type, so dotted chains can be followed left to right.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from vb6_xref.models import (
    VbControl,
    VbEnumDef,
    VbEnumValue,
    VbModule,
    VbProcedure,
    VbProject,
    VbSymbol,
    VbTypeDef,
)
from vb6_xref.source_text import base_type_name

logger = logging.getLogger(__name__)

PUBLIC_VISIBILITIES = ("public", "global", "friend")
GENERIC_TYPES = ("", "object", "variant")


class TargetKind:
    """Kinds of receiver targets.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    MODULE = "module"  # Any module addressed by name, Me, or an object variable
    TYPE = "type"  # User-defined Type value
    CONTROL = "control"  # Form control (members are intrinsic, never resolved)


@dataclass
class Target:
    kind: str
    module: VbModule
    type_def: Optional[VbTypeDef] = None
    control: Optional[VbControl] = None


@dataclass
class MemberHit:
    """Result of a member lookup on a Target."""

    symbols: List[VbSymbol] = field(default_factory=list)
    owner: Optional[VbModule] = None
    target: Optional[Target] = None
    type_name: str = ""  # Declared type of the member, "" if none

    @property
    def found(self) -> bool:
        return bool(self.symbols)

    @property
    def procedure(self) -> Optional[VbProcedure]:
        first = self.symbols[0] if self.symbols else None
        return first if isinstance(first, VbProcedure) else None


def is_public(visibility: str) -> bool:
    return visibility.lower() in PUBLIC_VISIBILITIES


def is_generic_type(type_name: str) -> bool:
    return type_name.strip().lower() in GENERIC_TYPES


class ProjectIndex:
    """Case-insensitive lookup tables over a parsed project.

    Design Notes:
    - Built once after Phase A, read-only during Phase B
    - Procedure lookups exclude properties; properties have their own table
    - Type/enum lookups prefer the asking module's own declarations
    """

    def __init__(self, project: VbProject):
        self.project = project
        self.modules_by_name: Dict[str, VbModule] = {}
        self.modules_by_stem: Dict[str, VbModule] = {}
        self.procedures: Dict[str, List[Tuple[VbModule, VbProcedure]]] = {}
        self.properties: Dict[str, List[Tuple[VbModule, VbProcedure]]] = {}
        self.types: Dict[str, List[Tuple[VbModule, VbTypeDef]]] = {}
        self.enums: Dict[str, List[Tuple[VbModule, VbEnumDef]]] = {}
        self.enum_values: Dict[str, List[Tuple[VbModule, VbEnumDef, VbEnumValue]]] = {}
        self.module_values: Dict[str, List[Tuple[VbModule, VbSymbol]]] = {}
        self._build()

    def _build(self) -> None:
        for module in self.project.modules:
            self.modules_by_name.setdefault(module.name.lower(), module)
            self.modules_by_stem.setdefault(module.file_stem.lower(), module)
            for proc in module.procedures:
                self.procedures.setdefault(proc.name.lower(), []).append((module, proc))
            for prop in module.properties:
                self.properties.setdefault(prop.name.lower(), []).append((module, prop))
            for type_def in module.types:
                self.types.setdefault(type_def.name.lower(), []).append((module, type_def))
            for enum in module.enums:
                self.enums.setdefault(enum.name.lower(), []).append((module, enum))
                for value in enum.values:
                    self.enum_values.setdefault(value.name.lower(), []).append(
                        (module, enum, value)
                    )
            for variable in module.variables:
                self.module_values.setdefault(variable.name.lower(), []).append(
                    (module, variable)
                )
            for constant in module.constants:
                self.module_values.setdefault(constant.name.lower(), []).append(
                    (module, constant)
                )
        logger.debug(
            f"Indexed {len(self.modules_by_name)} modules, {len(self.procedures)} procedure "
            f"names, {len(self.types)} types, {len(self.enums)} enums"
        )

    # Modules

    def module(self, name: str) -> Optional[VbModule]:
        key = name.lower()
        return self.modules_by_name.get(key) or self.modules_by_stem.get(key)

    def class_module(self, type_name: str) -> Optional[VbModule]:
        """Class or form module named by a declared type ('Lib.ClsFoo' -> ClsFoo)."""
        module = self.module(base_type_name(type_name)) if type_name else None
        if module is not None and (module.is_class or module.is_form):
            return module
        return None

    # Procedures

    def global_procedures(self, name: str) -> List[Tuple[VbModule, VbProcedure]]:
        """Public procedures callable without qualification (standard modules)."""
        return [
            (m, p)
            for m, p in self.procedures.get(name.lower(), [])
            if m.is_standard and (is_public(p.visibility) or not p.visibility)
        ]

    def global_properties(self, name: str) -> List[Tuple[VbModule, VbProcedure]]:
        return [
            (m, p)
            for m, p in self.properties.get(name.lower(), [])
            if m.is_standard and is_public(p.visibility)
        ]

    def procedures_in_module_named(
        self, name: str, module_stem: str
    ) -> Optional[Tuple[VbModule, VbProcedure]]:
        key = module_stem.lower()
        for module, proc in self.procedures.get(name.lower(), []):
            if module.file_stem.lower() == key or module.name.lower() == key:
                return module, proc
        return None

    # Types and enums

    def type_def(
        self, type_name: str, prefer: Optional[VbModule] = None
    ) -> Optional[Tuple[VbModule, VbTypeDef]]:
        return self._prefer(self.types.get(base_type_name(type_name).lower(), []), prefer)

    def enum_def(
        self, name: str, prefer: Optional[VbModule] = None
    ) -> Optional[Tuple[VbModule, VbEnumDef]]:
        return self._prefer(self.enums.get(base_type_name(name).lower(), []), prefer)

    def enum_value_candidates(self, name: str) -> List[Tuple[VbModule, VbEnumDef, VbEnumValue]]:
        return self.enum_values.get(name.lower(), [])

    def global_value(self, name: str, asking: VbModule) -> Optional[Tuple[VbModule, VbSymbol]]:
        """Module-level variable or constant visible by bare name from asking.

        The asking module's own declaration wins. Otherwise the first public
        declaration of a standard module, in project order.
        """
        candidates = self.module_values.get(name.lower(), [])
        for module, symbol in candidates:
            if module is asking:
                return module, symbol
        for module, symbol in candidates:
            if module.is_standard and is_public(getattr(symbol, "visibility", "")):
                return module, symbol
        return None

    @staticmethod
    def _prefer(candidates: list, prefer: Optional[VbModule]):
        if not candidates:
            return None
        if prefer is not None:
            for candidate in candidates:
                if candidate[0] is prefer:
                    return candidate
        return candidates[0]

    # Targets

    def target_for_type(
        self, type_name: str, asking: Optional[VbModule] = None
    ) -> Optional[Target]:
        """Map a declared type name to a Target, or None for intrinsic/unknown types."""
        if is_generic_type(type_name):
            return None
        module = self.class_module(type_name)
        if module is not None:
            return Target(kind=TargetKind.MODULE, module=module)
        found = self.type_def(type_name, prefer=asking)
        if found is not None:
            return Target(kind=TargetKind.TYPE, module=found[0], type_def=found[1])
        return None

    def lookup_member(
        self, target: Target, name: str, asking: Optional[VbModule] = None
    ) -> MemberHit:
        """Find a member of a target by name.

        Properties win over procedures; then member variables, constants,
        controls and enums. Private members are only visible from their own
        module.
        """
        hit = MemberHit()
        if target.kind == TargetKind.CONTROL:
            return hit

        if target.kind == TargetKind.TYPE:
            assert target.type_def is not None
            type_field = target.type_def.find_field(name)
            if type_field is not None:
                hit.symbols = [type_field]
                hit.owner = target.module
                hit.type_name = type_field.type
                hit.target = self.target_for_type(type_field.type, target.module)
            return hit

        module = target.module
        own = asking is module
        hit.owner = module

        properties = [p for p in module.find_properties(name) if own or is_public(p.visibility)]
        if properties:
            hit.symbols = list(properties)
            typed = next((p for p in properties if p.return_type), None)
            if typed is None:
                # Property Let/Set carry the type on their last parameter
                last_params = [p.parameters[-1] for p in properties if p.parameters]
                typed_param = next((param for param in last_params if param.type), None)
                hit.type_name = typed_param.type if typed_param is not None else ""
            else:
                hit.type_name = typed.return_type
            hit.target = self.target_for_type(hit.type_name, module)
            return hit

        proc = module.find_procedure(name)
        if proc is not None and (own or is_public(proc.visibility) or not proc.visibility):
            hit.symbols = [proc]
            hit.type_name = proc.return_type
            hit.target = self.target_for_type(proc.return_type, module)
            return hit

        variable = module.find_variable(name)
        if variable is not None and (own or is_public(variable.visibility)):
            hit.symbols = [variable]
            hit.type_name = variable.type
            hit.target = self.target_for_type(variable.type, module)
            return hit

        constant = module.find_constant(name)
        if constant is not None and (own or is_public(constant.visibility)):
            hit.symbols = [constant]
            hit.type_name = constant.type
            return hit

        control = module.find_control(name)
        if control is not None:
            hit.symbols = [control]
            hit.target = Target(kind=TargetKind.CONTROL, module=module, control=control)
            return hit

        enum = next((e for e in module.enums if e.name.lower() == name.lower()), None)
        if enum is not None:
            hit.symbols = [enum]
        return hit

    def member_type(self, target: Target, name: str, asking: Optional[VbModule] = None) -> str:
        return self.lookup_member(target, name, asking).type_name


def iter_typed_symbols(module: VbModule) -> Iterator[Tuple[VbSymbol, str, int, int, str]]:
    """Yield (symbol, type, type_line, type_occurrence, owner_procedure) for typed symbols."""
    for variable in module.variables:
        yield variable, variable.type, variable.type_line, variable.type_occurrence, ""
    for constant in module.constants:
        yield constant, constant.type, constant.type_line, constant.type_occurrence, ""
    for type_def in module.types:
        for type_field in type_def.fields:
            yield type_field, type_field.type, type_field.type_line, type_field.type_occurrence, ""
    for event in module.events:
        for param in event.parameters:
            yield param, param.type, param.type_line, param.type_occurrence, ""
    for proc in module.all_procedures():
        owner = "" if proc.is_external else proc.name
        yield proc, proc.return_type, proc.return_type_line, proc.return_type_occurrence, owner
        for param in proc.parameters:
            yield param, param.type, param.type_line, param.type_occurrence, owner
        for local in proc.local_variables:
            yield local, local.type, local.type_line, local.type_occurrence, proc.name
        for local_const in proc.local_constants:
            yield (
                local_const,
                local_const.type,
                local_const.type_line,
                local_const.type_occurrence,
                proc.name,
            )


def declaration_sites(module: VbModule) -> Set[Tuple[int, str, int]]:
    """(line, lower name, occurrence) of every declared name and type token.

    Raw-text scans skip these positions: a name written where something is
    declared is never a use of another symbol.
    """
    sites: Set[Tuple[int, str, int]] = set()
    for symbol in module.iter_all_symbols():
        if symbol.line_number > 0:
            sites.add((symbol.line_number, symbol.name.lower(), symbol.name_occurrence))
        if isinstance(symbol, VbControl):
            for line in symbol.line_numbers:
                sites.add((line, symbol.name.lower(), 1))
    for _, type_name, type_line, type_occurrence, _ in iter_typed_symbols(module):
        if type_name and type_line > 0:
            sites.add((type_line, base_type_name(type_name).lower(), type_occurrence))
    return sites
