# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Core data models for the VB6 symbol model.

This module defines the in-memory project tree built by the parser and
mutated by the resolution engine:
- VbProject: Ordered modules plus derived dependency edges
- VbModule: One source file (standard module, class or form)
- VbProcedure: Sub/Function/Property/Declare with span, parameters, locals, calls
- VbVariable, VbParameter, VbConstant, VbField, VbEnumValue, VbControl, ...
- VbReference: Inbound references keyed by (module, procedure)
- LineEdit: One atomic, character-addressed rewrite instruction

Every symbol lives in exactly one owning module's collection. Cross-module
updates look the owner up by name and mutate the symbol found there.

All models use JSON-compatible primitives for serialization.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ModuleKind:
    """Kinds of source modules.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    STANDARD = "bas"  # Module=
    CLASS = "cls"  # Class=
    FORM = "frm"  # Form=

    ALL = (STANDARD, CLASS, FORM)


class ProcedureKind:
    """Declared kinds of procedures and properties.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    SUB = "Sub"
    FUNCTION = "Function"
    PROPERTY_GET = "PropertyGet"
    PROPERTY_LET = "PropertyLet"
    PROPERTY_SET = "PropertySet"
    EXTERNAL_FUNCTION = "ExternalFunction"  # Declare Function ... Lib
    EXTERNAL_SUB = "ExternalSub"  # Declare Sub ... Lib

    PROPERTIES = (PROPERTY_GET, PROPERTY_LET, PROPERTY_SET)
    EXTERNALS = (EXTERNAL_FUNCTION, EXTERNAL_SUB)

    @staticmethod
    def is_property(kind: str) -> bool:
        return kind in ProcedureKind.PROPERTIES

    @staticmethod
    def is_external(kind: str) -> bool:
        return kind in ProcedureKind.EXTERNALS

    @staticmethod
    def end_statement(kind: str) -> Optional[str]:
        """Return the terminator statement for a procedure kind.

        External declarations are single-line and have no terminator.
        """
        if kind == ProcedureKind.SUB:
            return "End Sub"
        if kind == ProcedureKind.FUNCTION:
            return "End Function"
        if kind in ProcedureKind.PROPERTIES:
            return "End Property"
        return None


class SymbolKind:
    """Symbol kinds used for naming, edit categories and exports.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    MODULE = "Module"
    VARIABLE = "GlobalVariable"
    CONSTANT = "Constant"
    ENUM = "Enum"
    ENUM_VALUE = "EnumValue"
    TYPE = "Type"
    FIELD = "Field"
    EVENT = "Event"
    EVENT_PARAMETER = "EventParameter"
    CONTROL = "Control"
    PROCEDURE = "Procedure"
    PROPERTY = "Property"
    PARAMETER = "Parameter"
    PROPERTY_PARAMETER = "PropertyParameter"
    LOCAL_VARIABLE = "LocalVariable"
    LOCAL_CONSTANT = "LocalConstant"


class EditCategory:
    """Suffixes combined with a SymbolKind to tag each LineEdit."""

    DECLARATION = "Declaration"
    REFERENCE = "Reference"
    ATTRIBUTE_VB_NAME = "AttributeVBName"
    ATTRIBUTE_VAR = "AttributeVar"

    @staticmethod
    def tag(symbol_kind: str, suffix: str) -> str:
        return f"{symbol_kind}_{suffix}"


@dataclass
class VbReference:
    """Inbound references to a symbol from one (module, procedure) scope.

    Attributes:
        module: Referencing module name.
        procedure: Referencing procedure/property name, "" for module scope.
        line_numbers: Physical line numbers, unique, in discovery order.
        occurrences: Pinned 1-based occurrence indexes per line. A line
            absent from this mapping means every match on that line.
    """

    module: str
    procedure: str
    line_numbers: List[int] = field(default_factory=list)
    occurrences: Dict[int, List[int]] = field(default_factory=dict)

    def occurrences_for(self, line: int) -> Optional[List[int]]:
        """Return pinned occurrence indexes for a line, or None for all matches."""
        pinned = self.occurrences.get(line)
        return list(pinned) if pinned else None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result: Dict[str, Any] = {
            "module": self.module,
            "procedure": self.procedure,
            "line_numbers": list(self.line_numbers),
        }
        if self.occurrences:
            result["occurrences"] = {
                str(line): list(indexes) for line, indexes in sorted(self.occurrences.items())
            }
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VbReference":
        """Deserialize from JSON-compatible dict."""
        return cls(
            module=data["module"],
            procedure=data["procedure"],
            line_numbers=list(data.get("line_numbers", [])),
            occurrences={int(k): list(v) for k, v in data.get("occurrences", {}).items()},
        )


def add_reference(
    references: List[VbReference],
    module: str,
    procedure: str,
    line: int,
    occurrence: int = -1,
) -> None:
    """Merge one usage into a reference list.

    Entries are keyed case-insensitively by (module, procedure); a repeated
    hit appends to the existing entry. A line recorded without an occurrence
    index covers every match on that line and absorbs pinned indexes.

    Args:
        references: Reference list owned by the used symbol.
        module: Referencing module name.
        procedure: Referencing procedure name ("" for module scope).
        line: Physical line number. Values <= 0 are ignored.
        occurrence: 1-based occurrence of the token on the line, -1 for all.
    """
    if line <= 0:
        return

    module_key = module.lower()
    procedure_key = (procedure or "").lower()
    entry = None
    for existing in references:
        if existing.module.lower() == module_key and existing.procedure.lower() == procedure_key:
            entry = existing
            break

    if entry is None:
        entry = VbReference(module=module, procedure=procedure or "")
        references.append(entry)

    if line not in entry.line_numbers:
        entry.line_numbers.append(line)
        if occurrence > 0:
            entry.occurrences[line] = [occurrence]
        return

    pinned = entry.occurrences.get(line)
    if pinned is None:
        # Already covers every match on this line
        return
    if occurrence <= 0:
        del entry.occurrences[line]
    elif occurrence not in pinned:
        pinned.append(occurrence)
        pinned.sort()


@dataclass
class VbSymbol:
    """Fields shared by every declared symbol."""

    name: str
    line_number: int = 0  # Physical line carrying the declared name
    conventional_name: str = ""
    used: bool = False
    references: List[VbReference] = field(default_factory=list)
    name_occurrence: int = 1  # Occurrence of the name token on its declaration line

    def add_reference(self, module: str, procedure: str, line: int, occurrence: int = -1) -> None:
        add_reference(self.references, module, procedure, line, occurrence)

    def mark_used(self, module: str, procedure: str, line: int, occurrence: int = -1) -> None:
        """Mark the symbol used and record the referencing site."""
        self.used = True
        self.add_reference(module, procedure, line, occurrence)

    @property
    def needs_rename(self) -> bool:
        return bool(self.conventional_name) and self.conventional_name != self.name

    def referencing_modules(self) -> List[str]:
        return [ref.module for ref in self.references]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result: Dict[str, Any] = {
            "name": self.name,
            "conventional_name": self.conventional_name,
            "line_number": self.line_number,
            "used": self.used,
        }
        result.update(self._extra_fields())
        result["references"] = [ref.to_dict() for ref in self.references]
        return result

    def _extra_fields(self) -> Dict[str, Any]:
        return {}


@dataclass
class VbVariable(VbSymbol):
    """Module-level or local variable."""

    type: str = ""  # Empty when not lexically declared
    type_line: int = 0  # Physical line of the "As TYPE" token
    type_occurrence: int = 0
    visibility: str = ""  # Public/Private/Global/Friend/Dim, "" for locals
    is_static: bool = False
    is_array: bool = False
    with_events: bool = False
    is_new: bool = False  # As New ...
    suffix: str = ""  # Type-suffix character ($ % & ! # @)

    def _extra_fields(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "visibility": self.visibility,
            "is_static": self.is_static,
            "is_array": self.is_array,
            "with_events": self.with_events,
        }


@dataclass
class VbParameter(VbSymbol):
    """Procedure, property or event parameter (order-significant)."""

    type: str = ""
    type_line: int = 0
    type_occurrence: int = 0
    passing: str = "ByRef"
    optional: bool = False
    param_array: bool = False
    is_array: bool = False
    default_value: str = ""

    def _extra_fields(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "passing": self.passing,
            "optional": self.optional,
            "param_array": self.param_array,
            "is_array": self.is_array,
        }


@dataclass
class VbConstant(VbSymbol):
    """Module-level or procedure-local constant."""

    type: str = ""
    type_line: int = 0
    type_occurrence: int = 0
    value: str = ""
    visibility: str = ""

    def _extra_fields(self) -> Dict[str, Any]:
        return {"type": self.type, "value": self.value, "visibility": self.visibility}


@dataclass
class VbField(VbSymbol):
    """Field of a user-defined Type."""

    type: str = ""
    type_line: int = 0
    type_occurrence: int = 0
    is_array: bool = False

    def _extra_fields(self) -> Dict[str, Any]:
        return {"type": self.type, "is_array": self.is_array}


@dataclass
class VbTypeDef(VbSymbol):
    """User-defined Type ... End Type block."""

    visibility: str = ""
    end_line: int = 0
    fields: List[VbField] = field(default_factory=list)

    def find_field(self, name: str) -> Optional[VbField]:
        key = name.lower()
        return next((f for f in self.fields if f.name.lower() == key), None)

    def _extra_fields(self) -> Dict[str, Any]:
        return {
            "visibility": self.visibility,
            "end_line": self.end_line,
            "fields": [f.to_dict() for f in self.fields],
        }


@dataclass
class VbEnumValue(VbSymbol):
    value: str = ""

    def _extra_fields(self) -> Dict[str, Any]:
        return {"value": self.value}


@dataclass
class VbEnumDef(VbSymbol):
    """Enum ... End Enum block."""

    visibility: str = ""
    end_line: int = 0
    values: List[VbEnumValue] = field(default_factory=list)

    def find_value(self, name: str) -> Optional[VbEnumValue]:
        key = name.lower()
        return next((v for v in self.values if v.name.lower() == key), None)

    def _extra_fields(self) -> Dict[str, Any]:
        return {
            "visibility": self.visibility,
            "end_line": self.end_line,
            "values": [v.to_dict() for v in self.values],
        }


@dataclass
class VbEvent(VbSymbol):
    visibility: str = ""
    parameters: List[VbParameter] = field(default_factory=list)

    def _extra_fields(self) -> Dict[str, Any]:
        return {
            "visibility": self.visibility,
            "parameters": [p.to_dict() for p in self.parameters],
        }


@dataclass
class VbControl(VbSymbol):
    """Form designer control. Control arrays share one entry.

    line_numbers holds every block-opening line of the same-named control.
    """

    control_type: str = ""
    index: Optional[int] = None
    line_numbers: List[int] = field(default_factory=list)

    @property
    def is_array(self) -> bool:
        return len(self.line_numbers) > 1 or self.index is not None

    def _extra_fields(self) -> Dict[str, Any]:
        return {
            "control_type": self.control_type,
            "index": self.index,
            "line_numbers": list(self.line_numbers),
        }


@dataclass
class VbCall:
    """A call site discovered in a procedure body."""

    raw: str
    method_name: str
    line_number: int
    object_name: str = ""
    occurrence: int = 0  # Occurrence of method_name on line_number, 0 if unknown
    resolved_module: str = ""
    resolved_procedure: str = ""
    resolved_kind: str = ""

    @property
    def is_resolved(self) -> bool:
        return bool(self.resolved_module)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "raw": self.raw,
            "object_name": self.object_name,
            "method_name": self.method_name,
            "line_number": self.line_number,
            "resolved_module": self.resolved_module,
            "resolved_procedure": self.resolved_procedure,
            "resolved_kind": self.resolved_kind,
        }


@dataclass
class VbProcedure(VbSymbol):
    """Sub, Function, Property Get/Let/Set or Declare statement.

    Span invariant: end_line >= start_line and spans of one module never
    overlap. External declarations span a single logical line.
    """

    kind: str = ProcedureKind.SUB
    visibility: str = ""
    is_static: bool = False
    return_type: str = ""
    return_type_line: int = 0
    return_type_occurrence: int = 0
    start_line: int = 0
    end_line: int = 0
    lib: str = ""
    parameters: List[VbParameter] = field(default_factory=list)
    local_variables: List[VbVariable] = field(default_factory=list)
    local_constants: List[VbConstant] = field(default_factory=list)
    calls: List[VbCall] = field(default_factory=list)

    @property
    def is_property(self) -> bool:
        return ProcedureKind.is_property(self.kind)

    @property
    def is_external(self) -> bool:
        return ProcedureKind.is_external(self.kind)

    def contains_line(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line

    def find_parameter(self, name: str) -> Optional[VbParameter]:
        key = name.lower()
        return next((p for p in self.parameters if p.name.lower() == key), None)

    def find_local(self, name: str) -> Optional[VbVariable]:
        key = name.lower()
        return next((v for v in self.local_variables if v.name.lower() == key), None)

    def find_local_constant(self, name: str) -> Optional[VbConstant]:
        key = name.lower()
        return next((c for c in self.local_constants if c.name.lower() == key), None)

    def declares_local_name(self, name: str) -> bool:
        """True when a parameter, local variable or local constant has this name."""
        return (
            self.find_parameter(name) is not None
            or self.find_local(name) is not None
            or self.find_local_constant(name) is not None
        )

    def _extra_fields(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "visibility": self.visibility,
            "is_static": self.is_static,
            "return_type": self.return_type,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "lib": self.lib,
            "parameters": [p.to_dict() for p in self.parameters],
            "local_variables": [v.to_dict() for v in self.local_variables],
            "local_constants": [c.to_dict() for c in self.local_constants],
            "calls": [c.to_dict() for c in self.calls],
        }


@dataclass
class VbModule(VbSymbol):
    """One source file and its declared members."""

    kind: str = ModuleKind.STANDARD
    path: str = ""
    is_shared_external: bool = False
    implements: List[str] = field(default_factory=list)
    procedures: List[VbProcedure] = field(default_factory=list)
    properties: List[VbProcedure] = field(default_factory=list)
    variables: List[VbVariable] = field(default_factory=list)
    constants: List[VbConstant] = field(default_factory=list)
    types: List[VbTypeDef] = field(default_factory=list)
    enums: List[VbEnumDef] = field(default_factory=list)
    events: List[VbEvent] = field(default_factory=list)
    controls: List[VbControl] = field(default_factory=list)
    module_references: List[str] = field(default_factory=list)  # Derived, read-only

    @property
    def is_class(self) -> bool:
        return self.kind == ModuleKind.CLASS

    @property
    def is_form(self) -> bool:
        return self.kind == ModuleKind.FORM

    @property
    def is_standard(self) -> bool:
        return self.kind == ModuleKind.STANDARD

    @property
    def file_stem(self) -> str:
        """File name without directory or extension."""
        base = self.path.replace("\\", "/").rsplit("/", 1)[-1]
        return base.rsplit(".", 1)[0] if "." in base else base

    def all_procedures(self) -> List[VbProcedure]:
        """Procedures followed by properties, each in declaration order."""
        return list(self.procedures) + list(self.properties)

    def owner_of_line(self, line: int) -> Optional[VbProcedure]:
        """Return the procedure or property whose span contains the line."""
        for proc in self.procedures:
            if not proc.is_external and proc.contains_line(line):
                return proc
        for prop in self.properties:
            if prop.contains_line(line):
                return prop
        return None

    def find_variable(self, name: str) -> Optional[VbVariable]:
        key = name.lower()
        return next((v for v in self.variables if v.name.lower() == key), None)

    def find_constant(self, name: str) -> Optional[VbConstant]:
        key = name.lower()
        return next((c for c in self.constants if c.name.lower() == key), None)

    def find_procedure(self, name: str) -> Optional[VbProcedure]:
        key = name.lower()
        return next((p for p in self.procedures if p.name.lower() == key), None)

    def find_properties(self, name: str) -> List[VbProcedure]:
        key = name.lower()
        return [p for p in self.properties if p.name.lower() == key]

    def find_control(self, name: str) -> Optional[VbControl]:
        key = name.lower()
        return next((c for c in self.controls if c.name.lower() == key), None)

    def find_event(self, name: str) -> Optional[VbEvent]:
        key = name.lower()
        return next((e for e in self.events if e.name.lower() == key), None)

    def find_type(self, name: str) -> Optional[VbTypeDef]:
        key = name.lower()
        return next((t for t in self.types if t.name.lower() == key), None)

    def iter_members(self) -> Iterator[VbSymbol]:
        """Yield every module-level member symbol (not nested ones)."""
        yield from self.variables
        yield from self.constants
        yield from self.enums
        yield from self.types
        yield from self.events
        yield from self.controls
        yield from self.procedures
        yield from self.properties

    def iter_all_symbols(self) -> Iterator[VbSymbol]:
        """Yield every symbol owned by the module, nested ones included."""
        for member in self.iter_members():
            yield member
            if isinstance(member, VbEnumDef):
                yield from member.values
            elif isinstance(member, VbTypeDef):
                yield from member.fields
            elif isinstance(member, VbEvent):
                yield from member.parameters
            elif isinstance(member, VbProcedure):
                yield from member.parameters
                yield from member.local_variables
                yield from member.local_constants

    def _extra_fields(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "path": self.path,
            "is_shared_external": self.is_shared_external,
            "implements": list(self.implements),
            "module_references": list(self.module_references),
            "variables": [v.to_dict() for v in self.variables],
            "constants": [c.to_dict() for c in self.constants],
            "enums": [e.to_dict() for e in self.enums],
            "types": [t.to_dict() for t in self.types],
            "events": [e.to_dict() for e in self.events],
            "controls": [c.to_dict() for c in self.controls],
            "procedures": [p.to_dict() for p in self.procedures],
            "properties": [p.to_dict() for p in self.properties],
        }


@dataclass
class DependencyEdge:
    """Derived caller -> callee edge between procedures of two modules."""

    caller_module: str
    caller_procedure: str
    callee_module: str
    callee_procedure: str
    raw: str = ""

    def key(self) -> Tuple[str, str, str, str]:
        return (
            self.caller_module.lower(),
            self.caller_procedure.lower(),
            self.callee_module.lower(),
            self.callee_procedure.lower(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "caller_module": self.caller_module,
            "caller_procedure": self.caller_procedure,
            "callee_module": self.callee_module,
            "callee_procedure": self.callee_procedure,
            "raw": self.raw,
        }


@dataclass
class VbProject:
    """Project tree: ordered modules plus derived dependency edges."""

    path: str
    name: str = ""
    modules: List[VbModule] = field(default_factory=list)
    dependencies: List[DependencyEdge] = field(default_factory=list)

    def get_module(self, name: str) -> Optional[VbModule]:
        """Look up a module by declared name, case-insensitively."""
        key = name.lower()
        return next((m for m in self.modules if m.name.lower() == key), None)

    def get_module_by_stem(self, stem: str) -> Optional[VbModule]:
        """Look up a module by file name without extension."""
        key = stem.lower()
        return next((m for m in self.modules if m.file_stem.lower() == key), None)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "path": self.path,
            "name": self.name,
            "modules": [m.to_dict() for m in self.modules],
            "dependencies": [d.to_dict() for d in self.dependencies],
        }


@dataclass
class LineEdit:
    """Atomic rewrite instruction on one physical line.

    The span [start, end) must still read old_text (case-insensitive) when
    applied, otherwise the edit is skipped.
    """

    module: str
    line: int  # 1-based physical line
    start: int  # 0-based char offset, inclusive
    end: int  # 0-based char offset, exclusive
    old_text: str
    new_text: str
    category: str = ""

    def overlaps(self, other: "LineEdit") -> bool:
        return self.line == other.line and self.start < other.end and other.start < self.end

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "module": self.module,
            "line": self.line,
            "start": self.start,
            "end": self.end,
            "old_text": self.old_text,
            "new_text": self.new_text,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineEdit":
        """Deserialize from JSON-compatible dict."""
        return cls(
            module=data["module"],
            line=data["line"],
            start=data["start"],
            end=data["end"],
            old_text=data["old_text"],
            new_text=data["new_text"],
            category=data.get("category", ""),
        )


def _sort_key(symbol: VbSymbol) -> Tuple[str, str]:
    return ((symbol.conventional_name or symbol.name).lower(), symbol.name.lower())


def sort_project(project: VbProject) -> None:
    """Apply stable export ordering in place.

    Modules are ordered by path and members alphabetically by normalized
    name. Parameters, call lists and type fields keep declaration order.
    """
    project.modules.sort(key=lambda m: m.path.lower())
    for module in project.modules:
        module.variables.sort(key=_sort_key)
        module.constants.sort(key=_sort_key)
        module.events.sort(key=_sort_key)
        module.controls.sort(key=_sort_key)
        module.types.sort(key=_sort_key)
        module.enums.sort(key=_sort_key)
        for enum in module.enums:
            enum.values.sort(key=_sort_key)
        module.procedures.sort(key=_sort_key)
        module.properties.sort(key=lambda p: (_sort_key(p), p.start_line))
        for proc in module.all_procedures():
            proc.local_variables.sort(key=_sort_key)
            proc.local_constants.sort(key=_sort_key)
        for symbol in module.iter_all_symbols():
            symbol.references.sort(key=lambda r: (r.module.lower(), r.procedure.lower()))


@dataclass
class SymbolEntry:
    """A symbol together with its kind and enclosing declarations."""

    symbol: VbSymbol
    kind: str
    module: VbModule
    procedure: Optional[VbProcedure] = None  # Owner of parameters and locals
    parent: Optional[VbSymbol] = None  # Enum of a value, Type of a field, Event of a parameter


def iter_symbol_entries(module: VbModule) -> Iterator[SymbolEntry]:
    """Yield the module and every symbol it owns, tagged with its SymbolKind."""
    yield SymbolEntry(module, SymbolKind.MODULE, module)
    for variable in module.variables:
        yield SymbolEntry(variable, SymbolKind.VARIABLE, module)
    for constant in module.constants:
        yield SymbolEntry(constant, SymbolKind.CONSTANT, module)
    for enum in module.enums:
        yield SymbolEntry(enum, SymbolKind.ENUM, module)
        for value in enum.values:
            yield SymbolEntry(value, SymbolKind.ENUM_VALUE, module, parent=enum)
    for type_def in module.types:
        yield SymbolEntry(type_def, SymbolKind.TYPE, module)
        for type_field in type_def.fields:
            yield SymbolEntry(type_field, SymbolKind.FIELD, module, parent=type_def)
    for event in module.events:
        yield SymbolEntry(event, SymbolKind.EVENT, module)
        for param in event.parameters:
            yield SymbolEntry(param, SymbolKind.EVENT_PARAMETER, module, parent=event)
    for control in module.controls:
        yield SymbolEntry(control, SymbolKind.CONTROL, module)
    for proc in module.all_procedures():
        if proc.is_property:
            yield SymbolEntry(proc, SymbolKind.PROPERTY, module)
            param_kind = SymbolKind.PROPERTY_PARAMETER
        else:
            yield SymbolEntry(proc, SymbolKind.PROCEDURE, module)
            param_kind = SymbolKind.PARAMETER
        for param in proc.parameters:
            yield SymbolEntry(param, param_kind, module, procedure=proc)
        for variable in proc.local_variables:
            yield SymbolEntry(variable, SymbolKind.LOCAL_VARIABLE, module, procedure=proc)
        for constant in proc.local_constants:
            yield SymbolEntry(constant, SymbolKind.LOCAL_CONSTANT, module, procedure=proc)
