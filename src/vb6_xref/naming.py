# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Naming convention oracle and scope-ordered name assignment.

The oracle is a pure function: given a symbol kind, its raw name and a few
attributes (visibility, storage class, declared type, module kind, control
type) it returns the conventional name. It never looks at other symbols.

NameAssigner calls the oracle once per symbol in a fixed scope order and
resolves conflicts within each scope:
1. Module names (project scope)
2. Per module: variables, constants, enums (values per enum), types
   (fields per type), events (parameters per event), controls,
   procedures, properties (Get/Let/Set share one name)
3. Per procedure/property: parameters, locals, local constants

A candidate already taken in its scope gets a numeric suffix (2, 3, ...).
A result that is a reserved word of a configured target language falls
back to the raw name.

Idempotency: every rule maps an already conventional name to itself, so a
second run over renamed source assigns no new names.
"""

import keyword
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set

from vb6_xref.models import (
    ModuleKind,
    SymbolKind,
    VbModule,
    VbProcedure,
    VbProject,
    VbSymbol,
)
from vb6_xref.source_text import VB_KEYWORDS, base_type_name, normalize_type_name

logger = logging.getLogger(__name__)

CSHARP_KEYWORDS = frozenset(
    (
        "abstract as base bool break byte case catch char checked class const continue "
        "decimal default delegate do double else enum event explicit extern false finally "
        "fixed float for foreach goto if implicit in int interface internal is lock long "
        "namespace new null object operator out override params private protected public "
        "readonly ref return sbyte sealed short sizeof stackalloc static string struct "
        "switch this throw true try typeof uint ulong unchecked unsafe ushort using "
        "virtual void volatile while"
    ).split()
)

PYTHON_KEYWORDS = frozenset(word.lower() for word in keyword.kwlist)

RESERVED_WORD_PROFILES: Dict[str, FrozenSet[str]] = {
    "csharp": CSHARP_KEYWORDS,
    "python": PYTHON_KEYWORDS,
    "vb": VB_KEYWORDS,
}

HUNGARIAN_PREFIXES = frozenset(
    ("int", "str", "lng", "dbl", "sng", "cur", "bol", "byt", "chr", "dat", "obj", "arr", "udt")
)
PRESERVED_PREFIXES = frozenset(("msg", "plc"))

# Handler procedures whose names are fixed by the runtime
FIXED_HANDLER_PREFIXES = ("class_", "form_", "mdiform_", "usercontrol_")

CONTROL_PREFIXES: Dict[str, str] = {
    key.lower(): value
    for key, value in (
        ("TextBox", "txt"),
        ("CommandButton", "cmd"),
        ("Command", "cmd"),
        ("Label", "lbl"),
        ("Frame", "fra"),
        ("CheckBox", "chk"),
        ("Check", "chk"),
        ("OptionButton", "opt"),
        ("Option", "opt"),
        ("ListBox", "lst"),
        ("ComboBox", "cbo"),
        ("Timer", "tmr"),
        ("PictureBox", "pic"),
        ("Image", "img"),
        ("Shape", "shp"),
        ("Line", "lin"),
        ("HScrollBar", "hsb"),
        ("VScrollBar", "vsb"),
        ("DirListBox", "dir"),
        ("DriveListBox", "drv"),
        ("FileListBox", "fil"),
        ("Data", "dat"),
        ("OLE", "ole"),
        ("CommonDialog", "dlg"),
        ("Menu", "mnu"),
        ("MSFlexGrid", "flx"),
        ("MSHFlexGrid", "flx"),
        ("DataGrid", "grd"),
        ("TreeView", "tvw"),
        ("ListView", "lvw"),
        ("ProgressBar", "prg"),
        ("Slider", "sld"),
        ("TabStrip", "tab"),
        ("ToolBar", "tlb"),
        ("StatusBar", "stb"),
        ("ImageList", "iml"),
        ("RichTextBox", "rtf"),
        ("MonthView", "mvw"),
        ("DateTimePicker", "dtp"),
        ("UpDown", "upd"),
        ("Animation", "ani"),
        ("MSComm", "msc"),
        ("Winsock", "wsk"),
        ("WebBrowser", "web"),
        ("CoolBar", "clb"),
        ("FlatScrollBar", "fsb"),
    )
}

_HUNGARIAN_RE = re.compile(r"^([a-z]{3})([A-Z].*)")
_MODULE_HUNGARIAN_RE = re.compile(r"^m([a-z]{3})([A-Z].*)")
_ARRAY_SUFFIX_RE = re.compile(r"^(.+)(_\d+)$")
_LETTER_RUN_RE = re.compile(r"[A-Za-z]+")
_NON_WORD_RE = re.compile(r"[^\w]")
_CLS_NAME_RE = re.compile(r"\bcls\w+", re.IGNORECASE)


def build_reserved_words(
    profiles: Iterable[str] = ("csharp",), extra: Iterable[str] = ()
) -> FrozenSet[str]:
    """Combine reserved-word profiles into one lowercase set.

    VB keywords are always included. Unknown profile names are warned about
    and skipped.
    """
    words: Set[str] = set(VB_KEYWORDS)
    for profile in profiles:
        found = RESERVED_WORD_PROFILES.get(profile.lower())
        if found is None:
            logger.warning(f"⚠️ Unknown reserved word profile '{profile}', ignoring")
            continue
        words.update(found)
    words.update(word.lower() for word in extra if word)
    return frozenset(words)


# ---------------------------------------------------------------------------
# Casing helpers
# ---------------------------------------------------------------------------


def _capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def to_pascal_case(name: str) -> str:
    """PascalCase: drop non-word characters, join "_" parts.

    An all-caps part is treated as an acronym run ("MAX" -> "Max"); a mixed
    case part only gets its first letter raised ("getXML" -> "GetXML").
    """
    valid = _NON_WORD_RE.sub("", name or "")
    result = []
    for part in valid.split("_"):
        if not part:
            continue
        letters = [ch for ch in part if ch.isalpha()]
        if letters and all(ch.isupper() for ch in letters):
            result.append(
                _LETTER_RUN_RE.sub(lambda m: m.group(0)[0] + m.group(0)[1:].lower(), part)
            )
        else:
            result.append(_capitalize_first(part))
    return "".join(result)


def to_camel_case(name: str) -> str:
    pascal = to_pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def to_screaming_snake_case(name: str) -> str:
    """SCREAMING_SNAKE_CASE keeping acronyms together.

    "ItemUAObjListener" -> "ITEM_UA_OBJ_LISTENER", "Alg_FirstStep" ->
    "ALG_FIRST_STEP". Names already in upper case are returned unchanged.
    """
    if not name:
        return name
    parts = []
    for part in name.split("_"):
        chars = []
        for i, ch in enumerate(part):
            if i > 0 and ch.isupper():
                previous = part[i - 1]
                next_is_lower = i + 1 < len(part) and part[i + 1].islower()
                if previous.islower() or (previous.isupper() and next_is_lower):
                    chars.append("_")
            chars.append(ch.upper())
        parts.append("".join(chars))
    return "_".join(parts)


def pascal_from_screaming_snake(name: str) -> str:
    """Convert "COLOR_RED" to "ColorRed"; mixed-case names go through to_pascal_case."""
    if not name:
        return name
    if "_" not in name and any(ch.islower() for ch in name):
        return to_pascal_case(name)
    return "".join(part[0].upper() + part[1:].lower() for part in name.split("_") if part)


def is_pascal_case(name: str) -> bool:
    return bool(name) and name[0].isupper() and name.isalnum()


def strip_hungarian_prefix(name: str, type_name: str = "") -> str:
    """Remove a Hungarian type prefix from a variable name.

    "strName" -> "Name", "mCount" -> "Count". "m_"/"s_" names, msg/plc
    prefixes and other names starting with "m" are kept. "cur" is only a
    prefix for Currency variables.
    """
    if not name:
        return name
    if name[:3].lower() in PRESERVED_PREFIXES:
        return name
    if len(name) > 1 and name[0] in "mM" and name[1].isupper():
        return name[1:]
    if name[:1].lower() == "m":
        return name
    match = _HUNGARIAN_RE.match(name)
    if match:
        prefix = match.group(1)
        if prefix == "cur":
            if normalize_type_name(type_name).lower() == "currency":
                return match.group(2)
            return name
        if prefix in HUNGARIAN_PREFIXES:
            return match.group(2)
    return name


def _module_private_name(base: str) -> str:
    match = _MODULE_HUNGARIAN_RE.match(base)
    if match:
        return "m_" + match.group(2)
    return "m_" + to_pascal_case(base)


def _static_name(base: str) -> str:
    if base.lower().startswith("s_"):
        return base
    if len(base) > 1 and base[0] in "sS" and base[1].isupper():
        base = base[1:]
    return "s_" + to_pascal_case(base)


def type_definition_name(name: str) -> str:
    """User-defined Type name: PascalCase plus "_T"."""
    base = name
    if base.lower().endswith("_t"):
        base = base[:-2]
    elif len(base) > 1 and base.endswith("T") and (base[-2].islower() or base[-2].isdigit()):
        base = base[:-1]
    return _pascal_parts(base) + "_T"


def _pascal_parts(name: str) -> str:
    result = []
    for part in name.split("_"):
        if not part:
            continue
        if part.isalpha() and part.isupper():
            result.append(part[0] + part[1:].lower())
        else:
            result.append(_capitalize_first(part))
    return "".join(result)


def control_type_name(control_type: str) -> str:
    """Strip the library qualifier of a designer type ("VB.TextBox" -> "TextBox")."""
    value = control_type or ""
    if value.lower().startswith("threed.ss"):
        return value[9:]
    return value.rsplit(".", 1)[-1]


def control_prefix(control_type: str) -> str:
    """Three-letter prefix for a control type.

    Known types use the standard table; custom types use the first letter
    plus following consonants.
    """
    clean = control_type_name(control_type)
    if not clean:
        return "ctl"
    known = CONTROL_PREFIXES.get(clean.lower())
    if known:
        return known

    result = clean[0].lower()
    for ch in clean[1:]:
        if len(result) >= 3:
            break
        if ch.isalpha() and ch.lower() not in "aeiou":
            result += ch.lower()
    if len(result) < 3:
        for ch in clean[1:]:
            if len(result) >= 3:
                break
            if ch.isalpha() and ch.lower() not in result:
                result += ch.lower()
    if len(result) < 3 and len(clean) >= 3:
        return clean[:3].lower()
    return result


def control_name(name: str, control_type: str) -> str:
    """Control name with the expected type prefix, keeping the base casing."""
    if not name:
        return name
    prefix = control_prefix(control_type)

    if control_type_name(control_type).lower() == "textbox":
        lowered = name.lower()
        if (
            len(name) > 2
            and lowered[:2] in ("tb", "tx")
            and not lowered.startswith("txt")
            and name[2].isupper()
        ):
            return "txt" + name[2:]

    if len(name) > len(prefix) and name.lower().startswith(prefix) and name[len(prefix)].isupper():
        return prefix + name[len(prefix) :]
    if len(name) > 3 and name[:3].islower() and name[:3].isalpha() and name[3].isupper():
        return prefix + name[3:]
    return prefix + _capitalize_first(name)


# ---------------------------------------------------------------------------
# Oracle
# ---------------------------------------------------------------------------


class NamingOracle:
    """Maps (symbol kind, raw name, attributes) to a conventional name.

    Attributes understood (all optional):
        module_kind: ModuleKind of the owning module
        visibility: Declared visibility ("" for locals)
        is_static: Static storage
        type: Declared type text
        is_class_type: The declared type names a class
        control_type: Designer type of a control
    """

    def normalize(
        self, kind: str, raw_name: str, attributes: Optional[Dict[str, Any]] = None
    ) -> str:
        attrs = attributes or {}
        if not raw_name:
            return raw_name
        if kind == SymbolKind.MODULE:
            return self._module(raw_name, attrs.get("module_kind", ModuleKind.STANDARD))
        if kind == SymbolKind.VARIABLE:
            return self._variable(raw_name, attrs)
        if kind in (SymbolKind.CONSTANT, SymbolKind.LOCAL_CONSTANT):
            return to_screaming_snake_case(raw_name)
        if kind in (SymbolKind.ENUM, SymbolKind.ENUM_VALUE):
            return pascal_from_screaming_snake(raw_name)
        if kind == SymbolKind.TYPE:
            return type_definition_name(raw_name)
        if kind == SymbolKind.FIELD:
            return self._field(raw_name)
        if kind == SymbolKind.CONTROL:
            return control_name(raw_name, attrs.get("control_type", ""))
        if kind in (SymbolKind.PARAMETER, SymbolKind.PROPERTY_PARAMETER):
            return to_camel_case(raw_name)
        if kind == SymbolKind.EVENT_PARAMETER:
            return to_camel_case(raw_name)
        if kind == SymbolKind.LOCAL_VARIABLE:
            base = strip_hungarian_prefix(raw_name, attrs.get("type", ""))
            if attrs.get("is_static"):
                return _static_name(base)
            return to_camel_case(base)
        if kind in (SymbolKind.PROCEDURE, SymbolKind.PROPERTY):
            if raw_name.lower().startswith(FIXED_HANDLER_PREFIXES):
                return raw_name
            return to_pascal_case(raw_name)
        # Events and anything else
        return to_pascal_case(raw_name)

    @staticmethod
    def _module(raw_name: str, module_kind: str) -> str:
        if module_kind == ModuleKind.FORM:
            base = raw_name[3:] if raw_name.lower().startswith("frm") else raw_name
            return "Frm" + to_pascal_case(base)
        if module_kind == ModuleKind.CLASS:
            base = raw_name[3:] if raw_name.lower().startswith("cls") else raw_name
            return "Cls" + to_pascal_case(base)
        return to_pascal_case(raw_name)

    @staticmethod
    def _field(raw_name: str) -> str:
        name = to_pascal_case(raw_name)
        if name.lower() == "type" or name.lower() in CSHARP_KEYWORDS:
            return name + "Value"
        return name

    @staticmethod
    def _variable(raw_name: str, attrs: Dict[str, Any]) -> str:
        base = strip_hungarian_prefix(raw_name, attrs.get("type", ""))
        array_suffix = ""
        match = _ARRAY_SUFFIX_RE.match(base)
        if match:
            base, array_suffix = match.group(1), match.group(2)

        visibility = (attrs.get("visibility") or "").lower()
        module_kind = attrs.get("module_kind", ModuleKind.STANDARD)

        if attrs.get("is_static"):
            return _static_name(base) + array_suffix
        if visibility in ("", "private", "dim"):
            if base.lower().startswith("m_"):
                return base + array_suffix
            return _module_private_name(base) + array_suffix

        if raw_name.lower().startswith("gobj") and len(raw_name) > 4:
            tail = raw_name[4:]
            match = _ARRAY_SUFFIX_RE.match(tail)
            if match:
                tail, array_suffix = match.group(1), match.group(2)
            return "g_" + to_pascal_case(tail) + array_suffix

        if attrs.get("is_class_type"):
            if module_kind == ModuleKind.STANDARD:
                if base.lower().startswith("g_"):
                    tail = base[2:]
                    if is_pascal_case(tail):
                        return base + array_suffix
                    return "g_" + to_pascal_case(tail) + array_suffix
                return "g_" + to_pascal_case(base) + array_suffix
            if module_kind == ModuleKind.FORM:
                tail = base[3:] if base.lower().startswith("obj") and len(base) > 3 else base
                return "obj" + to_pascal_case(tail) + array_suffix
        return to_pascal_case(base) + array_suffix


# ---------------------------------------------------------------------------
# Scope-ordered assignment
# ---------------------------------------------------------------------------


@dataclass
class NamingStats:
    """Counts reported after naming a project."""

    symbols: int = 0
    renamed: int = 0
    conflicts: int = 0
    reserved_fallbacks: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class NameScope:
    """Case-insensitive set of names taken within one scope.

    Outer names (module-level names visible inside a procedure) are
    checked too, unless the candidate is the symbol's own raw name.
    """

    def __init__(self, outer: Optional[Set[str]] = None):
        self._taken: Set[str] = set()
        self._outer = outer or set()

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._taken

    def is_taken(self, candidate: str, raw_name: str) -> bool:
        key = candidate.lower()
        if key in self._taken:
            return True
        return key in self._outer and key != raw_name.lower()

    def add(self, name: str) -> None:
        self._taken.add(name.lower())


def resolve_name_conflict(candidate: str, scope: NameScope, raw_name: str = "") -> str:
    """Append 2, 3, ... until the candidate is free in scope."""
    if not candidate:
        return candidate
    final = candidate
    counter = 2
    while scope.is_taken(final, raw_name):
        final = f"{candidate}{counter}"
        counter += 1
    return final


class NameAssigner:
    """Assigns conventional_name to every symbol of a project.

    Design Notes:
    - The oracle is called once per symbol; everything contextual (handler
      shapes, shared property names, class-typed variables) is decided here
    - Module-level names are assigned for every module before any
      procedure-local scope, so locals can avoid capturing outer names
    """

    def __init__(
        self,
        oracle: Optional[NamingOracle] = None,
        reserved_words: Optional[FrozenSet[str]] = None,
    ):
        self.oracle = oracle or NamingOracle()
        self.reserved_words = (
            reserved_words if reserved_words is not None else build_reserved_words()
        )
        self.stats = NamingStats()
        self._class_names: Set[str] = set()
        self._module_names: Dict[str, str] = {}

    def is_reserved(self, name: str) -> bool:
        return bool(name) and name.lower() in self.reserved_words

    def assign(self, project: VbProject) -> NamingStats:
        """Name every symbol of the project in scope order."""
        self.stats = NamingStats()
        self._class_names = set()
        for module in project.modules:
            if module.is_class:
                self._class_names.add(module.name.lower())
                if module.name.lower().startswith("cls"):
                    self._class_names.add(module.name[3:].lower())

        # Stage 1: Module names
        self._module_names = {}
        module_scope = NameScope()
        for module in project.modules:
            self._assign(
                module,
                SymbolKind.MODULE,
                module_scope,
                {"module_kind": module.kind},
                candidate=module.name if module.is_shared_external else None,
            )
            self._module_names[module.name.lower()] = module.conventional_name

        # Stage 2: Module-level members; shared files are never rewritten
        for module in project.modules:
            if module.is_shared_external:
                self._keep_raw_names(module)
            else:
                self._assign_module_members(module)

        # Stage 3: Procedure-local scopes
        public_names = self._public_standard_names(project)
        for module in project.modules:
            if module.is_shared_external:
                continue
            outer = {symbol.conventional_name.lower() for symbol in module.iter_members()}
            outer.update(public_names)
            for proc in module.all_procedures():
                self._assign_locals(module, proc, outer)

        logger.info(
            f"Named {self.stats.symbols} symbols: {self.stats.renamed} to rename, "
            f"{self.stats.conflicts} conflicts, {self.stats.reserved_fallbacks} reserved fallbacks"
        )
        return self.stats

    def _assign(
        self,
        symbol: VbSymbol,
        kind: str,
        scope: NameScope,
        attributes: Optional[Dict[str, Any]] = None,
        candidate: Optional[str] = None,
    ) -> str:
        if candidate is None:
            candidate = self.oracle.normalize(kind, symbol.name, attributes)
        final = resolve_name_conflict(candidate, scope, symbol.name)
        if final != candidate:
            self.stats.conflicts += 1
            logger.debug(f"Name conflict for {kind} '{symbol.name}': {candidate} -> {final}")
        if self.is_reserved(final):
            self.stats.reserved_fallbacks += 1
            logger.debug(f"'{final}' is reserved, keeping {kind} '{symbol.name}'")
            final = symbol.name
        scope.add(final)
        self._set(symbol, final)
        return final

    def _set(self, symbol: VbSymbol, name: str) -> None:
        symbol.conventional_name = name
        self.stats.symbols += 1
        if symbol.needs_rename:
            self.stats.renamed += 1

    def _keep_raw_names(self, module: VbModule) -> None:
        for symbol in module.iter_all_symbols():
            self._set(symbol, symbol.name)

    def _is_class_type(self, type_name: str) -> bool:
        value = normalize_type_name(type_name)
        if not value:
            return False
        if "." in value:
            return True
        if base_type_name(value).lower() in self._class_names:
            return True
        return bool(_CLS_NAME_RE.search(value))

    def _assign_module_members(self, module: VbModule) -> None:
        scope = NameScope()

        for variable in module.variables:
            self._assign(
                variable,
                SymbolKind.VARIABLE,
                scope,
                {
                    "module_kind": module.kind,
                    "visibility": variable.visibility,
                    "is_static": variable.is_static,
                    "type": variable.type,
                    "is_class_type": self._is_class_type(variable.type),
                },
            )

        for constant in module.constants:
            self._assign(constant, SymbolKind.CONSTANT, scope)

        for enum in module.enums:
            self._assign(enum, SymbolKind.ENUM, scope)
            value_scope = NameScope()
            for value in enum.values:
                self._assign(value, SymbolKind.ENUM_VALUE, value_scope)

        for type_def in module.types:
            self._assign(type_def, SymbolKind.TYPE, scope)
            field_scope = NameScope()
            for type_field in type_def.fields:
                # Fields never fall back: a reserved field name gets a suffix instead
                candidate = self.oracle.normalize(SymbolKind.FIELD, type_field.name)
                final = resolve_name_conflict(candidate, field_scope, type_field.name)
                field_scope.add(final)
                self._set(type_field, final)

        for event in module.events:
            self._assign(event, SymbolKind.EVENT, scope)
            param_scope = NameScope()
            for param in event.parameters:
                self._assign(param, SymbolKind.EVENT_PARAMETER, param_scope)

        for control in module.controls:
            self._assign(
                control, SymbolKind.CONTROL, scope, {"control_type": control.control_type}
            )

        for proc in module.procedures:
            self._assign(
                proc,
                SymbolKind.PROCEDURE,
                scope,
                {"module_kind": module.kind},
                candidate=self._handler_name(module, proc),
            )

        shared: Dict[str, str] = {}
        for prop in module.properties:
            key = prop.name.lower()
            if key in shared:
                self._set(prop, shared[key])
                continue
            shared[key] = self._assign(
                prop,
                SymbolKind.PROPERTY,
                scope,
                {"module_kind": module.kind},
                candidate=self._handler_name(module, prop),
            )

    def _handler_name(self, module: VbModule, proc: VbProcedure) -> Optional[str]:
        """Conventional name of an event or interface handler, None otherwise.

        "<Control>_<Event>", "<WithEventsVar>_<Event>" and
        "<Interface>_<Member>" keep their shape with the renamed prefix.
        """
        name = proc.name
        if "_" not in name or proc.is_external:
            return None
        lowered = name.lower()
        if lowered.startswith(FIXED_HANDLER_PREFIXES):
            return name

        for control in module.controls:
            prefix = control.name.lower() + "_"
            if lowered.startswith(prefix) and len(name) > len(prefix):
                return f"{control.conventional_name}_{to_pascal_case(name[len(prefix):])}"
        for variable in module.variables:
            if not variable.with_events:
                continue
            prefix = variable.name.lower() + "_"
            if lowered.startswith(prefix) and len(name) > len(prefix):
                return f"{variable.conventional_name}_{to_pascal_case(name[len(prefix):])}"
        for interface in module.implements:
            prefix = base_type_name(interface).lower() + "_"
            if lowered.startswith(prefix) and len(name) > len(prefix):
                member = to_pascal_case(name[len(prefix) :])
                return f"{self._interface_prefix(interface)}_{member}"
        return None

    def _interface_prefix(self, interface: str) -> str:
        # Foreign interfaces keep their name
        name = base_type_name(interface)
        return self._module_names.get(name.lower(), name)

    def _public_standard_names(self, project: VbProject) -> Set[str]:
        names: Set[str] = set()
        for module in project.modules:
            if not module.is_standard:
                continue
            for member in module.iter_members():
                visibility = getattr(member, "visibility", "").lower()
                if visibility in ("public", "global", "friend") or (
                    isinstance(member, VbProcedure) and not visibility
                ):
                    names.add(member.conventional_name.lower())
        return names

    def _assign_locals(self, module: VbModule, proc: VbProcedure, outer: Set[str]) -> None:
        scope = NameScope(outer)
        param_kind = SymbolKind.PROPERTY_PARAMETER if proc.is_property else SymbolKind.PARAMETER
        for param in proc.parameters:
            self._assign(param, param_kind, scope)
        for variable in proc.local_variables:
            self._assign(
                variable,
                SymbolKind.LOCAL_VARIABLE,
                scope,
                {"is_static": variable.is_static, "type": variable.type},
            )
        for constant in proc.local_constants:
            self._assign(constant, SymbolKind.LOCAL_CONSTANT, scope)


def assign_names(
    project: VbProject,
    reserved_words: Optional[FrozenSet[str]] = None,
) -> NamingStats:
    """Convenience wrapper: run a NameAssigner with the default oracle."""
    return NameAssigner(reserved_words=reserved_words).assign(project)


def symbols_to_rename(project: VbProject) -> List[VbSymbol]:
    """Every symbol whose conventional name differs from its raw name."""
    return [
        symbol
        for module in project.modules
        for symbol in [module, *module.iter_all_symbols()]
        if symbol.needs_rename
    ]
