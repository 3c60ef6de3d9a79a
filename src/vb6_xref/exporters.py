# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Analysis exports written next to the manifest (or into export_dir).

Files are named "<project>.<kind>":
- symbols.json: complete symbol dump
- rename.json: only the symbols whose conventional name differs
- rename.csv: flat rename table (Name,ConventionalName,Type,Visibility,Module)
- linereplace.json / linereplace.csv: every planned LineEdit for audit
- dependencies.md: Mermaid "graph TD" of module-to-module calls

Exports read the project; they never mutate it. Member ordering is the
one applied by models.sort_project before exporting.
"""

import csv
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from vb6_xref.models import (
    LineEdit,
    SymbolEntry,
    SymbolKind,
    VbModule,
    VbProject,
    iter_symbol_entries,
)
from vb6_xref.rewrite.plan_builder import RewritePlan

logger = logging.getLogger(__name__)

RENAME_CSV_HEADER = ["Name", "ConventionalName", "Type", "Visibility", "Module"]
LINE_REPLACE_CSV_HEADER = ["Module", "Line", "Start", "End", "OldText", "NewText", "Category"]

_MERMAID_ID_RE = re.compile(r"\W")

# Rename table "Type" column for kinds whose label differs from the kind
_RENAME_TYPE_LABELS = {
    SymbolKind.VARIABLE: "Variable",
}

# Kinds reported with the fixed visibility "Local"
_LOCAL_KINDS = (
    SymbolKind.PARAMETER,
    SymbolKind.PROPERTY_PARAMETER,
    SymbolKind.EVENT_PARAMETER,
    SymbolKind.LOCAL_VARIABLE,
    SymbolKind.LOCAL_CONSTANT,
)


class ExportError(Exception):
    """Raised when the export directory or an export file cannot be written."""

    pass


@dataclass
class ExportResult:
    """Paths of the files written by one export run, keyed by kind."""

    files: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"files": dict(self.files)}


def export_base_name(project: VbProject) -> str:
    """Manifest file name without extension."""
    return Path(project.path).stem or project.name or "project"


# ---------------------------------------------------------------------------
# symbols.json
# ---------------------------------------------------------------------------


def _is_informative_call(call: Dict[str, Any]) -> bool:
    return bool(call["object_name"] or (call["resolved_module"] and call["resolved_procedure"]))


def symbols_document(project: VbProject) -> Dict[str, Any]:
    """Full symbol dump.

    Unresolved bare calls (no receiver and no resolution) are dropped from
    call lists; they carry no information beyond the raw text.
    """
    document = project.to_dict()
    for module in document["modules"]:
        for key in ("procedures", "properties"):
            for proc in module[key]:
                proc["calls"] = [call for call in proc["calls"] if _is_informative_call(call)]
    return document


# ---------------------------------------------------------------------------
# rename.json / rename.csv
# ---------------------------------------------------------------------------


def _name_pair(symbol: Any) -> Dict[str, str]:
    return {"name": symbol.name, "conventional_name": symbol.conventional_name}


def _module_rename_entry(module: VbModule) -> Optional[Dict[str, Any]]:
    entry: Dict[str, Any] = {
        "module": _name_pair(module),
        "renamed": module.needs_rename,
        "variables": [_name_pair(v) for v in module.variables if v.needs_rename],
        "constants": [_name_pair(c) for c in module.constants if c.needs_rename],
        "enums": [],
        "types": [],
        "events": [],
        "controls": [_name_pair(c) for c in module.controls if c.needs_rename],
        "properties": [],
        "procedures": [],
    }
    for enum in module.enums:
        values = [_name_pair(v) for v in enum.values if v.needs_rename]
        if enum.needs_rename or values:
            entry["enums"].append(
                {"enum": _name_pair(enum), "renamed": enum.needs_rename, "values": values}
            )
    for type_def in module.types:
        fields = [_name_pair(f) for f in type_def.fields if f.needs_rename]
        if type_def.needs_rename or fields:
            entry["types"].append(
                {"type": _name_pair(type_def), "renamed": type_def.needs_rename, "fields": fields}
            )
    for event in module.events:
        params = [_name_pair(p) for p in event.parameters if p.needs_rename]
        if event.needs_rename or params:
            entry["events"].append(
                {"event": _name_pair(event), "renamed": event.needs_rename, "parameters": params}
            )
    for key, procs in (("properties", module.properties), ("procedures", module.procedures)):
        for proc in procs:
            params = [_name_pair(p) for p in proc.parameters if p.needs_rename]
            local_vars = [_name_pair(v) for v in proc.local_variables if v.needs_rename]
            local_consts = [_name_pair(c) for c in proc.local_constants if c.needs_rename]
            if proc.needs_rename or params or local_vars or local_consts:
                header = _name_pair(proc)
                header["kind"] = proc.kind
                entry[key].append(
                    {
                        "procedure": header,
                        "renamed": proc.needs_rename,
                        "parameters": params,
                        "local_variables": local_vars,
                        "local_constants": local_consts,
                    }
                )

    has_members = any(entry[key] for key in entry if isinstance(entry[key], list))
    if not module.needs_rename and not has_members:
        return None
    return entry


def rename_document(project: VbProject) -> Dict[str, Any]:
    """The "what would be renamed" subset of the symbol model."""
    modules = []
    for module in project.modules:
        entry = _module_rename_entry(module)
        if entry is not None:
            modules.append(entry)
    return {"project_file": project.path, "modules": modules}


def _rename_row(entry: SymbolEntry) -> List[str]:
    symbol = entry.symbol
    if entry.kind == SymbolKind.MODULE:
        type_label, visibility = "Module", "Public"
    elif entry.kind in (SymbolKind.PROCEDURE, SymbolKind.PROPERTY):
        type_label = getattr(symbol, "kind", entry.kind)
        visibility = getattr(symbol, "visibility", "") or "Public"
    elif entry.kind in _LOCAL_KINDS:
        type_label, visibility = entry.kind, "Local"
    else:
        type_label = _RENAME_TYPE_LABELS.get(entry.kind, entry.kind)
        visibility = getattr(symbol, "visibility", "") or "Public"
    if visibility.lower() == "dim":
        visibility = "Private"
    return [symbol.name, symbol.conventional_name, type_label, visibility, entry.module.name]


def rename_rows(project: VbProject) -> Iterator[List[str]]:
    """Rows of the flat rename table, one per symbol that changes name."""
    for module in project.modules:
        for entry in iter_symbol_entries(module):
            if entry.symbol.needs_rename:
                yield _rename_row(entry)


# ---------------------------------------------------------------------------
# dependencies.md
# ---------------------------------------------------------------------------


def _mermaid_id(name: str) -> str:
    return _MERMAID_ID_RE.sub("_", name)


def mermaid_dependency_graph(project: VbProject) -> str:
    """Mermaid "graph TD" with one deduplicated edge per module pair.

    Module pairs are sorted alphabetically; the procedure-level calls that
    produced each pair follow it as sorted comment lines.
    """
    pairs: Dict[Tuple[str, str], set] = {}
    for dep in project.dependencies:
        if not dep.caller_module or not dep.callee_module:
            continue
        pair = (_mermaid_id(dep.caller_module), _mermaid_id(dep.callee_module))
        pairs.setdefault(pair, set()).add((dep.caller_procedure, dep.callee_procedure))

    lines = ["graph TD"]
    for caller, callee in sorted(pairs, key=lambda p: (p[0].lower(), p[1].lower())):
        lines.append(f"    {caller} --> {callee}")
        for caller_proc, callee_proc in sorted(
            pairs[(caller, callee)], key=lambda p: (p[0].lower(), p[1].lower())
        ):
            lines.append(f"    %% {caller}.{caller_proc or '(module)'} -> {callee}.{callee_proc}")
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def _write_csv(path: Path, header: List[str], rows: Iterator[List[Any]]) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, quoting=csv.QUOTE_ALL)
        writer.writerow(header)
        for row in rows:
            writer.writerow(row)


def _line_replace_rows(edits: List[LineEdit]) -> Iterator[List[Any]]:
    for edit in edits:
        yield [
            edit.module,
            edit.line,
            edit.start,
            edit.end,
            edit.old_text,
            edit.new_text,
            edit.category,
        ]


class ProjectExporter:
    """Writes every export file for a resolved, named and sorted project."""

    def __init__(self, project: VbProject, output_dir: Optional[Path] = None):
        self.project = project
        self.output_dir = output_dir or Path(project.path).parent
        self.base_name = export_base_name(project)

    def path_for(self, kind: str) -> Path:
        return self.output_dir / f"{self.base_name}.{kind}"

    def export_all(self, plan: Optional[RewritePlan] = None) -> ExportResult:
        """Write all exports. The edit dump is skipped when plan is None.

        Raises:
            ExportError: If the output directory or a file cannot be written.
        """
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportError(f"Cannot create export directory {self.output_dir}: {e}") from e

        result = ExportResult()
        writers = [
            ("symbols.json", lambda p: _write_json(p, symbols_document(self.project))),
            ("rename.json", lambda p: _write_json(p, rename_document(self.project))),
            ("rename.csv", lambda p: _write_csv(p, RENAME_CSV_HEADER, rename_rows(self.project))),
            ("dependencies.md", self._write_dependencies),
        ]
        if plan is not None:
            edits = plan.all_edits()
            writers.append(("linereplace.json", lambda p: _write_json(p, plan.to_dict())))
            writers.append(
                (
                    "linereplace.csv",
                    lambda p: _write_csv(p, LINE_REPLACE_CSV_HEADER, _line_replace_rows(edits)),
                )
            )

        for kind, write in writers:
            path = self.path_for(kind)
            try:
                write(path)
            except OSError as e:
                raise ExportError(f"Failed to write {path}: {e}") from e
            result.files[kind] = str(path)
            logger.debug(f"Wrote {path}")

        logger.info(f"Exported {len(result.files)} files to {self.output_dir}")
        return result

    def _write_dependencies(self, path: Path) -> None:
        graph = mermaid_dependency_graph(self.project)
        with open(path, "w", encoding="utf-8") as f:
            f.write(f"# {self.project.name or self.base_name} dependencies\n\n")
            f.write("```mermaid\n")
            f.write(graph)
            f.write("```\n")


def export_project(
    project: VbProject,
    plan: Optional[RewritePlan] = None,
    output_dir: Optional[Path] = None,
) -> ExportResult:
    """Convenience wrapper: run a ProjectExporter over project."""
    return ProjectExporter(project, output_dir).export_all(plan)
