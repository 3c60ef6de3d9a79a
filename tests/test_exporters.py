# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for the analysis exports."""

import csv
import json
from pathlib import Path

import pytest

from vb6_xref.exporters import (
    LINE_REPLACE_CSV_HEADER,
    RENAME_CSV_HEADER,
    ExportError,
    ProjectExporter,
    export_project,
    mermaid_dependency_graph,
    rename_document,
    rename_rows,
    symbols_document,
)
from vb6_xref.models import DependencyEdge, VbProject, sort_project
from vb6_xref.naming import NameAssigner
from vb6_xref.rewrite import build_rewrite_plan

UTIL_BAS = """Attribute VB_Name = "modUtil"
Private mstrTitle As String
Public Const MaxItems = 10

Public Sub do_work(ByVal ItemCount As Long)
    mstrTitle = "x"
    Debug.Print MaxItems, ItemCount
End Sub
"""

MAIN_BAS = """Attribute VB_Name = "modMain"
Public Sub Main()
    do_work 1
    Unknown
End Sub
"""


@pytest.fixture
def analyzed(resolved_project):
    project = resolved_project({"modUtil.bas": UTIL_BAS, "modMain.bas": MAIN_BAS})
    NameAssigner().assign(project)
    sort_project(project)
    return project, build_rewrite_plan(project)


class TestDocuments:
    """In-memory export documents."""

    def test_symbols_document_drops_uninformative_calls(self, analyzed):
        project, _ = analyzed
        document = symbols_document(project)

        main_module = document["modules"][0]
        assert main_module["name"] == "modMain"
        calls = main_module["procedures"][0]["calls"]
        assert [c["method_name"] for c in calls] == ["do_work"]
        assert calls[0]["resolved_module"] == "modUtil"

    def test_rename_document(self, analyzed):
        project, _ = analyzed
        document = rename_document(project)
        util = [m for m in document["modules"] if m["module"]["name"] == "modUtil"][0]

        assert util["renamed"]
        assert util["variables"] == [{"name": "mstrTitle", "conventional_name": "m_Title"}]
        (proc,) = util["procedures"]
        assert proc["procedure"]["conventional_name"] == "DoWork"
        assert proc["procedure"]["kind"] == "Sub"
        assert proc["parameters"] == [{"name": "ItemCount", "conventional_name": "itemCount"}]

    def test_rename_rows(self, analyzed):
        project, _ = analyzed
        rows = list(rename_rows(project))

        assert rows[0] == ["modMain", "ModMain", "Module", "Public", "modMain"]
        assert ["mstrTitle", "m_Title", "Variable", "Private", "modUtil"] in rows
        assert ["MaxItems", "MAX_ITEMS", "Constant", "Public", "modUtil"] in rows
        assert ["do_work", "DoWork", "Sub", "Public", "modUtil"] in rows
        assert ["ItemCount", "itemCount", "Parameter", "Local", "modUtil"] in rows
        assert not any(row[0] == "Main" for row in rows)

    def test_mermaid_graph(self, analyzed):
        project, _ = analyzed

        assert mermaid_dependency_graph(project) == (
            "graph TD\n"
            "    modMain --> modUtil\n"
            "    %% modMain.Main -> modUtil.do_work\n"
        )


def test_mermaid_graph_dedupes_and_sanitizes_ids():
    project = VbProject(path="App.vbp")
    project.dependencies = [
        DependencyEdge("frm Main", "Load", "modB", "Run"),
        DependencyEdge("frm Main", "Load", "modB", "Run"),
        DependencyEdge("frm Main", "Click", "modB", "Stop"),
        DependencyEdge("", "x", "modB", "Run"),
    ]

    assert mermaid_dependency_graph(project).splitlines() == [
        "graph TD",
        "    frm_Main --> modB",
        "    %% frm_Main.Click -> modB.Stop",
        "    %% frm_Main.Load -> modB.Run",
    ]


class TestProjectExporter:
    """Files written by the exporter."""

    def test_export_all_with_plan(self, analyzed, tmp_path: Path):
        project, plan = analyzed
        out = tmp_path / "out"

        result = ProjectExporter(project, out).export_all(plan)

        assert set(result.files) == {
            "symbols.json",
            "rename.json",
            "rename.csv",
            "dependencies.md",
            "linereplace.json",
            "linereplace.csv",
        }
        assert result.files["symbols.json"] == str(out / "App.symbols.json")

        with open(out / "App.linereplace.json", encoding="utf-8") as f:
            assert json.load(f)["total"] == plan.total

        with open(out / "App.linereplace.csv", newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0] == LINE_REPLACE_CSV_HEADER
        assert len(rows) == plan.total + 1

        with open(out / "App.rename.csv", newline="", encoding="utf-8") as f:
            assert next(csv.reader(f)) == RENAME_CSV_HEADER

        markdown = (out / "App.dependencies.md").read_text(encoding="utf-8")
        assert markdown.startswith("# App dependencies\n\n```mermaid\ngraph TD\n")
        assert markdown.endswith("```\n")

    def test_defaults_to_manifest_folder_without_edit_dump(self, analyzed):
        project, _ = analyzed

        result = export_project(project)

        assert "linereplace.json" not in result.files
        assert Path(result.files["rename.json"]).parent == Path(project.path).parent

    def test_unwritable_output_dir(self, analyzed, tmp_path: Path):
        project, plan = analyzed
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(ExportError):
            ProjectExporter(project, blocker).export_all(plan)
