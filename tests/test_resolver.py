# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for cross-file resolution."""

import pytest

from vb6_xref.manifest import load_project
from vb6_xref.models import iter_symbol_entries
from vb6_xref.resolver import ProjectIndex, ResolutionEngine, TargetKind, resolve_project
from vb6_xref.resolver.members import BodyResolver
from vb6_xref.resolver.tokens import UNKNOWN_QUALIFIER, WITH_RELATIVE, scan_line
from vb6_xref.source_io import SourceCache

MAIN_BAS = """Attribute VB_Name = "modMain"
Option Explicit
Public gCount As Long
Public Const APP_TITLE = "Demo"
Public Enum Colors
    Red = 1
    Green = 2
End Enum
Public Type PointT
    X As Long
    Y As Long
End Type

Public Sub Main()
    Dim objFoo As clsFoo
    Dim pt As PointT
    Set objFoo = New clsFoo
    objFoo.DoThing 1
    pt.X = Helper(2)
    gCount = gCount + 1
    Debug.Print APP_TITLE, Colors.Green, Red
End Sub

Public Function Helper(ByVal n As Long) As Long
    Dim gCount As Long
    gCount = n
    Helper = gCount
End Function
"""

FOO_CLS = """Attribute VB_Name = "clsFoo"
Option Explicit
Public Event Done()
Private mValue As Long

Public Sub DoThing(ByVal x As Long)
    mValue = x
    RaiseEvent Done
End Sub

Public Property Get Value() As Long
    Value = mValue
End Property

Public Property Let Value(ByVal v As Long)
    mValue = v
End Property

Private Sub Unused()
End Sub
"""

MAIN_FRM = """VERSION 5.00
Begin VB.Form frmMain
   Begin VB.CommandButton Command1
   End
End
Attribute VB_Name = "frmMain"
Private WithEvents mFoo As clsFoo

Private Sub Command1_Click()
    Set mFoo = New clsFoo
    mFoo.Value = 3
    Call Main
End Sub

Private Sub mFoo_Done()
End Sub
"""

FILES = {"modMain.bas": MAIN_BAS, "clsFoo.cls": FOO_CLS, "frmMain.frm": MAIN_FRM}


def _refs(symbol):
    return [(r.module, r.procedure, r.line_numbers) for r in symbol.references]


class TestResolution:
    """Resolution over a three-module project."""

    @pytest.fixture
    def project(self, resolved_project):
        return resolved_project(FILES)

    def test_object_variable_member_call(self, project):
        do_thing = project.get_module("clsFoo").find_procedure("DoThing")

        assert do_thing.used
        assert ("modMain", "Main", [18]) in _refs(do_thing)

    def test_parse_time_calls_resolved(self, project):
        main = project.get_module("modMain").find_procedure("Main")
        (call,) = main.calls

        assert call.raw == "Helper"
        assert (call.resolved_module, call.resolved_procedure) == ("modMain", "Helper")

        click = project.get_module("frmMain").find_procedure("Command1_Click")
        assert click.calls[0].resolved_module == "modMain"

    def test_udt_field_access(self, project):
        point = project.get_module("modMain").types[0]

        assert point.used
        assert point.find_field("X").used
        assert not point.find_field("Y").used

    def test_global_usage_on_every_occurrence(self, project):
        g_count = project.get_module("modMain").find_variable("gCount")

        assert g_count.used
        (ref,) = g_count.references
        assert (ref.module, ref.procedure) == ("modMain", "Main")
        assert ref.occurrences_for(20) == [1, 2]

    def test_local_shadows_global(self, project):
        helper = project.get_module("modMain").find_procedure("Helper")
        local = helper.find_local("gCount")

        assert local.used
        assert sorted({line for ref in local.references for line in ref.line_numbers}) == [26, 27]

    def test_enum_values(self, project):
        colors = project.get_module("modMain").enums[0]

        assert colors.used
        assert colors.find_value("Green").used
        assert _refs(colors.find_value("Red")) == [("modMain", "Main", [21])]

    def test_declaration_is_not_a_use(self, project):
        constant = project.get_module("modMain").find_constant("APP_TITLE")
        assert _refs(constant) == [("modMain", "Main", [21])]

    def test_type_usage(self, project):
        foo = project.get_module("clsFoo")
        lines = {
            line for ref in foo.references if ref.module == "modMain" for line in ref.line_numbers
        }

        assert {15, 17} <= lines

    def test_property_accessors_marked_together(self, project):
        properties = project.get_module("clsFoo").find_properties("Value")

        assert len(properties) == 2
        for prop in properties:
            assert ("frmMain", "Command1_Click", [11]) in _refs(prop)

    def test_events(self, project):
        foo = project.get_module("clsFoo")
        form = project.get_module("frmMain")

        assert foo.find_event("Done").used
        assert form.find_variable("mFoo").used

    def test_unused_procedure(self, project):
        assert not project.get_module("clsFoo").find_procedure("Unused").used

    def test_dependency_edges(self, project):
        edges = {
            (e.caller_module, e.caller_procedure, e.callee_module, e.callee_procedure)
            for e in project.dependencies
        }

        assert ("modMain", "Main", "clsFoo", "DoThing") in edges
        assert ("modMain", "Main", "modMain", "Helper") in edges
        assert ("frmMain", "Command1_Click", "modMain", "Main") in edges
        assert not any(e[0] == e[2] and e[1] == e[3] for e in edges)
        assert len(edges) == len(project.dependencies)

    def test_module_references(self, project):
        assert project.get_module("clsFoo").module_references == ["frmMain", "modMain"]
        assert project.get_module("modMain").module_references == ["frmMain"]
        assert project.get_module("modMain").used


def test_resolution_stats(write_project):
    cache = SourceCache()
    project = load_project(str(write_project(FILES)), source_cache=cache)

    stats = ResolutionEngine(project, cache).resolve()

    assert stats.modules == 3
    assert stats.calls_total == 2
    assert stats.calls_resolved == 2
    assert stats.dependencies == len(project.dependencies)
    assert set(stats.to_dict()) >= {"calls_total", "enum_references", "global_references"}


def _resolution_snapshot(project):
    symbols = [
        (
            module.name,
            entry.kind,
            entry.symbol.name,
            entry.symbol.used,
            [ref.to_dict() for ref in entry.symbol.references],
        )
        for module in project.modules
        for entry in iter_symbol_entries(module)
    ]
    modules = [(module.name, list(module.module_references)) for module in project.modules]
    edges = [edge.key() for edge in project.dependencies]
    return symbols, modules, edges


def test_repeated_resolution_gives_identical_references(write_project):
    cache = SourceCache()
    project = load_project(str(write_project(FILES)), source_cache=cache)

    resolve_project(project, source_cache=cache)
    first = _resolution_snapshot(project)
    resolve_project(project, source_cache=cache)
    second = _resolution_snapshot(project)

    assert second == first
    assert len(second[2]) == len(project.dependencies) > 0
    assert any(refs for _, _, _, _, refs in first[0])


def test_private_member_invisible_outside_module(resolved_project):
    project = resolved_project(
        {
            "modA.bas": 'Attribute VB_Name = "modA"\nPrivate Sub Secret()\nEnd Sub\n',
            "modB.bas": 'Attribute VB_Name = "modB"\nSub Run()\n    Secret\nEnd Sub\n',
        }
    )

    secret = project.get_module("modA").find_procedure("Secret")
    assert not secret.used
    assert project.get_module("modB").find_procedure("Run").calls[0].resolved_module == ""


def test_with_block_member_resolution(resolved_project):
    project = resolved_project(
        {
            "clsFoo.cls": FOO_CLS,
            "modMain.bas": (
                'Attribute VB_Name = "modMain"\n'
                "Sub Run()\n"
                "    Dim f As New clsFoo\n"
                "    With f\n"
                "        .DoThing 2\n"
                "    End With\n"
                "End Sub\n"
            ),
        }
    )

    do_thing = project.get_module("clsFoo").find_procedure("DoThing")
    assert ("modMain", "Run", [5]) in _refs(do_thing)


class TestProjectIndex:
    @pytest.fixture
    def index(self, write_project):
        return ProjectIndex(load_project(str(write_project(FILES))))

    def test_module_lookup_by_name_and_stem(self, index):
        assert index.module("CLSFOO").name == "clsFoo"
        assert index.class_module("MyLib.clsFoo").name == "clsFoo"
        assert index.class_module("modMain") is None

    def test_global_procedures_only_from_standard_modules(self, index):
        assert [m.name for m, _ in index.global_procedures("Main")] == ["modMain"]
        assert index.global_procedures("DoThing") == []

    def test_target_for_type(self, index):
        assert index.target_for_type("clsFoo").kind == TargetKind.MODULE
        assert index.target_for_type("PointT").kind == TargetKind.TYPE
        assert index.target_for_type("Variant") is None
        assert index.target_for_type("Long") is None

    def test_private_members_hidden_from_other_modules(self, index):
        foo = index.module("clsFoo")
        main = index.module("modMain")
        target = index.target_for_type("clsFoo")

        assert not index.lookup_member(target, "mValue", main).found
        assert index.lookup_member(target, "mValue", foo).found
        assert index.member_type(target, "Value", main) == "Long"


class TestTokens:
    """Tests for per-line identifier scanning."""

    def test_occurrences_and_members(self):
        line = scan_line(7, "x = obj.Items(1).Name + x")
        names = [(t.name, t.occurrence, t.member_of) for t in line.tokens]

        assert names == [
            ("x", 1, None),
            ("obj", 1, None),
            ("Items", 1, 1),
            ("Name", 1, 2),
            ("x", 2, None),
        ]

    def test_with_relative_and_named_argument(self):
        line = scan_line(1, "    .Show Modal:=True")

        assert line.tokens[0].member_of == WITH_RELATIVE
        assert line.tokens[1].named_argument

    def test_member_of_literal_has_unknown_qualifier(self):
        line = scan_line(1, 'n = "abc".Length')
        assert line.tokens[-1].member_of == UNKNOWN_QUALIFIER

    def test_strings_and_comments_masked(self):
        line = scan_line(1, 'MsgBox "gCount" \' gCount')
        assert [t.name for t in line.tokens] == ["MsgBox"]

    def test_rem_after_separator_masked(self):
        line = scan_line(1, "gCount = 1: Rem gCount")
        assert [t.name for t in line.tokens] == ["gCount"]


def test_member_lookup_without_qualifier_resolves_nothing():
    resolver = BodyResolver(index=None, record_edge=lambda *args: None, sites=set())
    line = scan_line(1, "gCount = 1")

    result = resolver._resolve_member(None, None, line, line.tokens[0], {}, [])

    assert result == (None, 0)
