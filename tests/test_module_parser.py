# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for the staged module parser and its declaration recognizers."""

import logging

import pytest

from vb6_xref.models import ModuleKind, ProcedureKind, VbControl
from vb6_xref.module_parser import ModuleParser, find_vb_name, group_controls
from vb6_xref.recognizers import RecognizerRegistry, create_default_registry
from vb6_xref.recognizers.base import DeclarationRecognizer
from vb6_xref.source_io import SourceCache

STANDARD_MODULE = """Attribute VB_Name = "modUtil"
Option Explicit
Public Const MAX_ITEMS = 100
Private mCount As Long
Public gName$, gFlag
Public Enum Colors
    RED = 1
    GREEN
End Enum
Private Type PointT
    X As Long
    Y(1 To 3) As Double
End Type
Public Declare Function GetTickCount Lib "kernel32" () As Long

Public Function Add(ByVal a As Long, _
                    Optional b As Long = 1) As Long
    Dim total As Long
    Static calls
    total = a + b
    Add = total
    Helper total
End Function

Private Sub Helper(x)
    Debug.Print x
End Sub
""".splitlines()

FORM_MODULE = """VERSION 5.00
Begin VB.Form frmMain
   Caption         =   "Main"
   Begin VB.CommandButton Command1
      Caption         =   "OK"
   End
   Begin VB.OptionButton Option1
      Index           =   0
   End
   Begin VB.OptionButton Option1
      Index           =   1
   End
   Begin VB.Frame Frame1
      BeginProperty Font
         Name            =   "Arial"
      EndProperty
      Begin VB.TextBox Text1
      End
   End
End
Attribute VB_Name = "frmMain"
Option Explicit

Private Sub Command1_Click()
    Text1.Text = ""
End Sub
""".splitlines()


def parse(lines, kind=ModuleKind.STANDARD, path="C:/App/Module1.bas"):
    return ModuleParser().parse_lines(lines, path, kind)


class TestStandardModule:
    """Declarations of a standard module."""

    @pytest.fixture
    def module(self):
        return parse(STANDARD_MODULE)

    def test_module_name_from_attribute(self, module):
        assert module.name == "modUtil"
        assert module.line_number == 1

    def test_constants(self, module):
        (constant,) = module.constants
        assert constant.name == "MAX_ITEMS"
        assert constant.value == "100"
        assert constant.visibility == "Public"
        assert constant.line_number == 3

    def test_variables(self, module):
        names = [(v.name, v.type, v.visibility, v.suffix) for v in module.variables]
        assert names == [
            ("mCount", "Long", "Private", ""),
            ("gName", "", "Public", "$"),
            ("gFlag", "", "Public", ""),
        ]
        assert module.variables[0].type_line == 4

    def test_enum(self, module):
        (enum,) = module.enums
        assert enum.name == "Colors"
        assert [(v.name, v.value) for v in enum.values] == [("RED", "1"), ("GREEN", "")]
        assert enum.line_number == 6
        assert enum.end_line == 9

    def test_type(self, module):
        (type_def,) = module.types
        assert type_def.name == "PointT"
        assert type_def.visibility == "Private"
        assert [(f.name, f.type, f.is_array) for f in type_def.fields] == [
            ("X", "Long", False),
            ("Y", "Double", True),
        ]
        assert type_def.end_line == 13

    def test_declare(self, module):
        declare = module.find_procedure("GetTickCount")
        assert declare.kind == ProcedureKind.EXTERNAL_FUNCTION
        assert declare.lib == "kernel32"
        assert declare.return_type == "Long"
        assert declare.start_line == declare.end_line == 14

    def test_multi_line_signature(self, module):
        add = module.find_procedure("Add")
        assert add.kind == ProcedureKind.FUNCTION
        assert (add.start_line, add.end_line) == (16, 23)
        assert add.return_type == "Long"
        assert (add.return_type_line, add.return_type_occurrence) == (17, 2)

        a, b = add.parameters
        assert (a.name, a.passing, a.type, a.line_number) == ("a", "ByVal", "Long", 16)
        assert (b.name, b.optional, b.default_value, b.line_number) == ("b", True, "1", 17)

    def test_locals(self, module):
        add = module.find_procedure("Add")
        total, calls = add.local_variables
        assert (total.name, total.type, total.is_static) == ("total", "Long", False)
        assert (calls.name, calls.type, calls.is_static) == ("calls", "", True)

    def test_calls(self, module):
        add = module.find_procedure("Add")
        assert [(c.raw, c.line_number, c.occurrence) for c in add.calls] == [("Helper", 22, 1)]

        helper = module.find_procedure("Helper")
        # Debug.Print is intrinsic and has no parentheses
        assert helper.calls == []
        assert helper.parameters[0].name == "x"
        assert helper.visibility == "Private"


class TestFormModule:
    """Designer section of a form."""

    @pytest.fixture
    def module(self):
        return parse(FORM_MODULE, ModuleKind.FORM, "C:/App/frmMain.frm")

    def test_name_found_after_designer(self, module):
        assert module.name == "frmMain"

    def test_controls(self, module):
        controls = {c.name: c for c in module.controls}
        assert set(controls) == {"Command1", "Option1", "Frame1", "Text1"}
        assert controls["Command1"].control_type == "VB.CommandButton"
        assert controls["Command1"].line_number == 4
        assert controls["Text1"].line_number == 17

    def test_control_array_grouped(self, module):
        option = module.find_control("Option1")
        assert option.line_numbers == [7, 10]
        assert option.index == 0
        assert option.is_array

    def test_event_handler_marks_control_used(self, module):
        assert module.find_control("Command1").used
        assert not module.find_control("Text1").used

    def test_form_self_reference(self, module):
        (ref,) = module.references
        assert (ref.module, ref.procedure, ref.line_numbers) == ("frmMain", "", [2])

    def test_procedure_after_designer(self, module):
        handler = module.find_procedure("Command1_Click")
        assert (handler.start_line, handler.end_line) == (24, 26)


class TestProcedureSpans:
    """Terminators and error recovery."""

    def test_wrong_terminator_ignored(self, caplog):
        lines = [
            "Function F()",
            "    If x Then",
            "    End If",
            "End Sub",
            "End Function",
        ]
        with caplog.at_level(logging.WARNING):
            module = parse(lines)

        proc = module.find_procedure("F")
        assert (proc.start_line, proc.end_line) == (1, 5)
        assert any("does not terminate" in record.message for record in caplog.records)

    def test_missing_terminator_clamped_at_next_header(self):
        module = parse(["Sub A()", "    x = 1", "Sub B()", "End Sub"])

        assert module.find_procedure("A").end_line == 2
        assert (module.find_procedure("B").start_line, module.find_procedure("B").end_line) == (
            3,
            4,
        )

    def test_unterminated_procedure_clamped_to_end_of_file(self):
        module = parse(["Sub A()", "    x = 1", "    y = 2"])
        assert module.find_procedure("A").end_line == 3

    def test_unterminated_enum_clamped(self):
        module = parse(["Enum E", "    One"])
        assert module.enums[0].end_line == 2

    def test_properties_grouped_by_name(self):
        lines = [
            "Public Property Get Value() As Long",
            "    Value = m_Value",
            "End Property",
            "Public Property Let Value(ByVal v As Long)",
            "    m_Value = v",
            "End Property",
        ]
        module = parse(lines, ModuleKind.CLASS, "C:/App/clsThing.cls")

        kinds = [p.kind for p in module.find_properties("Value")]
        assert kinds == [ProcedureKind.PROPERTY_GET, ProcedureKind.PROPERTY_LET]
        assert module.procedures == []


class TestCallDiscovery:
    """Parse-time call shapes."""

    def _calls(self, body):
        lines = ["Sub Go()", *body, "End Sub"]
        return parse(lines).find_procedure("Go").calls

    def test_call_shapes(self):
        calls = self._calls(
            [
                "    Call DoWork",
                "    Refresh",
                "    Notify 1, 2",
                "    x = Calc(1) + Module2.Other(2)",
            ]
        )
        assert [(c.raw, c.object_name, c.line_number) for c in calls] == [
            ("DoWork", "", 2),
            ("Refresh", "", 3),
            ("Notify", "", 4),
            ("Calc", "", 5),
            ("Module2.Other", "Module2", 5),
        ]

    def test_with_block_receiver(self):
        calls = self._calls(["    With objFoo", "        x = .Compute(2)", "    End With"])
        assert [(c.raw, c.object_name) for c in calls] == [("objFoo.Compute", "objFoo")]

    def test_keywords_and_locals_excluded(self):
        calls = self._calls(
            [
                "    Dim values(3) As Long",
                "    x = values(1) + Len(s)",
                "    If Check(x) Then Exit Sub",
            ]
        )
        assert [c.raw for c in calls] == ["Check"]

    def test_strings_and_comments_ignored(self):
        calls = self._calls(['    s = "Fake(1)" \' Other(2)'])
        assert calls == []

    def test_duplicate_call_on_same_line_recorded_once(self):
        calls = self._calls(["    x = Calc(1) + Calc(2)"])
        assert [(c.raw, c.occurrence) for c in calls] == [("Calc", 1)]


def test_continued_parameter_positions():
    lines = [
        "Public Sub Save(ByVal id As Long, _",
        "                ByVal name As String, _",
        "                ByVal id2 As Long)",
        "End Sub",
    ]
    proc = parse(lines).find_procedure("Save")

    assert [(p.name, p.line_number, p.name_occurrence) for p in proc.parameters] == [
        ("id", 1, 1),
        ("name", 2, 1),
        ("id2", 3, 1),
    ]
    assert [(p.type_line, p.type_occurrence) for p in proc.parameters] == [(1, 1), (2, 1), (3, 1)]


class TestHeaderScan:
    def test_vb_name_within_scan_window(self):
        assert find_vb_name(['Attribute VB_Name = "Mod1"']) == "Mod1"

    def test_vb_name_outside_scan_window(self):
        lines = ["' filler"] * 5 + ['Attribute VB_Name = "Mod1"']
        assert find_vb_name(lines, scan_lines=3) is None

    def test_file_name_used_without_attribute(self):
        module = parse(["Sub A()", "End Sub"], path="C:/App/Helpers.bas")
        assert module.name == "Helpers"


def test_parse_file_reads_through_cache(tmp_path):
    path = tmp_path / "Module1.bas"
    path.write_bytes(b'Attribute VB_Name = "Module1"\r\nPublic Sub A()\r\nEnd Sub\r\n')
    cache = SourceCache()

    module = ModuleParser(source_cache=cache).parse_file(str(path), ModuleKind.STANDARD)

    assert module.find_procedure("A").end_line == 3
    assert cache.get_lines(str(path))[0].startswith("Attribute")


def test_unknown_module_kind_rejected():
    with pytest.raises(ValueError):
        parse([], kind="ctl")


def test_unreadable_file_yields_empty_module(tmp_path):
    module = ModuleParser().parse_file(str(tmp_path / "missing.bas"), ModuleKind.STANDARD)
    assert module.name == "missing"
    assert module.procedures == []


def test_group_controls_merges_used_flag():
    first = VbControl(name="cmd", line_number=3)
    second = VbControl(name="CMD", line_number=9, index=1, used=True)

    (grouped,) = group_controls([first, second])

    assert grouped.line_numbers == [3, 9]
    assert grouped.used
    assert grouped.index == 1


class TestRegistry:
    """Tests for recognizer registration and ordering."""

    def test_default_registry_order(self):
        names = [r.name() for r in create_default_registry().get_recognizers()]
        assert names[0] == "AttributeRecognizer"
        assert names[-1] == "ProcedureBodyRecognizer"

    def test_register_rejects_non_recognizer(self):
        with pytest.raises(TypeError):
            RecognizerRegistry().register(object())

    def test_failing_recognizer_does_not_stop_parse(self, caplog):
        class Exploding(DeclarationRecognizer):
            def recognize(self, ctx, state):
                raise RuntimeError("boom")

            def priority(self):
                return 1000

            def name(self):
                return "Exploding"

        registry = create_default_registry()
        registry.register(Exploding())

        with caplog.at_level(logging.ERROR):
            module = ModuleParser(registry=registry).parse_lines(
                ["Sub A()", "End Sub"], "C:/App/M.bas", ModuleKind.STANDARD
            )

        assert module.find_procedure("A") is not None
        assert "boom" in caplog.text
