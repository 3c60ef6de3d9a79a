# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures for integration tests.

Provides a representative VB6 project: a standard module with globals and
two enums sharing a value name, a class calling into it, and a form with a
control, an object variable and an unqualified enum reference.
"""

from datetime import datetime
from pathlib import Path
from typing import Dict

import pytest

from vb6_xref.config import Config
from vb6_xref.pipeline import Pipeline

GLOBALS_BAS = """Attribute VB_Name = "modGlobals"
Option Explicit
Public Const MaxItems = 10
Public Enum Color
    RED = 1
    GREEN = 2
End Enum
Public Enum Alert
    RED = 1
End Enum

Public Function add_item(ByVal Amount As Long) As Long
    add_item = Amount + 1
End Function
"""

WORKER_CLS = """Attribute VB_Name = "clsWorker"
Option Explicit
Private mstrName As String

Public Sub do_work()
    mstrName = "w"
    add_item MaxItems
End Sub

Public Function Limit() As Long
    Const MAX_ITEMS = 2
    Limit = MaxItems * MAX_ITEMS
End Function
"""

MAIN_FRM = """VERSION 5.00
Begin VB.Form frmMain
   Caption         =   "Main"
   Begin VB.CommandButton Command1
      Caption         =   "Go"
   End
End
Attribute VB_Name = "frmMain"
Option Explicit
Private objWorker As clsWorker

Private Sub Command1_Click()
    Set objWorker = New clsWorker
    objWorker.do_work
    x = RED
End Sub
"""

SAMPLE_FILES: Dict[str, str] = {
    "modGlobals.bas": GLOBALS_BAS,
    "clsWorker.cls": WORKER_CLS,
    "frmMain.frm": MAIN_FRM,
}

FIXED_NOW = datetime(2025, 6, 1, 9, 30, 0)


@pytest.fixture
def sample_vb6_project(write_project) -> Path:
    """Write the sample project and return its manifest path.

    The project folder is tmp_path/App and holds App.vbp plus three members.
    """
    return write_project(SAMPLE_FILES)


@pytest.fixture
def pipeline() -> Pipeline:
    """Pipeline with default settings and a fixed backup timestamp."""
    return Pipeline(Config.from_mapping({}), now=FIXED_NOW)

