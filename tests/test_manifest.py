# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for project manifest reading and module loading."""

import logging
from pathlib import Path

import pytest

from vb6_xref.manifest import (
    ManifestError,
    is_shared_external_path,
    load_project,
    parse_manifest_text,
    project_name_from_text,
    read_manifest,
)
from vb6_xref.models import ModuleKind
from vb6_xref.progress import ProgressReporter

MANIFEST = """Type=Exe
Reference=*\\G{00020430-0000-0000-C000-000000000046}#2.0#0#..\\..\\stdole2.tlb#OLE
Form=frmMain.frm
Module=modUtil; modUtil.bas
Class=clsWidget; Classes\\clsWidget.cls
Module=Shared; ..\\..\\Common\\Shared.bas
Object={831FDD16-0C5C-11D2-A9FC-0000F8754DA1}#2.0#0; MSCOMCTL.OCX
Name="Inventory"
"""


class RecordingReporter(ProgressReporter):
    def __init__(self):
        self.events = []

    def start(self, phase, total):
        self.events.append(("start", phase, total))

    def advance(self, phase, index, total, item):
        self.events.append(("advance", index, item))

    def finish(self, phase):
        self.events.append(("finish", phase))


class TestParseManifestText:
    """Tests for manifest entry extraction."""

    def test_entries_in_manifest_order(self, tmp_path: Path):
        entries = parse_manifest_text(MANIFEST, tmp_path)

        assert [(e.kind, e.path) for e in entries] == [
            (ModuleKind.FORM, "frmMain.frm"),
            (ModuleKind.STANDARD, "modUtil.bas"),
            (ModuleKind.CLASS, "Classes\\clsWidget.cls"),
            (ModuleKind.STANDARD, "..\\..\\Common\\Shared.bas"),
        ]

    def test_shared_external_flag(self, tmp_path: Path):
        entries = parse_manifest_text(MANIFEST, tmp_path)
        assert [e.is_shared_external for e in entries] == [False, False, False, True]

    def test_bare_name_resolved_when_file_exists(self, tmp_path: Path):
        (tmp_path / "Helpers.bas").write_text("")

        entries = parse_manifest_text("Module=Helpers\r\nModule=Missing\r\n", tmp_path)

        assert [e.path for e in entries] == ["Helpers.bas"]

    def test_prefixes_are_case_insensitive(self, tmp_path: Path):
        entries = parse_manifest_text("CLASS=Foo; Foo.cls", tmp_path)
        assert entries[0].kind == ModuleKind.CLASS


@pytest.mark.parametrize(
    "path,expected",
    [
        ("..\\..\\Common\\Shared.bas", True),
        ("../../Common/Shared.bas", True),
        ("..\\Sibling\\Mod.bas", False),
        ("Mod.bas", False),
    ],
)
def test_is_shared_external_path(path, expected):
    assert is_shared_external_path(path) is expected


def test_project_name():
    assert project_name_from_text(MANIFEST, "Default") == "Inventory"
    assert project_name_from_text("Type=Exe", "Default") == "Default"


def test_read_manifest_missing_raises(tmp_path: Path):
    with pytest.raises(ManifestError, match="not found"):
        read_manifest(str(tmp_path / "Missing.vbp"))


class TestLoadProject:
    """Tests for Phase A loading."""

    def _write_project(self, tmp_path: Path) -> Path:
        project_dir = tmp_path / "App"
        project_dir.mkdir()
        (project_dir / "modUtil.bas").write_bytes(
            b'Attribute VB_Name = "modUtil"\r\nPublic Sub Go()\r\nEnd Sub\r\n'
        )
        (project_dir / "Class1.cls").write_bytes(
            b'Attribute VB_Name = "Class1"\r\nPublic Function Value() As Long\r\n'
            b"End Function\r\n"
        )
        manifest = project_dir / "App.vbp"
        manifest.write_bytes(
            b"Type=Exe\r\nModule=modUtil; modUtil.bas\r\nClass=Class1; Class1.cls\r\n"
            b"Module=Gone; Gone.bas\r\nName=\"App\"\r\n"
        )
        return manifest

    def test_loads_listed_modules(self, tmp_path: Path):
        manifest = self._write_project(tmp_path)

        project = load_project(str(manifest))

        assert project.name == "App"
        assert [(m.name, m.kind) for m in project.modules] == [
            ("modUtil", ModuleKind.STANDARD),
            ("Class1", ModuleKind.CLASS),
        ]
        assert project.modules[0].find_procedure("Go") is not None

    def test_missing_member_skipped_with_warning(self, tmp_path: Path, caplog):
        manifest = self._write_project(tmp_path)

        with caplog.at_level(logging.WARNING):
            project = load_project(str(manifest))

        assert "Gone" not in [m.name for m in project.modules]
        assert "Gone.bas" in caplog.text

    def test_progress_reported(self, tmp_path: Path):
        manifest = self._write_project(tmp_path)
        reporter = RecordingReporter()

        load_project(str(manifest), progress=reporter)

        assert reporter.events[0] == ("start", "Parsing modules", 3)
        assert ("advance", 2, "Class1.cls") in reporter.events
        assert reporter.events[-1] == ("finish", "Parsing modules")

    def test_shared_external_module_flagged(self, tmp_path: Path):
        common = tmp_path / "Common"
        common.mkdir()
        (common / "Shared.bas").write_bytes(b'Attribute VB_Name = "Shared"\r\n')
        project_dir = tmp_path / "Group" / "App"
        project_dir.mkdir(parents=True)
        manifest = project_dir / "App.vbp"
        manifest.write_bytes(b"Module=Shared; ..\\..\\Common\\Shared.bas\r\n")

        project = load_project(str(manifest))

        (module,) = project.modules
        assert module.is_shared_external
        assert project.name == "App"

    def test_missing_manifest_raises(self, tmp_path: Path):
        with pytest.raises(ManifestError):
            load_project(str(tmp_path / "Nope.vbp"))
