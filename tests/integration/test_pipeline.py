# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Integration tests for full pipeline actions.

NOTE: Marked as slow tests - integration tests write full project folders.
Run with: pytest -m slow

Covers:
- Analyze writes every export and leaves sources untouched
- Rename applies the plan, preserves line endings and backs up originals
- A second run over renamed sources plans no edits
- The composite action runs every step with a single backup tree
"""

from pathlib import Path
from typing import Dict

import pytest

from vb6_xref.config import Config
from vb6_xref.exporters import ExportError
from vb6_xref.manifest import ManifestError
from vb6_xref.pipeline import Action, Pipeline, run_pipeline

# Mark entire module as slow - integration tests write full project folders
pytestmark = pytest.mark.slow

SOURCE_SUFFIXES = (".bas", ".cls", ".frm")


def read_sources(project_dir: Path) -> Dict[str, bytes]:
    """Map member file name -> raw bytes."""
    return {
        path.name: path.read_bytes()
        for path in sorted(project_dir.iterdir())
        if path.suffix.lower() in SOURCE_SUFFIXES
    }


def source_lines(path: Path):
    return path.read_bytes().decode("cp1252").split("\r\n")


class TestAnalyze:
    """The analyze action only reads sources."""

    def test_exports_written_sources_untouched(self, sample_vb6_project, pipeline):
        project_dir = sample_vb6_project.parent
        before = read_sources(project_dir)

        report = pipeline.run(str(sample_vb6_project), Action.ANALYZE)

        assert read_sources(project_dir) == before
        assert report.modules == 3
        assert report.planned_edits > 0
        assert report.rename is None
        assert report.backup_dir == ""
        assert set(report.exports) == {
            "symbols.json",
            "rename.json",
            "rename.csv",
            "dependencies.md",
            "linereplace.json",
            "linereplace.csv",
        }
        for path in report.exports.values():
            assert Path(path).parent.resolve() == project_dir.resolve()

    def test_cross_module_dependencies(self, sample_vb6_project, pipeline):
        analysis = pipeline.analyze(str(sample_vb6_project), write_exports=False)

        edges = {
            (e.caller_module, e.callee_module, e.callee_procedure)
            for e in analysis.project.dependencies
        }
        assert ("clsWorker", "modGlobals", "add_item") in edges
        assert ("frmMain", "clsWorker", "do_work") in edges
        assert analysis.exports is None

    def test_missing_manifest(self, tmp_path: Path, pipeline):
        with pytest.raises(ManifestError):
            pipeline.run(str(tmp_path / "missing.vbp"))

    def test_unknown_action(self, sample_vb6_project, pipeline):
        with pytest.raises(ValueError):
            pipeline.run(str(sample_vb6_project), "compile")

    def test_export_dir_is_a_file(self, sample_vb6_project, tmp_path: Path):
        blocker = tmp_path / "exports"
        blocker.write_text("x")
        config_pipeline = Pipeline(Config.from_mapping({"export_dir": str(blocker)}))

        with pytest.raises(ExportError):
            config_pipeline.run(str(sample_vb6_project))


class TestRename:
    """The rename action rewrites sources in place."""

    def test_plan_applied_with_backup(self, sample_vb6_project, pipeline):
        project_dir = sample_vb6_project.parent
        before = read_sources(project_dir)

        report = pipeline.run(str(sample_vb6_project), Action.RENAME)

        assert report.rename["edits_applied"] == report.planned_edits
        assert report.rename["edits_skipped"] == 0
        assert report.rename["failed_files"] == []
        assert len(report.rename["files_written"]) == 3

        backup_dir = Path(report.backup_dir)
        expected = project_dir.parent / "App.backup20250601_093000"
        assert backup_dir.resolve() == expected.resolve()
        assert read_sources(backup_dir) == before

        after = read_sources(project_dir)
        for name, data in after.items():
            assert data != before[name]
            assert data.count(b"\n") == data.count(b"\r\n") == before[name].count(b"\r\n")

    def test_renamed_sources(self, sample_vb6_project, pipeline):
        project_dir = sample_vb6_project.parent

        pipeline.run(str(sample_vb6_project), Action.RENAME)

        globals_lines = source_lines(project_dir / "modGlobals.bas")
        assert globals_lines[0] == 'Attribute VB_Name = "ModGlobals"'
        assert "Public Const MAX_ITEMS = 10" in globals_lines
        assert "    Red = 1" in globals_lines
        assert "Public Function AddItem(ByVal amount As Long) As Long" in globals_lines

        worker_lines = source_lines(project_dir / "clsWorker.cls")
        assert "    AddItem MAX_ITEMS" in worker_lines
        assert "    Limit = ModGlobals.MAX_ITEMS * MAX_ITEMS" in worker_lines
        assert "    m_Name = \"w\"" in worker_lines

        form_text = (project_dir / "frmMain.frm").read_bytes().decode("cp1252")
        assert "    x = Color.Red" in form_text
        assert ".DoWork" in form_text
        assert "do_work" not in form_text

    def test_second_run_is_a_fixed_point(self, sample_vb6_project, pipeline):
        pipeline.run(str(sample_vb6_project), Action.RENAME)
        renamed = read_sources(sample_vb6_project.parent)

        report = Pipeline().run(str(sample_vb6_project), Action.RENAME)

        assert report.planned_edits == 0
        assert report.rename["files_written"] == []
        assert report.backup_dir == ""
        assert read_sources(sample_vb6_project.parent) == renamed


class TestComposite:
    """The "all" action: rename, annotate, reorder, then spacing."""

    def test_all_steps_one_backup(self, sample_vb6_project):
        project_dir = sample_vb6_project.parent
        before = read_sources(project_dir)

        report = run_pipeline(str(sample_vb6_project), Action.ALL)

        assert [step["processor"] for step in report.post_processing] == [
            "TypeAnnotator",
            "DeclarationReorderer",
            "SpacingHarmonizer",
        ]
        backups = sorted(project_dir.parent.glob("App.backup*"))
        assert [p.resolve() for p in backups] == [Path(report.backup_dir).resolve()]
        # Each backed-up file holds the content from before the first step
        for name, data in read_sources(backups[0]).items():
            assert data == before[name]

        worker_lines = source_lines(project_dir / "clsWorker.cls")
        assert "    Const MAX_ITEMS As Integer = 2" in worker_lines
        globals_lines = source_lines(project_dir / "modGlobals.bas")
        assert "Public Const MAX_ITEMS As Integer = 10" in globals_lines

    def test_rename_after_all_plans_nothing(self, sample_vb6_project, pipeline):
        pipeline.run(str(sample_vb6_project), Action.ALL)

        analysis = Pipeline().analyze(str(sample_vb6_project), write_exports=False)

        assert analysis.plan.total == 0
