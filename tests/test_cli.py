# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for the command-line interface."""

import io
from pathlib import Path
from unittest.mock import patch

import pytest

from vb6_xref.cli import InteractiveMenu, format_report, main, parse_args, run_action
from vb6_xref.config import Config
from vb6_xref.pipeline import Action, Pipeline, RunReport

MAIN_BAS = """Attribute VB_Name = "modMain"
Public Sub do_work()
End Sub
"""


def scripted_input(answers):
    """Return a read_input replacement that replays answers, then raises EOFError."""
    remaining = list(answers)
    prompts = []

    def _read(prompt):
        prompts.append(prompt)
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    _read.prompts = prompts
    return _read


class TestParseArgs:
    def test_defaults(self):
        args = parse_args([])

        assert args.manifest is None
        assert args.action is None
        assert args.log_level == "info"
        assert not args.no_exports

    def test_full(self):
        args = parse_args(
            ["App.vbp", "--action", "all", "--log-level", "debug", "--no-exports"]
        )

        assert args.manifest == "App.vbp"
        assert args.action == Action.ALL
        assert args.no_exports

    def test_unknown_action_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["App.vbp", "--action", "explode"])


def test_format_report():
    report = RunReport(
        action="rename",
        manifest="App.vbp",
        modules=2,
        resolution={"calls_resolved": 3, "calls_total": 4},
        naming={"renamed": 5},
        planned_edits=7,
        exports={"rename.csv": "out/App.rename.csv"},
        rename={"edits_applied": 6, "files_written": ["a.bas"], "edits_skipped": 1},
        post_processing=[{"processor": "TypeAnnotator", "modules_changed": 1}],
        backup_dir="App.backup1",
    )

    text = format_report(report)

    assert "Calls resolved: 3/4" in text
    assert "Planned edits: 7" in text
    assert "Renamed: 6 edits in 1 files (1 skipped)" in text
    assert "TypeAnnotator: 1 files changed" in text
    assert text.endswith("Backup: App.backup1")


def test_run_action_missing_manifest(tmp_path: Path):
    out = io.StringIO()
    pipeline = Pipeline(Config.from_mapping({}))

    assert run_action(pipeline, str(tmp_path / "missing.vbp"), Action.ANALYZE, out) == 1
    assert out.getvalue() == ""


class TestInteractiveMenu:
    """Menu driven by scripted input."""

    @pytest.fixture
    def pipeline(self):
        return Pipeline(Config.from_mapping({"write_exports": False}))

    def test_analyze_then_exit(self, pipeline, write_project, tmp_path: Path):
        manifest = write_project({"modMain.bas": MAIN_BAS})
        state_file = tmp_path / "state" / "last_manifest.path"
        out = io.StringIO()
        read_input = scripted_input(["9", "1", f'"{manifest}"', "0"])

        assert InteractiveMenu(pipeline, state_file, read_input, out).run() == 0

        text = out.getvalue()
        assert "Invalid option, try again." in text
        assert "Action: analyze" in text
        assert "Modules: 1" in text
        assert text.rstrip().endswith("Bye.")
        assert state_file.read_text(encoding="utf-8") == str(manifest)

    def test_last_manifest_offered_as_default(self, pipeline, write_project, tmp_path: Path):
        manifest = write_project({"modMain.bas": MAIN_BAS})
        state_file = tmp_path / "last_manifest.path"
        state_file.write_text(str(manifest), encoding="utf-8")
        out = io.StringIO()
        read_input = scripted_input(["1", ""])

        assert InteractiveMenu(pipeline, state_file, read_input, out).run() == 0

        assert f"[{manifest}]" in read_input.prompts[1]
        assert "Action: analyze" in out.getvalue()

    def test_missing_project_file(self, pipeline, tmp_path: Path):
        out = io.StringIO()
        read_input = scripted_input(["1", str(tmp_path / "nope.vbp"), "0"])

        InteractiveMenu(pipeline, tmp_path / "state.path", read_input, out).run()

        assert "Project file not found" in out.getvalue()

    def test_end_of_input_exits(self, pipeline, tmp_path: Path):
        menu = InteractiveMenu(pipeline, tmp_path / "state.path", scripted_input([]), io.StringIO())
        assert menu.run() == 0


class TestMain:
    """main() with logging setup stubbed out."""

    def test_bad_log_level(self, capsys):
        assert main(["--log-level", "loud"]) == 2
        assert "Unknown log level" in capsys.readouterr().err

    @patch("vb6_xref.cli.setup_logging")
    def test_action_requires_manifest(self, mock_setup, tmp_path: Path):
        assert main(["--action", "rename", "--log-dir", str(tmp_path)]) == 2

    @patch("vb6_xref.cli.setup_logging")
    def test_analyze_without_exports(self, mock_setup, write_project, tmp_path: Path, capsys):
        manifest = write_project({"modMain.bas": MAIN_BAS})
        argv = [
            str(manifest),
            "--no-exports",
            "--config",
            str(tmp_path / "missing.yml"),
            "--log-dir",
            str(tmp_path / "logs"),
        ]

        assert main(argv) == 0

        mock_setup.assert_called_once()
        assert "Planned edits: 2" in capsys.readouterr().out
        assert not list(manifest.parent.glob("App.*.json"))

    @patch("vb6_xref.cli.setup_logging")
    def test_missing_manifest_exit_code(self, mock_setup, tmp_path: Path):
        assert main([str(tmp_path / "missing.vbp"), "--log-dir", str(tmp_path)]) == 1
