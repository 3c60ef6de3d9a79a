# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Command-line entry point for vb6-xref.

Usage:
    vb6-xref                              interactive menu
    vb6-xref project.vbp                  analyze only
    vb6-xref project.vbp --action rename  apply conventional names
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional, TextIO

from vb6_xref.config import Config
from vb6_xref.exporters import ExportError
from vb6_xref.logging_setup import DEFAULT_LOG_DIR_NAME, parse_log_level, setup_logging
from vb6_xref.manifest import ManifestError
from vb6_xref.pipeline import Action, Pipeline, RunReport
from vb6_xref.progress import LoggingProgressReporter

logger = logging.getLogger(__name__)

LAST_MANIFEST_FILE = "last_manifest.path"

MENU_ACTIONS = {
    "1": Action.ANALYZE,
    "2": Action.RENAME,
    "3": Action.ANNOTATE,
    "4": Action.REORDER,
    "5": Action.SPACING,
    "6": Action.ALL,
}

MENU_TEXT = """
Options:
1. Analyze project
2. Apply conventional renames
3. Add missing declaration types
4. Reorder procedure-local declarations
5. Harmonize spacing
6. Run everything in safe order
0. Exit
"""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="vb6-xref",
        description="Cross-file analysis and conventional renaming for VB6 projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    vb6-xref MyApp.vbp
    vb6-xref MyApp.vbp --action all --log-level debug
        """,
    )
    parser.add_argument(
        "manifest",
        nargs="?",
        default=None,
        help="Path to the .vbp project file. Omit for the interactive menu.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration file. Default: ./.vb6_xref.yml",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help=f"Directory for JSON log files. Default: ./{DEFAULT_LOG_DIR_NAME}",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="info",
        help="Logging level (debug, info, warning, error). Default: info",
    )
    parser.add_argument(
        "--action",
        choices=list(Action.CHOICES),
        default=None,
        help="Action to run. Default with a manifest: analyze",
    )
    parser.add_argument(
        "--no-exports",
        action="store_true",
        help="Do not write the analysis export files",
    )
    return parser.parse_args(argv)


def format_report(report: RunReport) -> str:
    """Human-readable summary of a run."""
    lines = [
        f"Action: {report.action}",
        f"Project: {report.manifest}",
        f"Modules: {report.modules}",
        (
            f"Calls resolved: {report.resolution.get('calls_resolved', 0)}"
            f"/{report.resolution.get('calls_total', 0)}"
        ),
        f"Symbols to rename: {report.naming.get('renamed', 0)}",
        f"Planned edits: {report.planned_edits}",
    ]
    for kind, path in sorted(report.exports.items()):
        lines.append(f"  {kind:<18} {path}")
    if report.rename is not None:
        lines.append(
            f"Renamed: {report.rename['edits_applied']} edits in "
            f"{len(report.rename['files_written'])} files "
            f"({report.rename['edits_skipped']} skipped)"
        )
    for step in report.post_processing:
        lines.append(f"{step['processor']}: {step['modules_changed']} files changed")
    if report.backup_dir:
        lines.append(f"Backup: {report.backup_dir}")
    return "\n".join(lines)


def run_action(pipeline: Pipeline, manifest: str, action: str, out: TextIO) -> int:
    """Run one action and print its summary.

    Returns:
        Exit code (0 for success, 1 for a run-level failure).
    """
    try:
        report = pipeline.run(manifest, action)
    except ManifestError as e:
        logger.error(f"{e}")
        return 1
    except ExportError as e:
        logger.error(f"Export failed: {e}")
        return 1
    print(format_report(report), file=out)
    return 0


class InteractiveMenu:
    """Numbered menu over the pipeline actions.

    The last manifest path entered is stored in state_file and offered as
    the default next time.
    """

    def __init__(
        self,
        pipeline: Pipeline,
        state_file: Path,
        read_input: Callable[[str], str] = input,
        out: TextIO = sys.stdout,
    ):
        self.pipeline = pipeline
        self.state_file = state_file
        self.read_input = read_input
        self.out = out

    def last_manifest(self) -> str:
        try:
            return self.state_file.read_text(encoding="utf-8").strip()
        except OSError:
            return ""

    def remember_manifest(self, manifest: str) -> None:
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            self.state_file.write_text(manifest, encoding="utf-8")
        except OSError as e:
            logger.warning(f"⚠️ Could not remember manifest path: {e}")

    def ask_manifest(self) -> str:
        last = self.last_manifest()
        prompt = f"Project .vbp path [{last}]: " if last else "Project .vbp path: "
        answer = self.read_input(prompt).strip().strip('"')
        manifest = answer or last
        if manifest:
            self.remember_manifest(manifest)
        return manifest

    def run(self) -> int:
        """Loop until the user chooses 0 (or input ends)."""
        while True:
            print(MENU_TEXT, file=self.out)
            try:
                choice = self.read_input("Select option: ").strip()
            except EOFError:
                return 0

            if choice == "0":
                print("Bye.", file=self.out)
                return 0
            action = MENU_ACTIONS.get(choice)
            if action is None:
                print("Invalid option, try again.", file=self.out)
                continue

            try:
                manifest = self.ask_manifest()
            except EOFError:
                return 0
            if not manifest or not Path(manifest).is_file():
                print(f"Project file not found: {manifest}", file=self.out)
                continue
            run_action(self.pipeline, manifest, action, self.out)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    args = parse_args(argv)

    try:
        log_level = parse_log_level(args.log_level)
    except ValueError as e:
        print(f"{e}", file=sys.stderr)
        return 2

    log_dir = args.log_dir or Path.cwd() / DEFAULT_LOG_DIR_NAME
    setup_logging(log_dir=log_dir, log_level=log_level)

    config = Config(args.config)
    if args.no_exports:
        config.set_write_exports(False)
    pipeline = Pipeline(config, progress=LoggingProgressReporter())

    if args.manifest is None:
        if args.action is not None:
            print("--action requires a manifest path", file=sys.stderr)
            return 2
        return InteractiveMenu(pipeline, log_dir / LAST_MANIFEST_FILE).run()

    return run_action(pipeline, args.manifest, args.action or Action.ANALYZE, sys.stdout)


if __name__ == "__main__":
    sys.exit(main())
