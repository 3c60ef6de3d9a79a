# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures for unit tests."""

from pathlib import Path
from typing import Callable, Dict

import pytest

from vb6_xref.manifest import load_project
from vb6_xref.models import VbProject
from vb6_xref.resolver import resolve_project
from vb6_xref.source_io import SourceCache

MANIFEST_KEYS = {".bas": "Module", ".cls": "Class", ".frm": "Form"}


def write_vb6_files(root: Path, files: Dict[str, str], name: str = "App") -> Path:
    """Write member files with CRLF endings plus a manifest listing them.

    Args:
        root: Directory receiving the files.
        files: Relative file name -> source text ("\\n" separated).
        name: Project name; the manifest is "<name>.vbp".

    Returns:
        Path to the manifest.
    """
    root.mkdir(parents=True, exist_ok=True)
    manifest_lines = ["Type=Exe"]
    for relative, text in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(text.replace("\n", "\r\n").encode("cp1252"))
        key = MANIFEST_KEYS[path.suffix.lower()]
        windows_path = relative.replace("/", "\\")
        manifest_lines.append(f"{key}={path.stem}; {windows_path}")
    manifest_lines.append(f'Name="{name}"')
    manifest = root / f"{name}.vbp"
    manifest.write_bytes(("\r\n".join(manifest_lines) + "\r\n").encode("cp1252"))
    return manifest


@pytest.fixture
def write_project(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a VB6 project under tmp_path/App."""

    def _write(files: Dict[str, str], name: str = "App") -> Path:
        return write_vb6_files(tmp_path / name, files, name)

    return _write


@pytest.fixture
def resolved_project(write_project) -> Callable[[Dict[str, str]], VbProject]:
    """Factory writing, loading and resolving a project."""

    def _load(files: Dict[str, str]) -> VbProject:
        cache = SourceCache()
        project = load_project(str(write_project(files)), source_cache=cache)
        resolve_project(project, source_cache=cache)
        return project

    return _load
