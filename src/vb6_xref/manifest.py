# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Project manifest (.vbp) reading and Phase A.

A manifest lists member files as "Form=", "Module=" and "Class=" entries,
either "Name; relative\\path.ext" or a bare path. A bare name without an
extension is accepted when "<name>.<ext>" exists next to the manifest.
Paths climbing two or more levels ("..\\..\\") point at shared code outside
the project tree; those modules are analyzed but never rewritten.

Phase A parses every member before any resolution starts, so the
declarations of all modules are known to Phase B.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from vb6_xref.models import ModuleKind, VbProject
from vb6_xref.module_parser import ModuleParser
from vb6_xref.progress import NullProgressReporter, ProgressReporter
from vb6_xref.source_io import DEFAULT_ENCODING, SourceCache, read_source_text, split_lines

logger = logging.getLogger(__name__)

ENTRY_PREFIXES = {
    "form=": ModuleKind.FORM,
    "module=": ModuleKind.STANDARD,
    "class=": ModuleKind.CLASS,
}
PROJECT_NAME_RE = re.compile(r'^Name\s*=\s*"?([^"]*)"?\s*$', re.IGNORECASE)


class ManifestError(Exception):
    """Raised when the project manifest is missing or unreadable."""

    pass


@dataclass
class ManifestEntry:
    """One member file listed by the manifest."""

    kind: str
    path: str  # As written, relative to the manifest directory

    @property
    def is_shared_external(self) -> bool:
        return is_shared_external_path(self.path)


def is_shared_external_path(path: str) -> bool:
    """True for paths that leave the project tree by two or more levels."""
    return "..\\..\\" in path.replace("/", "\\")


def _entry_path(value: str, kind: str, base_dir: Path) -> Optional[str]:
    parts = value.split(";")
    if len(parts) == 2:
        return parts[1].strip() or None
    if len(parts) != 1:
        return None

    name = parts[0].strip()
    if not name:
        return None
    if name.lower().endswith("." + kind):
        return name
    candidate = f"{name}.{kind}"
    if (base_dir / _native(candidate)).exists():
        return candidate
    return None


def _native(path: str) -> str:
    return path.replace("\\", "/")


def parse_manifest_text(text: str, base_dir: Path) -> List[ManifestEntry]:
    """Extract member entries from manifest text, in manifest order."""
    entries: List[ManifestEntry] = []
    for raw in split_lines(text):
        line = raw.strip()
        lowered = line.lower()
        for prefix, kind in ENTRY_PREFIXES.items():
            if lowered.startswith(prefix):
                path = _entry_path(line[len(prefix) :], kind, base_dir)
                if path:
                    entries.append(ManifestEntry(kind=kind, path=path))
                else:
                    logger.debug(f"Ignoring manifest entry '{line}'")
                break
    return entries


def project_name_from_text(text: str, default: str) -> str:
    for raw in split_lines(text):
        match = PROJECT_NAME_RE.match(raw.strip())
        if match and match.group(1):
            return match.group(1)
    return default


def read_manifest(manifest_path: str, encoding: str = DEFAULT_ENCODING) -> List[ManifestEntry]:
    """Read and parse a manifest file.

    Raises:
        ManifestError: If the manifest does not exist or cannot be read.
    """
    path = Path(manifest_path)
    return parse_manifest_text(_read_manifest_text(path, encoding), path.parent)


def _read_manifest_text(path: Path, encoding: str) -> str:
    if not path.is_file():
        raise ManifestError(f"Project manifest not found: {path}")
    text = read_source_text(path, encoding)
    if text is None:
        raise ManifestError(f"Project manifest unreadable: {path}")
    return text


def load_project(
    manifest_path: str,
    source_cache: Optional[SourceCache] = None,
    parser: Optional[ModuleParser] = None,
    progress: Optional[ProgressReporter] = None,
) -> VbProject:
    """Run Phase A: parse every member file listed by the manifest.

    Missing member files are skipped with a warning. The returned project
    holds declarations only; resolution is a separate phase.

    Args:
        manifest_path: Path to the .vbp file.
        source_cache: Shared line cache (also used later by resolution).
        parser: Module parser; created over source_cache if None.
        progress: Progress reporter, silent by default.

    Raises:
        ManifestError: If the manifest itself is missing or unreadable.
    """
    cache = source_cache or SourceCache()
    module_parser = parser or ModuleParser(source_cache=cache)
    reporter = progress or NullProgressReporter()

    path = Path(manifest_path).resolve()
    text = _read_manifest_text(path, cache.encoding)

    entries = parse_manifest_text(text, path.parent)
    project = VbProject(path=str(path), name=project_name_from_text(text, path.stem))

    reporter.start("Parsing modules", len(entries))
    for index, entry in enumerate(entries, start=1):
        full_path = (path.parent / _native(entry.path)).resolve()
        reporter.advance("Parsing modules", index, len(entries), full_path.name)
        if not full_path.is_file():
            logger.warning(f"⚠️ Skipping {entry.path}: file not found")
            continue

        module = module_parser.parse_file(str(full_path), entry.kind)
        module.is_shared_external = entry.is_shared_external
        project.modules.append(module)
    reporter.finish("Parsing modules")

    logger.info(f"Loaded {len(project.modules)} module(s) from {path.name}")
    return project
