# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Source file access for VB6 projects.

- Reading in the legacy code page with a latin-1 fallback
- A per-run line cache; unreadable files read as no lines
- Line-ending detection so rewritten files keep their original style
- Backup-then-write: a file is only replaced after its original has been
  copied into the run's backup tree, and no partial backup is left behind
  when the write fails
"""

import logging
import os
import re
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cp1252"
FALLBACK_ENCODING = "latin-1"

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


class SourceWriteError(Exception):
    """Raised when a backup-then-write sequence cannot complete."""

    pass


def detect_line_ending(text: str) -> str:
    """Return the first line terminator used in text ("\\r\\n" if none)."""
    index = text.find("\n")
    if index < 0:
        return "\r" if "\r" in text else "\r\n"
    if index > 0 and text[index - 1] == "\r":
        return "\r\n"
    return "\n"


def split_lines(text: str) -> List[str]:
    """Split text into physical lines without terminators.

    A trailing terminator does not produce an extra empty line.
    """
    if not text:
        return []
    lines = _LINE_BREAK_RE.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


def join_lines(lines: List[str], line_ending: str, trailing_newline: bool) -> str:
    text = line_ending.join(lines)
    if trailing_newline and lines:
        text += line_ending
    return text


def has_trailing_newline(text: str) -> bool:
    return text.endswith("\n") or text.endswith("\r")


def decode_source(data: bytes, encoding: str = DEFAULT_ENCODING) -> str:
    """Decode legacy source bytes, falling back to latin-1."""
    try:
        return data.decode(encoding)
    except UnicodeDecodeError:
        logger.debug(f"Content not valid {encoding}, falling back to {FALLBACK_ENCODING}")
        return data.decode(FALLBACK_ENCODING)
    except LookupError:
        logger.warning(f"⚠️ Unknown encoding '{encoding}', using {FALLBACK_ENCODING}")
        return data.decode(FALLBACK_ENCODING)


def encode_source(text: str, encoding: str = DEFAULT_ENCODING) -> bytes:
    try:
        return text.encode(encoding)
    except (UnicodeEncodeError, LookupError):
        return text.encode(FALLBACK_ENCODING, errors="replace")


def read_source_text(path: Path, encoding: str = DEFAULT_ENCODING) -> Optional[str]:
    """Read a source file as text.

    The file is opened read-only so another process holding it open does
    not block the run.

    Returns:
        File text, or None if the file could not be read.
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        logger.warning(f"⚠️ Could not read {path}: {e}")
        return None
    return decode_source(data, encoding)


class SourceCache:
    """Per-run cache of physical source lines keyed by resolved path.

    Resolution passes read every file several times; the cache keeps one
    copy. A file that cannot be read is cached as no lines.
    """

    def __init__(self, encoding: str = DEFAULT_ENCODING):
        self.encoding = encoding
        self._lines: Dict[str, List[str]] = {}

    def get_lines(self, path: str) -> List[str]:
        key = os.path.normcase(os.path.abspath(path))
        cached = self._lines.get(key)
        if cached is not None:
            return cached

        text = read_source_text(Path(path), self.encoding)
        lines = split_lines(text) if text is not None else []
        self._lines[key] = lines
        return lines

    def put_lines(self, path: str, lines: List[str]) -> None:
        self._lines[os.path.normcase(os.path.abspath(path))] = lines

    def invalidate(self, path: Optional[str] = None) -> None:
        if path is None:
            self._lines.clear()
        else:
            self._lines.pop(os.path.normcase(os.path.abspath(path)), None)


class BackupSession:
    """One timestamped backup tree per rewrite invocation.

    The tree mirrors paths relative to the project folder. By default it is
    created next to the project folder as "<folder>.backup<timestamp>".
    The directory is only created when the first file is backed up.
    """

    def __init__(
        self,
        project_dir: Path,
        backup_root: Optional[Path] = None,
        timestamp_format: str = "%Y%m%d_%H%M%S",
        now: Optional[datetime] = None,
    ):
        self.project_dir = project_dir.resolve()
        stamp = (now or datetime.now()).strftime(timestamp_format)
        parent = backup_root if backup_root is not None else self.project_dir.parent
        self.backup_dir = Path(parent) / f"{self.project_dir.name}.backup{stamp}"
        self.files_backed_up: List[Path] = []

    def backup_path_for(self, source: Path) -> Path:
        resolved = source.resolve()
        try:
            relative = resolved.relative_to(self.project_dir)
        except ValueError:
            relative = Path("_external") / resolved.name
        return self.backup_dir / relative

    def write_with_backup(
        self, source: Path, new_text: str, encoding: str = DEFAULT_ENCODING
    ) -> None:
        """Back up the original file, then replace it with new_text.

        The new content goes to a temporary file in the same directory and
        is moved over the original, so a failed write leaves the original
        untouched.

        Raises:
            SourceWriteError: If backup or write fails. A backup copied
                during the failed attempt is removed.
        """
        backup_path = self.backup_path_for(source)
        created_backup = False
        tmp_name: Optional[str] = None
        try:
            if backup_path not in self.files_backed_up:
                # Keep the earliest original when a file is rewritten twice
                backup_path.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, backup_path)
                created_backup = True

            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{source.name}.", suffix=".tmp", dir=str(source.parent)
            )
            with os.fdopen(fd, "wb") as f:
                f.write(encode_source(new_text, encoding))
            os.replace(tmp_name, source)
            tmp_name = None
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            if created_backup and backup_path.exists():
                backup_path.unlink()
            raise SourceWriteError(f"Failed to rewrite {source}: {e}") from e

        if created_backup:
            self.files_backed_up.append(backup_path)
        logger.debug(f"Backed up {source} to {backup_path}")
