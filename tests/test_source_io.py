# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for source reading, caching and backup-then-write."""

from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from vb6_xref.source_io import (
    BackupSession,
    SourceCache,
    SourceWriteError,
    decode_source,
    detect_line_ending,
    encode_source,
    has_trailing_newline,
    join_lines,
    read_source_text,
    split_lines,
)

FIXED_NOW = datetime(2025, 1, 2, 3, 4, 5)


class TestLineHandling:
    """Tests for line splitting and line-ending detection."""

    def test_detect_line_ending(self):
        assert detect_line_ending("a\r\nb\r\n") == "\r\n"
        assert detect_line_ending("a\nb") == "\n"
        assert detect_line_ending("a\rb") == "\r"
        assert detect_line_ending("single line") == "\r\n"

    def test_split_lines_drops_trailing_terminator(self):
        assert split_lines("a\r\nb\r\n") == ["a", "b"]
        assert split_lines("a\n\nb") == ["a", "", "b"]
        assert split_lines("") == []

    def test_join_lines_round_trip(self):
        text = "Attribute VB_Name = \"Module1\"\r\nOption Explicit\r\n"
        lines = split_lines(text)
        joined = join_lines(lines, detect_line_ending(text), has_trailing_newline(text))

        assert joined == text

    def test_join_without_trailing_newline(self):
        assert join_lines(["a", "b"], "\n", False) == "a\nb"
        assert join_lines([], "\n", True) == ""


class TestEncoding:
    def test_decode_cp1252(self):
        assert decode_source("Größe €".encode("cp1252")) == "Größe €"

    def test_decode_falls_back_to_latin1(self):
        # 0x81 is undefined in cp1252
        assert decode_source(b"a\x81b") == "a\x81b"

    def test_decode_unknown_encoding_falls_back(self):
        assert decode_source(b"abc", "no-such-codec") == "abc"

    def test_encode_unmappable_characters_replaced(self):
        assert encode_source("a中b") == b"a?b"


def test_read_source_text_missing_file(tmp_path: Path):
    assert read_source_text(tmp_path / "missing.bas") is None


class TestSourceCache:
    """Tests for the per-run line cache."""

    def test_caches_lines(self, tmp_path: Path):
        path = tmp_path / "Module1.bas"
        path.write_bytes(b"Line1\r\nLine2\r\n")
        cache = SourceCache()

        first = cache.get_lines(str(path))
        path.write_bytes(b"Changed\r\n")
        second = cache.get_lines(str(path))

        assert first == ["Line1", "Line2"]
        assert second is first

    def test_invalidate_single_path(self, tmp_path: Path):
        path = tmp_path / "Module1.bas"
        path.write_bytes(b"Old\r\n")
        cache = SourceCache()
        cache.get_lines(str(path))

        path.write_bytes(b"New\r\n")
        cache.invalidate(str(path))

        assert cache.get_lines(str(path)) == ["New"]

    def test_unreadable_file_is_empty(self, tmp_path: Path):
        cache = SourceCache()
        assert cache.get_lines(str(tmp_path / "missing.bas")) == []

    def test_put_lines(self, tmp_path: Path):
        cache = SourceCache()
        path = str(tmp_path / "virtual.bas")
        cache.put_lines(path, ["Sub A()", "End Sub"])

        assert cache.get_lines(path) == ["Sub A()", "End Sub"]


class TestBackupSession:
    """Tests for backup-then-write."""

    def _project(self, tmp_path: Path) -> Path:
        project_dir = tmp_path / "App"
        (project_dir / "src").mkdir(parents=True)
        source = project_dir / "src" / "Module1.bas"
        source.write_bytes(b"Original\r\n")
        return source

    def test_backup_directory_name(self, tmp_path: Path):
        session = BackupSession(tmp_path / "App", now=FIXED_NOW)

        assert session.backup_dir == tmp_path.resolve() / "App.backup20250102_030405"
        assert not session.backup_dir.exists()

    def test_write_with_backup_mirrors_tree(self, tmp_path: Path):
        source = self._project(tmp_path)
        session = BackupSession(tmp_path / "App", now=FIXED_NOW)

        session.write_with_backup(source, "Rewritten\r\n")

        backup = session.backup_dir / "src" / "Module1.bas"
        assert backup.read_bytes() == b"Original\r\n"
        assert source.read_bytes() == b"Rewritten\r\n"
        assert session.files_backed_up == [backup]

    def test_second_write_keeps_first_original(self, tmp_path: Path):
        source = self._project(tmp_path)
        session = BackupSession(tmp_path / "App", now=FIXED_NOW)

        session.write_with_backup(source, "First\r\n")
        session.write_with_backup(source, "Second\r\n")

        backup = session.backup_dir / "src" / "Module1.bas"
        assert backup.read_bytes() == b"Original\r\n"
        assert source.read_bytes() == b"Second\r\n"
        assert len(session.files_backed_up) == 1

    def test_custom_backup_root(self, tmp_path: Path):
        source = self._project(tmp_path)
        root = tmp_path / "backups"
        session = BackupSession(tmp_path / "App", backup_root=root, now=FIXED_NOW)

        session.write_with_backup(source, "New\r\n")

        assert (root / "App.backup20250102_030405" / "src" / "Module1.bas").is_file()

    def test_file_outside_project_goes_under_external(self, tmp_path: Path):
        shared = tmp_path / "Shared.bas"
        shared.write_bytes(b"x\r\n")
        (tmp_path / "App").mkdir()
        session = BackupSession(tmp_path / "App", now=FIXED_NOW)

        assert session.backup_path_for(shared) == session.backup_dir / "_external" / "Shared.bas"

    def test_failed_write_removes_backup_and_keeps_original(self, tmp_path: Path):
        source = self._project(tmp_path)
        session = BackupSession(tmp_path / "App", now=FIXED_NOW)

        with patch("vb6_xref.source_io.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(SourceWriteError, match="disk full"):
                session.write_with_backup(source, "New\r\n")

        assert source.read_bytes() == b"Original\r\n"
        assert not (session.backup_dir / "src" / "Module1.bas").exists()
        assert session.files_backed_up == []
        assert list(source.parent.glob("*.tmp")) == []

    def test_encoding_preserved(self, tmp_path: Path):
        source = self._project(tmp_path)
        session = BackupSession(tmp_path / "App", now=FIXED_NOW)

        session.write_with_backup(source, "Größe\r\n", encoding="cp1252")

        assert source.read_bytes() == "Größe\r\n".encode("cp1252")
