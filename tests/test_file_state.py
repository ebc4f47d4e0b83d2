"""
Tests for file snapshots and content hashing.
"""

import hashlib
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from diffcache.cache.file_state import (
    HASH_LENGTH,
    FileSnapshot,
    content_hash,
    count_lines,
)
from diffcache.exceptions import (
    AccessDeniedException,
    FileNotFoundException,
    NotAFileException,
    ValidationException,
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class TestContentHash:
    """Tests for content_hash()."""

    def test_length_and_alphabet(self):
        value = content_hash("hello")
        assert len(value) == HASH_LENGTH == 16
        assert all(c in "0123456789abcdef" for c in value)

    def test_is_sha256_prefix(self):
        expected = hashlib.sha256("hello\n".encode("utf-8")).hexdigest()[:16]
        assert content_hash("hello\n") == expected

    def test_deterministic(self):
        assert content_hash("same text") == content_hash("same text")

    def test_sensitive_to_every_byte(self):
        assert content_hash("a\n") != content_hash("a")
        assert content_hash("a\r\n") != content_hash("a\n")

    def test_empty_text(self):
        assert content_hash("") == hashlib.sha256(b"").hexdigest()[:16]


class TestCountLines:
    """Tests for count_lines()."""

    @pytest.mark.parametrize("text,expected", [
        ("", 0),
        ("one", 1),
        ("one\n", 2),
        ("one\ntwo", 2),
        ("\n", 2),
        ("a\r\nb", 2),
    ])
    def test_count(self, text, expected):
        assert count_lines(text) == expected


class TestFileSnapshot:
    """Tests for FileSnapshot.from_path()."""

    async def test_reads_file(self, temp_dir):
        path = temp_dir / "notes.txt"
        path.write_text("line one\nline two\n")

        snapshot = await FileSnapshot.from_path(path)

        assert snapshot.path == path.resolve()
        assert snapshot.content == "line one\nline two\n"
        assert snapshot.content_hash == content_hash("line one\nline two\n")
        assert snapshot.line_count == 3

    async def test_accepts_string_path(self, temp_dir):
        path = temp_dir / "a.txt"
        path.write_text("x")
        snapshot = await FileSnapshot.from_path(str(path))
        assert snapshot.content == "x"

    async def test_relative_path_resolves_against_cwd(self, temp_dir, monkeypatch):
        (temp_dir / "rel.txt").write_text("relative")
        monkeypatch.chdir(temp_dir)

        snapshot = await FileSnapshot.from_path("rel.txt")

        assert snapshot.path == (temp_dir / "rel.txt").resolve()
        assert snapshot.path.is_absolute()

    async def test_symlink_resolves_to_target(self, temp_dir):
        target = temp_dir / "target.txt"
        target.write_text("data")
        link = temp_dir / "link.txt"
        os.symlink(target, link)

        snapshot = await FileSnapshot.from_path(link)

        assert snapshot.path == target.resolve()

    async def test_preserves_crlf(self, temp_dir):
        path = temp_dir / "dos.txt"
        path.write_bytes(b"a\r\nb\r\n")

        snapshot = await FileSnapshot.from_path(path)

        assert snapshot.content == "a\r\nb\r\n"

    async def test_invalid_utf8_is_replaced(self, temp_dir):
        path = temp_dir / "bin.dat"
        path.write_bytes(b"ok\xff\xfe\n")

        snapshot = await FileSnapshot.from_path(path)

        assert snapshot.content.startswith("ok")
        assert "�" in snapshot.content

    async def test_empty_file(self, temp_dir):
        path = temp_dir / "empty.txt"
        path.write_text("")

        snapshot = await FileSnapshot.from_path(path)

        assert snapshot.content == ""
        assert snapshot.line_count == 0

    async def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundException) as exc_info:
            await FileSnapshot.from_path(temp_dir / "missing.txt")
        assert exc_info.value.details["path"].endswith("missing.txt")

    async def test_directory(self, temp_dir):
        with pytest.raises(NotAFileException):
            await FileSnapshot.from_path(temp_dir)

    async def test_empty_path(self):
        with pytest.raises(ValidationException):
            await FileSnapshot.from_path("")

    async def test_permission_denied(self, temp_dir):
        path = temp_dir / "secret.txt"
        path.write_text("secret")

        with patch(
            "diffcache.cache.file_state.aiofiles.open",
            side_effect=PermissionError("denied"),
        ):
            with pytest.raises(AccessDeniedException):
                await FileSnapshot.from_path(path)

    async def test_other_os_errors_are_access_errors(self, temp_dir):
        path = temp_dir / "flaky.txt"
        path.write_text("x")

        with patch(
            "diffcache.cache.file_state.aiofiles.open",
            side_effect=OSError("I/O error"),
        ):
            with pytest.raises(AccessDeniedException) as exc_info:
                await FileSnapshot.from_path(path)
        assert "I/O error" in exc_info.value.message
