"""
File snapshots for content-addressed caching.

This module reads the current content of a file and derives the values the
cache keys on: the resolved path, a content hash and a line count.
"""

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import aiofiles

from diffcache.exceptions import (
    AccessDeniedException,
    FileNotFoundException,
    NotAFileException,
    ValidationException,
)

HASH_LENGTH = 16


def content_hash(content: str) -> str:
    """
    Compute the version identifier of a text.

    Args:
        content: File text

    Returns:
        First 16 hex characters of the SHA-256 digest of the UTF-8 text
    """
    return hashlib.sha256(content.encode("utf-8", errors="surrogatepass")).hexdigest()[:HASH_LENGTH]


def count_lines(content: str) -> int:
    """
    Count lines the way the diff engine splits them.

    Lines are separated by "\\n", so text ending with a newline has a final
    empty line. Empty text has zero lines.
    """
    if not content:
        return 0
    return content.count("\n") + 1


@dataclass(frozen=True)
class FileSnapshot:
    """
    Immutable view of a file's content at read time.

    Attributes:
        path: Absolute, symlink-resolved path
        content: Decoded file text
        content_hash: Version identifier of content
        line_count: Number of lines in content
    """
    path: Path
    content: str
    content_hash: str
    line_count: int

    @classmethod
    async def from_path(cls, path: Union[str, Path]) -> "FileSnapshot":
        """
        Read a file and build its snapshot.

        The file is decoded as UTF-8 with undecodable bytes replaced and
        without newline translation, so "\\r\\n" endings are preserved.

        Args:
            path: Path to the file (relative paths resolve against the cwd)

        Returns:
            FileSnapshot of the current content

        Raises:
            ValidationException: If path is empty
            FileNotFoundException: If the file does not exist
            NotAFileException: If the path is a directory
            AccessDeniedException: If the file cannot be read
        """
        if not str(path):
            raise ValidationException("Path cannot be empty", details={"field": "path"})

        resolved = Path(path).expanduser().resolve()
        details = {"path": str(resolved)}

        if resolved.is_dir():
            raise NotAFileException(f"Not a file: {path}", details=details)

        try:
            async with aiofiles.open(
                resolved, mode="r", encoding="utf-8", errors="replace", newline=""
            ) as f:
                content = await f.read()
        except FileNotFoundError as e:
            raise FileNotFoundException(f"File not found: {path}", details=details) from e
        except IsADirectoryError as e:
            raise NotAFileException(f"Not a file: {path}", details=details) from e
        except PermissionError as e:
            raise AccessDeniedException(f"Permission denied: {path}", details=details) from e
        except OSError as e:
            raise AccessDeniedException(f"Cannot read {path}: {e}", details=details) from e

        return cls(
            path=resolved,
            content=content,
            content_hash=content_hash(content),
            line_count=count_lines(content),
        )
