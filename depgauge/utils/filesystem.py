"""
Filesystem utilities for depgauge.

Safe helpers for reading, writing, copying and hashing project files.
All filesystem errors are normalized to ``FileOperationError``.
"""

from __future__ import annotations

import os
import shutil
import hashlib
import tempfile
from pathlib import Path
from typing import Optional, Union

from depgauge.utils.logger import get_logger
from depgauge.constants import MAX_FILE_SIZE
from depgauge.exceptions import FileOperationError


logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path, *, operation: str = "read") -> Path:
    """Ensure ``path`` exists and is a regular file; return it resolved."""
    if not path.exists():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation=operation,
        )
    if not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation=operation,
        )
    return path.resolve()


def _atomic_write(target: Path, content: str) -> None:
    """Atomically write text to a file using a temporary file + replace."""
    target.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Optional[Path] = None

    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(target.parent),
            delete=False,
            prefix=f".{target.name}.",
            suffix=".tmp",
            newline="",
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())

        temp_path.replace(target)

    except OSError as exc:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
                logger.debug("Cleaned up temporary file: %s", temp_path)
            except OSError as cleanup_exc:
                logger.warning(
                    "Failed to clean up temporary file %s: %s",
                    temp_path,
                    cleanup_exc,
                )

        raise FileOperationError(
            f"Atomic write failed: {exc}",
            file_path=str(target),
            operation="write",
            original_error=exc,
        ) from exc


def file_exists(file_path: PathLike) -> bool:
    """Return True if ``file_path`` is an existing regular file."""
    return Path(file_path).is_file()


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Safely read a text file with optional size limits.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed file size in bytes (None disables limit).
        encoding: Text encoding.

    Returns:
        File contents as a string.

    Raises:
        FileOperationError: The file is missing, too large, or unreadable.
    """
    path = _validated_file(Path(file_path))

    try:
        size = path.stat().st_size
        if max_size is not None and size > max_size:
            raise FileOperationError(
                f"File too large: {size} bytes (max {max_size})",
                file_path=str(path),
                operation="read",
            )
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def safe_write_file(file_path: PathLike, content: str) -> None:
    """Write text to ``file_path`` atomically."""
    _atomic_write(Path(file_path), content)


def copy_file(source: PathLike, destination: PathLike, *, operation: str = "copy") -> None:
    """Copy a file byte-for-byte (metadata included).

    Raises:
        FileOperationError: The source is missing or the copy fails.
    """
    src = _validated_file(Path(source), operation=operation)
    dst = Path(destination)

    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to {operation} {src.name}: {exc}",
            file_path=str(dst),
            operation=operation,
            original_error=exc,
        ) from exc


def file_sha256(file_path: PathLike) -> str:
    """Return the hex SHA-256 digest of a file's bytes."""
    path = _validated_file(Path(file_path))
    digest = hashlib.sha256()

    try:
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(65536), b""):
                digest.update(chunk)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to hash file: {exc}",
            file_path=str(path),
            operation="hash",
            original_error=exc,
        ) from exc

    return digest.hexdigest()


def remove_tree(directory: PathLike) -> None:
    """Delete a directory tree; missing directories are ignored."""
    path = Path(directory)
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to delete {path}: {exc}",
            file_path=str(path),
            operation="delete",
            original_error=exc,
        ) from exc
