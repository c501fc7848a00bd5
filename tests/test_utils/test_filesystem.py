from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from depgauge.exceptions import FileOperationError
from depgauge.utils.filesystem import (
    copy_file,
    file_exists,
    file_sha256,
    remove_tree,
    safe_read_file,
    safe_write_file,
)


@pytest.mark.unit
class TestSafeReadFile:
    def test_reads_text(self, tmp_path: Path) -> None:
        target = tmp_path / "package.json"
        target.write_text('{"name": "demo"}', encoding="utf-8")

        assert safe_read_file(target) == '{"name": "demo"}'

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError) as exc_info:
            safe_read_file(tmp_path / "missing.json")

        assert exc_info.value.operation == "read"
        assert "File not found" in str(exc_info.value)

    def test_directory_is_not_a_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError, match="Not a file"):
            safe_read_file(tmp_path)

    def test_size_limit(self, tmp_path: Path) -> None:
        target = tmp_path / "big.json"
        target.write_text("x" * 100, encoding="utf-8")

        with pytest.raises(FileOperationError, match="File too large"):
            safe_read_file(target, max_size=10)
        assert len(safe_read_file(target, max_size=None)) == 100


@pytest.mark.unit
class TestSafeWriteFile:
    def test_writes_atomically(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "out.json"

        safe_write_file(target, "{}\n")

        assert target.read_text(encoding="utf-8") == "{}\n"
        assert [p.name for p in target.parent.iterdir()] == ["out.json"]

    def test_overwrites(self, tmp_path: Path) -> None:
        target = tmp_path / "out.json"
        target.write_text("old", encoding="utf-8")

        safe_write_file(target, "new")

        assert target.read_text(encoding="utf-8") == "new"


@pytest.mark.unit
class TestCopyAndHash:
    def test_copy_is_byte_identical(self, tmp_path: Path) -> None:
        source = tmp_path / "package-lock.json"
        source.write_bytes(b'{\r\n  "a": 1\r\n}')

        copy_file(source, tmp_path / "backup" / "package-lock.json")

        assert (tmp_path / "backup" / "package-lock.json").read_bytes() == source.read_bytes()

    def test_copy_missing_source(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError) as exc_info:
            copy_file(tmp_path / "nope", tmp_path / "dst", operation="backup")

        assert exc_info.value.operation == "backup"

    def test_sha256(self, tmp_path: Path) -> None:
        target = tmp_path / "file"
        target.write_bytes(b"depgauge")

        assert file_sha256(target) == hashlib.sha256(b"depgauge").hexdigest()


@pytest.mark.unit
class TestMisc:
    def test_file_exists(self, tmp_path: Path) -> None:
        (tmp_path / "a").write_text("")

        assert file_exists(tmp_path / "a") is True
        assert file_exists(tmp_path / "b") is False
        assert file_exists(tmp_path) is False

    def test_remove_tree(self, tmp_path: Path) -> None:
        target = tmp_path / "dir"
        (target / "sub").mkdir(parents=True)
        (target / "sub" / "f").write_text("x")

        remove_tree(target)
        remove_tree(target)

        assert not target.exists()
