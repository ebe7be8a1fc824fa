"""
Tests for the atomic writer.
"""

from __future__ import annotations

import pytest

from evently_codegen.errors import FileError
from evently_codegen.file_io import AtomicWriter, ensure_directory


class TestAtomicWriter:
    def test_write_creates_parent_directories(self, tmp_path):
        target = tmp_path / "out" / "pkg" / "user.py"
        AtomicWriter().write(target, "x = 1\n")
        assert target.read_text() == "x = 1\n"

    def test_refuses_to_overwrite(self, tmp_path):
        target = tmp_path / "user.py"
        target.write_text("original = True\n")
        with pytest.raises(FileError, match="already exists"):
            AtomicWriter().write(target, "x = 1\n")
        assert target.read_text() == "original = True\n"

    def test_force_overwrites(self, tmp_path):
        target = tmp_path / "user.py"
        target.write_text("original = True\n")
        AtomicWriter(force=True).write(target, "x = 1\n")
        assert target.read_text() == "x = 1\n"

    def test_invalid_python_is_not_written(self, tmp_path):
        target = tmp_path / "user.py"
        with pytest.raises(FileError, match="not valid"):
            AtomicWriter().write(target, "def broken(:\n")
        assert not target.exists()
        assert list(tmp_path.iterdir()) == []

    def test_validation_can_be_skipped(self, tmp_path):
        target = tmp_path / "notes.txt"
        AtomicWriter().write(target, "not python (", validate=False)
        assert target.read_text() == "not python ("

    def test_write_files(self, tmp_path):
        written = AtomicWriter().write_files(tmp_path / "out", {"b.py": "b = 2\n", "a.py": "a = 1\n"})
        assert [p.name for p in written] == ["a.py", "b.py"]
        assert (tmp_path / "out" / "b.py").read_text() == "b = 2\n"

    def test_write_files_checks_every_target_first(self, tmp_path):
        (tmp_path / "b.py").write_text("keep = True\n")
        with pytest.raises(FileError):
            AtomicWriter().write_files(tmp_path, {"a.py": "a = 1\n", "b.py": "b = 2\n"})
        assert not (tmp_path / "a.py").exists()


class TestEnsureDirectory:
    def test_existing_file(self, tmp_path):
        path = tmp_path / "file"
        path.write_text("")
        with pytest.raises(FileError, match="not a directory"):
            ensure_directory(path)

    def test_creates_nested(self, tmp_path):
        ensure_directory(tmp_path / "a" / "b")
        assert (tmp_path / "a" / "b").is_dir()
