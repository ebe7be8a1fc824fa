"""
Atomic file writer for generated modules.

Ensures that file writes are atomic to prevent data corruption
from interrupted operations.
"""

from __future__ import annotations

import ast
import logging
import tempfile
from collections.abc import Mapping
from pathlib import Path

from .errors import FileError

logger = logging.getLogger(__name__)


def ensure_directory(path: Path) -> None:
    """
    Create a directory (and its parents) unless it already exists.

    Raises:
        FileError: If the path exists but is not a directory, or cannot be created
    """
    if path.exists():
        if not path.is_dir():
            raise FileError("create_dir", str(path), "path exists but is not a directory")
        return
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileError("create_dir", str(path), str(e)) from e


class AtomicWriter:
    """Handles atomic file writes with validation.

    Uses a two-phase commit approach:
    1. Write to a temporary file in the same directory
    2. Validate the content
    3. Atomically replace the target file

    An interrupted write never leaves the target file in an incomplete
    state, and an existing file is only replaced when ``force`` is set.
    """

    def __init__(self, force: bool = False):
        """Initialize the atomic writer.

        Args:
            force: Overwrite files that already exist
        """
        self.force = force

    def write(self, path: Path, content: str, validate: bool = True) -> None:
        """Write content to file atomically.

        Args:
            path: Target file path
            content: Content to write
            validate: Check that the content parses as Python before finalizing

        Raises:
            FileError: If the file exists (without force), the content is
                not valid Python, or a file operation fails
        """
        path = Path(path)
        if path.exists() and not self.force:
            raise FileError("write", str(path), "file already exists (use --force to overwrite)")

        ensure_directory(path.parent)

        # Same directory ensures atomic rename on the same filesystem
        try:
            temp_fd, temp_path_str = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", text=True)
        except OSError as e:
            raise FileError("write", str(path), str(e)) from e
        temp_path = Path(temp_path_str)

        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)

            if validate:
                self._validate_python(path, content)

            temp_path.replace(path)
        except OSError as e:
            self._cleanup(temp_path)
            raise FileError("write", str(path), str(e)) from e
        except Exception:
            self._cleanup(temp_path)
            raise

        logger.debug(f"Wrote {path}")

    def write_files(self, output_dir: Path, files: Mapping[str, str], validate: bool = True) -> list[Path]:
        """Write a ``{filename: content}`` map into a directory.

        Every target is checked before anything is written, so an existing
        file (without force) leaves the directory untouched.

        Returns:
            The written paths, in filename order
        """
        output_dir = Path(output_dir)
        ensure_directory(output_dir)

        targets = [output_dir / filename for filename in sorted(files)]
        if not self.force:
            for target in targets:
                if target.exists():
                    raise FileError("write", str(target), "file already exists (use --force to overwrite)")

        for target in targets:
            self.write(target, files[target.name], validate)
        return targets

    @staticmethod
    def _validate_python(path: Path, content: str) -> None:
        try:
            ast.parse(content)
        except SyntaxError as e:
            raise FileError("write", str(path), f"generated Python code is not valid: {e}") from e

    @staticmethod
    def _cleanup(temp_path: Path) -> None:
        if temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                logger.warning(f"Could not remove temporary file {temp_path}")
