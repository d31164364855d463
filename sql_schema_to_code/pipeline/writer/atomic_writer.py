"""
Atomic file writer for safe code generation.

Ensures that file writes are atomic so that an interrupted run never leaves
a half-written artifact that looks complete.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable
from pathlib import Path

from ..errors import ArtifactValidationError, ArtifactWriteError

GOOSE_UP_MARKER = "-- +goose Up"
GOOSE_DOWN_MARKER = "-- +goose Down"


class AtomicWriter:
    """Handles atomic file writes with validation.

    Uses a two-phase commit approach:
    1. Write to a temporary file in the same directory
    2. Validate the content
    3. Atomically replace the target file
    """

    def __init__(
        self,
        validate_go: Callable[[str], None] | None = None,
        validate_sql: Callable[[str], None] | None = None,
        atomic: bool = True,
    ):
        """Initialize the atomic writer.

        Args:
            validate_go: Optional validation function for Go sources
            validate_sql: Optional validation function for migration scripts
            atomic: Write through a temporary file (False writes in place)
        """
        self._validate_go = validate_go or self._default_validate_go
        self._validate_sql = validate_sql or self._default_validate_sql
        self.atomic = atomic

    def write(
        self,
        path: Path,
        content: str,
        language: str = "",
        validate: bool = True,
        executable: bool = False,
    ) -> None:
        """Write content to file atomically.

        Args:
            path: Target file path
            content: Content to write
            language: Language for validation ("go", "sql", anything else skips it)
            validate: Whether to validate before finalizing
            executable: Mark the file executable (build scripts)

        Raises:
            ArtifactValidationError: If validation fails
            ArtifactWriteError: If file operations fail
        """
        if validate:
            self.validate(content, language)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if self.atomic:
                self._replace(path, content)
            else:
                path.write_text(content, encoding="utf-8")
            if executable:
                path.chmod(0o755)
        except OSError as e:
            raise ArtifactWriteError(f"Failed to write {path}: {e}") from e

    def _replace(self, path: Path, content: str) -> None:
        # Same directory ensures atomic rename on the same filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            text=True,
        )
        temp_path = Path(temp_path_str)

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.chmod(temp_path, 0o644)
            temp_path.replace(path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

    def validate(self, content: str, language: str) -> None:
        """Check content for its language without writing it.

        Raises:
            ArtifactValidationError: If validation fails
        """
        if language == "go":
            self._validate_go(content)
        elif language == "sql":
            self._validate_sql(content)

    def _default_validate_go(self, content: str) -> None:
        """Default Go validation.

        Raises:
            ArtifactValidationError: If validation fails
        """
        # Basic structural checks (no full parsing)
        if "package " not in content:
            raise ArtifactValidationError("Generated Go code is missing a package clause")

        open_braces = content.count("{")
        close_braces = content.count("}")
        if open_braces != close_braces:
            raise ArtifactValidationError(f"Generated Go code has unbalanced braces: {open_braces} open, {close_braces} close")

    def _default_validate_sql(self, content: str) -> None:
        """Default migration validation.

        Raises:
            ArtifactValidationError: If validation fails
        """
        if GOOSE_UP_MARKER not in content or GOOSE_DOWN_MARKER not in content:
            raise ArtifactValidationError("Generated migration is missing goose Up/Down markers")
