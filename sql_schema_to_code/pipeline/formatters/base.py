"""
Base class for post-generation tools.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from ..config import FormatterConfig
from ..errors import ExternalToolError

logger = logging.getLogger(__name__)


class Formatter(ABC):
    """Abstract base class for tools run over the generated module directory."""

    name: str = ""

    @abstractmethod
    def run(self, module_dir: Path, config: FormatterConfig) -> None:
        """
        Run the tool over a generated module.

        Args:
            module_dir: Root of the generated module
            config: Formatter configuration

        Raises:
            ExternalToolError: If the tool is missing or fails
        """

    @staticmethod
    def is_available(executable: str) -> bool:
        """Check if an executable is on PATH."""
        return shutil.which(executable) is not None

    @staticmethod
    def execute(cmd: list[str], cwd: Path, timeout: int) -> str:
        """
        Run a command and return its combined output.

        Raises:
            ExternalToolError: If the command is missing, times out or exits non-zero
        """
        tool = " ".join(cmd)
        logger.debug("Running %s in %s", tool, cwd)
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(tool, f"executable not found ({e})") from e
        except subprocess.SubprocessError as e:
            raise ExternalToolError(tool, str(e)) from e

        output = (result.stdout or "") + (result.stderr or "")
        if result.returncode != 0:
            raise ExternalToolError(tool, f"exited with status {result.returncode}", output)
        return output
