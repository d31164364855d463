"""
Go formatter for generated sources.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import FormatterConfig
from ..errors import ExternalToolError
from .base import Formatter

logger = logging.getLogger(__name__)


class GoFormatter(Formatter):
    """Formats a module with goimports, falling back to gofmt."""

    name = "gofmt"

    def run(self, module_dir: Path, config: FormatterConfig) -> None:
        if config.use_goimports and self.is_available("goimports"):
            try:
                self.execute(["goimports", "-w", "."], module_dir, config.timeout)
                return
            except ExternalToolError as e:
                logger.info("goimports failed, using gofmt: %s", e)

        self.execute(["gofmt", "-w", "."], module_dir, config.timeout)
