"""
Build verification for generated Go modules.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import FormatterConfig
from .base import Formatter

logger = logging.getLogger(__name__)


class GoToolchain(Formatter):
    """Resolves dependencies, builds and vets a generated module.

    Stops at the first failing step; later steps depend on earlier ones.
    """

    name = "go"

    def run(self, module_dir: Path, config: FormatterConfig) -> None:
        steps = [
            ["go", "mod", "tidy"],
            ["go", "build", f"./cmd/{module_dir.name}"],
            ["go", "vet", "./..."],
        ]
        for cmd in steps:
            self.execute(cmd, module_dir, config.timeout)
            logger.info("%s succeeded", " ".join(cmd))
