"""
Post-generation tools for generated code.
"""

from __future__ import annotations

from .base import Formatter
from .go_formatter import GoFormatter
from .go_toolchain import GoToolchain

__all__ = [
    "Formatter",
    "GoFormatter",
    "GoToolchain",
]
