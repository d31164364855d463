"""
Schema AST module.

Contains the schema model node definitions and the SQL parser.
"""

from __future__ import annotations

from .nodes import Column, DroppedLine, ParseResult, SchemaModel, Table
from .parser import SchemaParser

__all__ = [
    "Column",
    "DroppedLine",
    "ParseResult",
    "SchemaModel",
    "Table",
    "SchemaParser",
]
