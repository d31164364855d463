"""
Analyzer module.

Derives names and types from the parsed schema model.
"""

from __future__ import annotations

from .name_resolver import META_COLUMNS, EntityNames, declared_meta_columns, is_meta_column
from .type_mapper import DEFAULT_REVERSE_RULES, ReverseRule, TypeMapper, TypeMapping, base_type, type_family

__all__ = [
    "META_COLUMNS",
    "EntityNames",
    "declared_meta_columns",
    "is_meta_column",
    "DEFAULT_REVERSE_RULES",
    "ReverseRule",
    "TypeMapper",
    "TypeMapping",
    "base_type",
    "type_family",
]
