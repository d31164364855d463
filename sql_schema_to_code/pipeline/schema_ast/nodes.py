"""
Schema model node definitions.

These nodes represent the parsed tables and columns of a SQL schema. The
model is built once by the parser and is read-only for every later stage.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..analyzer.type_mapper import TypeMapping


@dataclass(frozen=True)
class Column:
    """One column of a table."""

    name: str
    source_type: str = ""
    is_primary_key: bool = False
    is_nullable: bool = True
    default_value: str | None = None
    is_unique: bool = False

    # Filled by the parser from the type mapper
    mapping: TypeMapping | None = None

    @property
    def target_type(self) -> str:
        return self.mapping.target_type if self.mapping else "string"


@dataclass(frozen=True)
class Table:
    """One CREATE TABLE block, columns in source order."""

    name: str
    columns: tuple[Column, ...] = ()

    def column(self, name: str) -> Column | None:
        """Find a column by case-insensitive name."""
        lowered = name.lower()
        for col in self.columns:
            if col.name.lower() == lowered:
                return col
        return None

    def has_column(self, name: str) -> bool:
        return self.column(name) is not None


@dataclass(frozen=True)
class SchemaModel:
    """Ordered set of parsed tables."""

    tables: tuple[Table, ...] = ()

    def __iter__(self) -> Iterator[Table]:
        return iter(self.tables)

    def __len__(self) -> int:
        return len(self.tables)

    def table(self, name: str) -> Table | None:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    @property
    def table_names(self) -> list[str]:
        return [table.name for table in self.tables]


@dataclass(frozen=True)
class DroppedLine:
    """A line inside a table block that could not be read as a column."""

    line_number: int
    text: str
    table: str


@dataclass(frozen=True)
class ParseResult:
    """Output of the parser: the schema model plus what was lost on the way."""

    schema: SchemaModel
    dropped_lines: tuple[DroppedLine, ...] = field(default_factory=tuple)

    @property
    def dropped_count(self) -> int:
        return len(self.dropped_lines)
