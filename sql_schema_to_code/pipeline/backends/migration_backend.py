"""
Migration synthesizer.

Builds a reversible goose migration from the schema model: schema, tables
and indexes on the way up; indexes, tables in reverse order and schema on
the way down. Meta Contract columns a table does not declare are added
with fixed definitions.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePosixPath

from ..analyzer.name_resolver import declared_meta_columns, is_meta_column
from ..analyzer.type_mapper import TypeMapper
from ..schema_ast.nodes import Column, SchemaModel, Table
from .base import Artifact, ArtifactBackend

COLUMN_INDENT = "    "

# Synthesized Meta Contract columns; "id" goes first, the rest after the declared columns
IDENTITY_COLUMN_DEFINITION = "id BIGSERIAL PRIMARY KEY"
TRAILING_META_DEFINITIONS = (
    ("created_at", "created_at TIMESTAMPTZ DEFAULT NOW()"),
    ("updated_at", "updated_at TIMESTAMPTZ DEFAULT NOW()"),
    ("deleted_at", "deleted_at TIMESTAMPTZ"),
    ("is_deleted", "is_deleted BOOLEAN DEFAULT FALSE"),
)

INDEXED_COLUMN_NAMES = {"timestamp", "key_time"}
INDEXED_COLUMN_SUFFIXES = ("_ts", "_time")

MIGRATION_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def needs_index(column: Column) -> bool:
    """Whether a column looks like a foreign key or a time-ordered lookup."""
    if column.is_primary_key or is_meta_column(column.name):
        return False
    lowered = column.name.lower()
    return "_id" in lowered or lowered in INDEXED_COLUMN_NAMES or lowered.endswith(INDEXED_COLUMN_SUFFIXES)


@dataclass(frozen=True)
class MigrationScript:
    """Forward and backward DDL, kept in sections for the migration template."""

    schema_creation: str = ""
    table_creations: str = ""
    index_creations: str = ""
    index_drops: str = ""
    table_drops: str = ""
    schema_drops: str = ""

    @property
    def forward(self) -> str:
        return self.schema_creation + self.table_creations + self.index_creations

    @property
    def backward(self) -> str:
        return self.index_drops + self.table_drops + self.schema_drops

    def bindings(self) -> dict[str, str]:
        return {
            "schema_creation": self.schema_creation,
            "table_creations": self.table_creations,
            "index_creations": self.index_creations,
            "index_drops": self.index_drops,
            "table_drops": self.table_drops,
            "schema_drops": self.schema_drops,
        }


class MigrationSynthesizer:
    """Turns a schema model into forward and backward DDL."""

    def __init__(self, type_mapper: TypeMapper | None = None, db_schema: str = ""):
        self.type_mapper = type_mapper or TypeMapper()
        self.db_schema = db_schema

    def qualified(self, table_name: str) -> str:
        if self.db_schema:
            return f"{self.db_schema}.{table_name}"
        return table_name

    def synthesize(self, schema: SchemaModel) -> MigrationScript:
        """
        Build the migration for every table, in table order.

        Args:
            schema: The parsed schema model

        Returns:
            MigrationScript with up and down sections
        """
        schema_creation = ""
        schema_drops = ""
        if self.db_schema:
            schema_creation = f'CREATE SCHEMA IF NOT EXISTS "{self.db_schema}";\n\n'
            schema_drops = f'DROP SCHEMA IF EXISTS "{self.db_schema}" CASCADE;\n'

        table_creations = "".join(self.create_table(table) + "\n\n" for table in schema)
        index_creations = "".join(self.create_indexes(table) for table in schema)
        index_drops = "".join(self.drop_indexes(table) for table in schema)
        table_drops = "".join(f"DROP TABLE IF EXISTS {self.qualified(table.name)};\n" for table in reversed(schema.tables))

        return MigrationScript(
            schema_creation=schema_creation,
            table_creations=table_creations,
            index_creations=index_creations,
            index_drops=index_drops,
            table_drops=table_drops,
            schema_drops=schema_drops,
        )

    def create_table(self, table: Table) -> str:
        """CREATE TABLE statement with missing Meta Contract columns added."""
        declared = declared_meta_columns(column.name for column in table.columns)
        definitions = []
        if "id" not in declared:
            definitions.append(IDENTITY_COLUMN_DEFINITION)

        definitions.extend(self.column_definition(column) for column in table.columns)

        for name, definition in TRAILING_META_DEFINITIONS:
            if name not in declared:
                definitions.append(definition)

        body = ",\n".join(COLUMN_INDENT + definition for definition in definitions)
        return f"CREATE TABLE IF NOT EXISTS {self.qualified(table.name)} (\n{body}\n);"

    def column_definition(self, column: Column) -> str:
        """Column DDL; falls back to the reverse type mapping when the source type is unknown."""
        sql_type = column.source_type or self.type_mapper.map_reverse(column.target_type, column.name)
        parts = [column.name, sql_type]

        if column.is_primary_key:
            parts.append("PRIMARY KEY")
        else:
            if not column.is_nullable:
                parts.append("NOT NULL")
            if column.is_unique:
                parts.append("UNIQUE")
            if column.default_value:
                parts.append(f"DEFAULT {column.default_value}")

        return " ".join(parts)

    @staticmethod
    def index_name(table: Table, column: Column) -> str:
        return f"idx_{table.name}_{column.name}"

    def create_indexes(self, table: Table) -> str:
        return "".join(
            f"CREATE INDEX IF NOT EXISTS {self.index_name(table, column)} ON {self.qualified(table.name)}({column.name});\n"
            for column in table.columns
            if needs_index(column)
        )

    def drop_indexes(self, table: Table) -> str:
        return "".join(
            f"DROP INDEX IF EXISTS {self.qualified(self.index_name(table, column))};\n"
            for column in table.columns
            if needs_index(column)
        )


class MigrationBackend(ArtifactBackend):
    """Renders the synthesized migration into a timestamped goose file."""

    def __init__(self, *args, clock: Callable[[], datetime] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.clock = clock or datetime.now
        self.synthesizer = MigrationSynthesizer(self.type_mapper, self.config.db_schema)

    def migration_filename(self) -> str:
        timestamp = self.clock().strftime(MIGRATION_TIMESTAMP_FORMAT)
        return f"{timestamp}_create_{self.module_name.replace('-', '_')}_tables.sql"

    def generate(self, schema: SchemaModel) -> list[Artifact]:
        script = self.synthesizer.synthesize(schema)
        content = self.render("goose-migration", script.bindings())
        return [
            Artifact(
                path=PurePosixPath("migrations") / self.migration_filename(),
                content=content,
                language="sql",
            )
        ]
