"""
Name resolver for entities derived from table names.

Every generated layer takes its struct, variable and path names from
EntityNames, and decides Meta Contract membership through is_meta_column.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ...utils import pluralize, sanitize_identifier, singularize, to_target_case

# Identity and audit columns supplied by the shared MetaField base entity
META_COLUMNS = ("id", "created_at", "updated_at", "deleted_at", "is_deleted")

_META_COLUMN_SET = frozenset(META_COLUMNS)


def is_meta_column(column_name: str) -> bool:
    """Whether a column belongs to the Meta Contract (case-insensitive)."""
    return column_name.lower() in _META_COLUMN_SET


def declared_meta_columns(column_names: Iterable[str]) -> frozenset[str]:
    """Lowercased Meta Contract columns among the given names."""
    return frozenset(name.lower() for name in column_names if is_meta_column(name))


@dataclass(frozen=True)
class EntityNames:
    """Names derived from one table.

    Attributes:
        table_name: Table name as written in the schema
        struct_name: Singular PascalCase name ("users" -> "User")
        entity_var: Lowercase struct name ("user")
        plural_name: Plural PascalCase name ("Users")
        entity_plural: Lowercase plural, used as REST path ("users")
        file_stem: Lowercase table name, used for per-table file names
    """

    table_name: str
    struct_name: str
    entity_var: str
    plural_name: str
    entity_plural: str
    file_stem: str

    @classmethod
    def from_table(cls, table_name: str) -> EntityNames:
        struct_name = singularize(to_target_case(table_name))
        entity_var = sanitize_identifier(struct_name.lower())
        plural_name = pluralize(struct_name)
        return cls(
            table_name=table_name,
            struct_name=struct_name,
            entity_var=entity_var,
            plural_name=plural_name,
            entity_plural=plural_name.lower(),
            file_stem=table_name.lower(),
        )

    @property
    def entity_file(self) -> str:
        """File stem for artifacts named after the entity rather than the table."""
        return self.struct_name.lower()

    @property
    def service_interface(self) -> str:
        return f"I{self.struct_name}Service"

    @property
    def application_service(self) -> str:
        return f"{self.struct_name}Domain"

    @property
    def adapter_name(self) -> str:
        return f"{self.struct_name}Adapter"

    @property
    def repo_name(self) -> str:
        return f"{self.struct_name}Repo"
