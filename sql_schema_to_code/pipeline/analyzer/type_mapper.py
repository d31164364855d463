"""
Type mapper between SQL column types and Go field types.

The forward direction is total: every source type string yields a Go type,
falling back to string. The reverse direction is a best-effort heuristic
used by the migration synthesizer when a column carries no source type.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

DEFAULT_TARGET_TYPE = "string"
DEFAULT_SOURCE_TYPE = "TEXT"

# Leading alphabetic run, i.e. the type without size/precision qualifiers
_BASE_TYPE_PATTERN = re.compile(r"^[A-Z]+")

TYPE_FAMILIES: dict[str, tuple[str, ...]] = {
    "integer": ("INT", "INTEGER", "INT2", "INT4", "INT8", "SMALLINT", "BIGINT", "SERIAL", "SMALLSERIAL", "BIGSERIAL"),
    "text": ("VARCHAR", "TEXT", "CHAR", "CHARACTER", "CITEXT"),
    "boolean": ("BOOLEAN", "BOOL"),
    "datetime": ("TIMESTAMP", "TIMESTAMPTZ", "DATETIME", "DATE", "TIME", "TIMETZ"),
    "decimal": ("DECIMAL", "NUMERIC", "FLOAT", "FLOAT4", "FLOAT8", "REAL", "DOUBLE", "MONEY"),
    "json": ("JSON", "JSONB"),
    "uuid": ("UUID",),
    "binary": ("BYTEA", "BLOB"),
}

FAMILY_TARGET_TYPES: dict[str, str] = {
    "integer": "int64",
    "text": "string",
    "boolean": "bool",
    "datetime": "time.Time",
    "decimal": "float64",
    "json": "json.RawMessage",
    "uuid": "string",
    "binary": "[]byte",
}

# Go packages needed by a target type
TARGET_TYPE_IMPORTS: dict[str, tuple[str, ...]] = {
    "time.Time": ("time",),
    "json.RawMessage": ("encoding/json",),
}

# Fallback SQL type per Go type, consulted after the name-based rules
TARGET_TYPE_DEFAULTS: dict[str, str] = {
    "string": "TEXT",
    "int": "INTEGER",
    "int32": "INTEGER",
    "int64": "BIGINT",
    "float32": "REAL",
    "float64": "DOUBLE PRECISION",
    "bool": "BOOLEAN",
    "time.Time": "TIMESTAMPTZ",
    "json.RawMessage": "JSONB",
    "[]byte": "BYTEA",
}

REFLECT_KINDS: dict[str, str] = {
    "int64": "reflect.Int64",
    "float64": "reflect.Float64",
    "bool": "reflect.Bool",
}

INTEGER_TARGET_TYPES = {"int", "int32", "int64", "uint"}
AUDIT_TIMESTAMP_COLUMNS = {"created_at", "updated_at", "deleted_at"}
COUNT_NAME_HINTS = ("count", "total", "qty", "quantity", "mins", "idx", "number", "battery")
MEASUREMENT_NAME_HINTS = (
    "distance",
    "calories",
    "threshold",
    "ratio",
    "rate",
    "percent",
    "weight",
    "height",
    "amount",
    "price",
    "score",
)

_FAMILY_BY_BASE_TYPE = {base: family for family, bases in TYPE_FAMILIES.items() for base in bases}
KNOWN_BASE_TYPES = frozenset(_FAMILY_BY_BASE_TYPE)


@dataclass(frozen=True)
class TypeMapping:
    """Resolved target type and tags for one column.

    Attributes:
        target_type: Go type of the generated field (e.g. "int64", "time.Time")
        persistence_tag: GORM struct tag, e.g. gorm:"column:name;not null"
        serialization_tag: JSON struct tag, e.g. json:"name,omitempty"
        imports: Go import paths the target type needs
    """

    target_type: str
    persistence_tag: str
    serialization_tag: str
    imports: tuple[str, ...] = ()

    @property
    def struct_tags(self) -> str:
        """Both tags in one backquoted Go struct tag."""
        return f"`{self.persistence_tag} {self.serialization_tag}`"


def base_type(source_type: str) -> str:
    """Return the uppercased leading alphabetic run of a source type.

    Examples:
        "varchar(255)" -> "VARCHAR"
        "DOUBLE PRECISION" -> "DOUBLE"
        "NUMERIC(10,2)" -> "NUMERIC"
    """
    match = _BASE_TYPE_PATTERN.match(source_type.strip().upper())
    return match.group(0) if match else ""


def type_family(source_type: str) -> str | None:
    """Return the family a source type belongs to, or None if unrecognized."""
    return _FAMILY_BY_BASE_TYPE.get(base_type(source_type))


@dataclass(frozen=True)
class ReverseRule:
    """One step of the reverse mapping: the first rule whose predicate holds wins.

    Predicates and resolvers receive the Go type and the lowercased column name.
    """

    name: str
    predicate: Callable[[str, str], bool]
    resolver: Callable[[str, str], str]


def _constant(source_type: str) -> Callable[[str, str], str]:
    return lambda target_type, column_name: source_type


def _contains_any(column_name: str, hints: tuple[str, ...]) -> bool:
    return any(hint in column_name for hint in hints)


DEFAULT_REVERSE_RULES: tuple[ReverseRule, ...] = (
    ReverseRule(
        "identity",
        lambda target_type, column_name: column_name == "id",
        _constant("BIGSERIAL"),
    ),
    ReverseRule(
        "foreign_key",
        lambda target_type, column_name: column_name.endswith("_id") and target_type in INTEGER_TARGET_TYPES,
        _constant("BIGINT"),
    ),
    ReverseRule(
        "audit_timestamp",
        lambda target_type, column_name: column_name in AUDIT_TIMESTAMP_COLUMNS,
        _constant("TIMESTAMPTZ"),
    ),
    ReverseRule(
        "unix_timestamp",
        lambda target_type, column_name: target_type in INTEGER_TARGET_TYPES
        and ("timestamp" in column_name or column_name.endswith("_ts")),
        _constant("BIGINT"),
    ),
    ReverseRule(
        "count",
        lambda target_type, column_name: target_type not in TARGET_TYPE_DEFAULTS
        and _contains_any(column_name, COUNT_NAME_HINTS),
        _constant("INTEGER"),
    ),
    ReverseRule(
        "measurement",
        lambda target_type, column_name: target_type not in TARGET_TYPE_DEFAULTS
        and _contains_any(column_name, MEASUREMENT_NAME_HINTS),
        _constant("DOUBLE PRECISION"),
    ),
    ReverseRule(
        "target_type_default",
        lambda target_type, column_name: target_type in TARGET_TYPE_DEFAULTS,
        lambda target_type, column_name: TARGET_TYPE_DEFAULTS[target_type],
    ),
)


class TypeMapper:
    """Maps SQL types to Go types and back."""

    def __init__(self, reverse_rules: tuple[ReverseRule, ...] = DEFAULT_REVERSE_RULES):
        self.reverse_rules = reverse_rules

    def map_forward(
        self,
        source_type: str,
        column_name: str,
        is_primary_key: bool = False,
        is_nullable: bool = True,
    ) -> TypeMapping:
        """
        Map a SQL type to a Go type plus GORM and JSON tags.

        Args:
            source_type: Raw SQL type, e.g. "VARCHAR(255)"
            column_name: Column name as written in the schema
            is_primary_key: Whether the column is the primary key
            is_nullable: Whether the column accepts NULL

        Returns:
            TypeMapping; unknown types map to string
        """
        family = type_family(source_type)
        target_type = FAMILY_TARGET_TYPES.get(family, DEFAULT_TARGET_TYPE)

        gorm_parts = [f"column:{column_name.lower()}"]
        if is_primary_key:
            gorm_parts.append("primarykey")
        if not is_nullable:
            gorm_parts.append("not null")
        if family == "json":
            if "JSONB" in source_type.upper():
                gorm_parts.append("type:jsonb")
            else:
                gorm_parts.append("type:json")

        return TypeMapping(
            target_type=target_type,
            persistence_tag=f'gorm:"{";".join(gorm_parts)}"',
            serialization_tag=f'json:"{column_name},omitempty"',
            imports=TARGET_TYPE_IMPORTS.get(target_type, ()),
        )

    def map_reverse(self, target_type: str, column_name: str) -> str:
        """
        Guess a SQL type for a Go type, using the column name as a hint.

        Not an inverse of map_forward.

        Args:
            target_type: Go type, e.g. "int64"
            column_name: Column name

        Returns:
            SQL type literal; TEXT when no rule applies
        """
        lowered = column_name.lower()
        for rule in self.reverse_rules:
            if rule.predicate(target_type, lowered):
                return rule.resolver(target_type, lowered)
        return DEFAULT_SOURCE_TYPE

    def matching_rule(self, target_type: str, column_name: str) -> str | None:
        """Name of the reverse rule that would resolve this column, if any."""
        lowered = column_name.lower()
        for rule in self.reverse_rules:
            if rule.predicate(target_type, lowered):
                return rule.name
        return None

    @staticmethod
    def reflect_kind(target_type: str) -> str:
        """reflect.Kind literal used by the REST query descriptors."""
        return REFLECT_KINDS.get(target_type, "reflect.String")
