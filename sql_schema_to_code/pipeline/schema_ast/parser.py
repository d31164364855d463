"""
SQL schema parser that builds the schema model.

Phase 1 of the pipeline: read CREATE TABLE blocks line by line into tables
and columns. Only a line-oriented subset of SQL is recognized; column lines
that cannot be decomposed are dropped and reported, never guessed.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ..analyzer.type_mapper import KNOWN_BASE_TYPES, TypeMapper, base_type
from ..errors import ParseError
from .nodes import Column, DroppedLine, ParseResult, SchemaModel, Table

logger = logging.getLogger(__name__)

CREATE_TABLE_PATTERN = re.compile(
    r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(?:[\"`]?\w+[\"`]?\.)?[\"`]?(\w+)[\"`]?\s*\(",
    re.IGNORECASE,
)

# Table-level clauses; inline markers such as "id BIGSERIAL PRIMARY KEY" are columns
CONSTRAINT_PATTERN = re.compile(
    r"^(CONSTRAINT|PRIMARY\s+KEY|FOREIGN\s+KEY|UNIQUE|CHECK|INDEX|KEY)\b",
    re.IGNORECASE,
)

# These always open a clause, never a column named after the keyword
CLAUSE_ONLY_PATTERN = re.compile(r"^(CONSTRAINT|PRIMARY\s+KEY|FOREIGN\s+KEY)\b", re.IGNORECASE)
TYPE_QUALIFIER_PATTERN = re.compile(r"\(.*$")

DEFAULT_PATTERN = re.compile(r"DEFAULT\s+([^,\s]+)", re.IGNORECASE)
PRIMARY_KEY_PATTERN = re.compile(r"\bPRIMARY\s+KEY\b", re.IGNORECASE)
NOT_NULL_PATTERN = re.compile(r"\bNOT\s+NULL\b", re.IGNORECASE)
UNIQUE_PATTERN = re.compile(r"\bUNIQUE\b", re.IGNORECASE)
COLUMN_NAME_PATTERN = re.compile(r"^[\"`]?([A-Za-z_][\w$]*)[\"`]?$")

COMMENT_PREFIXES = ("--", "/*")
TABLE_END_MARKER = ");"

# Two-token types merged by lookahead
MULTI_WORD_TYPES = {
    ("DOUBLE", "PRECISION"),
    ("CHARACTER", "VARYING"),
    ("BIT", "VARYING"),
}


class SchemaParser:
    """Parses SQL CREATE TABLE statements into a SchemaModel."""

    def __init__(self, type_mapper: TypeMapper | None = None):
        self.type_mapper = type_mapper or TypeMapper()

    def parse_file(self, path: Path | str) -> ParseResult:
        """
        Parse a schema file.

        Args:
            path: Path to a UTF-8 SQL file

        Returns:
            ParseResult with the schema model and dropped lines

        Raises:
            ParseError: If the file cannot be read
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ParseError(f"Failed to read SQL schema {path}: {e}") from e
        return self.parse(text)

    def parse(self, text: str) -> ParseResult:
        """
        Parse schema text.

        Args:
            text: SQL text containing CREATE TABLE blocks

        Returns:
            ParseResult with tables in source order

        Raises:
            ParseError: If a table name is declared twice
        """
        tables: list[Table] = []
        dropped: list[DroppedLine] = []
        current_name: str | None = None
        current_columns: list[Column] = []
        seen: set[str] = set()

        def close_table() -> None:
            if current_name in seen:
                raise ParseError(f"Table '{current_name}' is declared more than once")
            seen.add(current_name)
            tables.append(Table(name=current_name, columns=tuple(current_columns)))

        for line_number, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.strip()

            if not line or line.startswith(COMMENT_PREFIXES):
                continue

            match = CREATE_TABLE_PATTERN.search(line)
            if match:
                if current_name is not None:
                    logger.warning("Table '%s' was not closed before line %d; closing it", current_name, line_number)
                    close_table()
                current_name = match.group(1)
                current_columns = []
                # Text after the opening parenthesis is a body line of its own
                line = line[match.end() :].strip()
                if not line or line.startswith(COMMENT_PREFIXES):
                    continue

            if current_name is None:
                continue

            if TABLE_END_MARKER in line or line.startswith(")"):
                # Text before the closing marker is the last column
                end = line.rfind(TABLE_END_MARKER)
                remainder = line[:end].strip() if end > 0 else ""
                if remainder:
                    self._add_column(remainder, line_number, current_name, current_columns, dropped)
                close_table()
                current_name = None
                continue

            self._add_column(line, line_number, current_name, current_columns, dropped)

        if current_name is not None:
            logger.warning("Table '%s' is missing its closing '%s'", current_name, TABLE_END_MARKER)
            close_table()

        if dropped:
            logger.warning("Dropped %d unparsable column line(s)", len(dropped))

        return ParseResult(schema=SchemaModel(tables=tuple(tables)), dropped_lines=tuple(dropped))

    def _add_column(
        self,
        line: str,
        line_number: int,
        table_name: str,
        columns: list[Column],
        dropped: list[DroppedLine],
    ) -> None:
        if self.is_constraint_line(line):
            return
        column = self.parse_column(line)
        if column is None:
            logger.warning("Line %d in table '%s' is not a column definition: %s", line_number, table_name, line)
            dropped.append(DroppedLine(line_number=line_number, text=line, table=table_name))
            return
        columns.append(column)

    @staticmethod
    def is_constraint_line(line: str) -> bool:
        """Whether a line is a table-level constraint clause.

        A keyword followed by exactly a known base type ("check BOOLEAN",
        "key VARCHAR(64)") is a column named after the keyword. CONSTRAINT,
        PRIMARY KEY and FOREIGN KEY lines are always clauses.
        """
        stripped = line.strip()
        if not CONSTRAINT_PATTERN.match(stripped):
            return False
        if CLAUSE_ONLY_PATTERN.match(stripped):
            return True
        parts = stripped.split()
        if len(parts) < 2:
            return True
        bare_type = TYPE_QUALIFIER_PATTERN.sub("", parts[1]).rstrip(",").upper()
        return bare_type not in KNOWN_BASE_TYPES

    def parse_column(self, line: str) -> Column | None:
        """
        Decompose one column definition line.

        Args:
            line: A line such as "email VARCHAR(255) UNIQUE NOT NULL,"

        Returns:
            Column, or None if the line has no name and type
        """
        line = line.split("--", 1)[0].strip().rstrip(",").strip()
        parts = line.split()
        if len(parts) < 2:
            return None

        name_match = COLUMN_NAME_PATTERN.match(parts[0])
        if not name_match:
            return None
        name = name_match.group(1)

        type_tokens, rest_tokens = self._split_type(parts[1:])
        column_type = " ".join(type_tokens).rstrip(",")
        if not column_type:
            return None

        rest = " ".join(rest_tokens)
        is_primary_key = bool(PRIMARY_KEY_PATTERN.search(rest))
        is_nullable = not NOT_NULL_PATTERN.search(rest)
        is_unique = bool(UNIQUE_PATTERN.search(rest))
        default_match = DEFAULT_PATTERN.search(rest)
        default_value = default_match.group(1) if default_match else None

        return Column(
            name=name,
            source_type=column_type,
            is_primary_key=is_primary_key,
            is_nullable=is_nullable,
            default_value=default_value,
            is_unique=is_unique,
            mapping=self.type_mapper.map_forward(column_type, name, is_primary_key, is_nullable),
        )

    @staticmethod
    def _split_type(tokens: list[str]) -> tuple[list[str], list[str]]:
        """Split the tokens after the column name into type tokens and the rest."""
        count = 1
        if len(tokens) > 1 and (base_type(tokens[0]), base_type(tokens[1])) in MULTI_WORD_TYPES:
            count = 2

        # Keep "NUMERIC(10, 2)" together
        type_text = " ".join(tokens[:count])
        while type_text.count("(") > type_text.count(")") and count < len(tokens):
            count += 1
            type_text = " ".join(tokens[:count])

        return tokens[:count], tokens[count:]
