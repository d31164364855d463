"""
Tests for the line-oriented SQL schema parser.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from sql_schema_to_code.pipeline.errors import ParseError
from sql_schema_to_code.pipeline.schema_ast import SchemaParser

TEST_DATA = Path(__file__).parent / "test_data"


@pytest.fixture
def parser():
    return SchemaParser()


class TestUsersSchema:
    def test_single_table(self, parser):
        result = parser.parse_file(TEST_DATA / "users.sql")
        assert result.schema.table_names == ["users"]
        assert result.dropped_count == 0

        users = result.schema.table("users")
        assert [c.name for c in users.columns] == ["id", "name", "email", "created_at"]

    def test_column_attributes(self, parser):
        users = parser.parse_file(TEST_DATA / "users.sql").schema.table("users")

        id_column = users.column("id")
        assert id_column.is_primary_key
        assert id_column.target_type == "int64"

        name = users.column("name")
        assert name.source_type == "VARCHAR(255)"
        assert not name.is_nullable
        assert not name.is_unique

        email = users.column("email")
        assert email.is_unique
        assert not email.is_nullable

        created_at = users.column("created_at")
        assert created_at.default_value == "NOW()"
        assert created_at.target_type == "time.Time"
        assert created_at.is_nullable

    def test_column_lookup_is_case_insensitive(self, parser):
        users = parser.parse_file(TEST_DATA / "users.sql").schema.table("users")
        assert users.has_column("EMAIL")
        assert users.column("Created_At").name == "created_at"
        assert not users.has_column("updated_at")


class TestTableBoundaries:
    def test_tables_in_source_order(self, parser):
        result = parser.parse_file(TEST_DATA / "accounts_sessions.sql")
        assert result.schema.table_names == ["accounts", "sessions"]
        assert len(result.schema) == 2

    def test_table_level_constraint_is_skipped(self, parser):
        sessions = parser.parse_file(TEST_DATA / "accounts_sessions.sql").schema.table("sessions")
        assert [c.name for c in sessions.columns] == ["id", "account_id", "token", "started_at"]

    def test_qualified_and_quoted_names(self, parser):
        result = parser.parse_file(TEST_DATA / "wearables.sql")
        assert result.schema.table_names == ["activity_sessions", "devices"]

    def test_text_before_closing_marker_is_a_column(self, parser):
        devices = parser.parse_file(TEST_DATA / "wearables.sql").schema.table("devices")
        assert devices.columns[-1].name == "last_seen_time"
        assert devices.columns[-1].source_type == "TIMESTAMPTZ"

    def test_unclosed_table_is_kept(self, parser):
        result = parser.parse("CREATE TABLE notes (\n    body TEXT\n")
        assert result.schema.table_names == ["notes"]
        assert result.schema.table("notes").columns[0].name == "body"

    def test_unclosed_table_closed_by_next_table(self, parser):
        result = parser.parse("CREATE TABLE a (\n    x TEXT\nCREATE TABLE b (\n    y TEXT\n);\n")
        assert result.schema.table_names == ["a", "b"]

    def test_column_on_opening_line(self, parser):
        text = "CREATE TABLE users (id BIGSERIAL PRIMARY KEY,\n    name TEXT NOT NULL\n);\n"
        users = parser.parse(text).schema.table("users")
        assert [c.name for c in users.columns] == ["id", "name"]
        assert users.column("id").is_primary_key

    def test_single_line_table(self, parser):
        text = "CREATE TABLE t (a INT);\nCREATE TABLE u (\n    b NUMERIC(10, 2)\n);\n"
        result = parser.parse(text)
        assert result.schema.table_names == ["t", "u"]
        assert [c.name for c in result.schema.table("t").columns] == ["a"]
        assert [c.name for c in result.schema.table("u").columns] == ["b"]

    def test_single_line_empty_table(self, parser):
        result = parser.parse("CREATE TABLE t ();\nCREATE TABLE u (\n    b TEXT\n);\n")
        assert result.schema.table_names == ["t", "u"]
        assert result.schema.table("t").columns == ()

    def test_opening_line_comment_is_not_a_column(self, parser):
        result = parser.parse("CREATE TABLE t ( -- people\n    a TEXT\n);\n")
        assert [c.name for c in result.schema.table("t").columns] == ["a"]
        assert result.dropped_count == 0

    def test_unparsable_text_on_opening_line_is_dropped(self, parser):
        result = parser.parse("CREATE TABLE t (orphan,\n    a TEXT\n);\n")
        assert [(d.line_number, d.text) for d in result.dropped_lines] == [(1, "orphan,")]

    def test_lines_outside_tables_are_ignored(self, parser):
        text = "CREATE INDEX idx_x ON t(x);\nCREATE TABLE t (\n    x TEXT\n);\nSELECT 1;\n"
        result = parser.parse(text)
        assert result.schema.table_names == ["t"]
        assert result.dropped_count == 0

    def test_duplicate_table_raises(self, parser):
        text = "CREATE TABLE t (\n    x TEXT\n);\nCREATE TABLE t (\n    y TEXT\n);\n"
        with pytest.raises(ParseError, match="more than once"):
            parser.parse(text)

    def test_empty_input(self, parser):
        result = parser.parse("-- nothing here\n\n")
        assert len(result.schema) == 0


class TestColumnLines:
    def test_multi_word_types(self, parser):
        result = parser.parse_file(TEST_DATA / "wearables.sql")
        sessions = result.schema.table("activity_sessions")
        assert sessions.column("distance").source_type == "DOUBLE PRECISION"
        assert sessions.column("distance").target_type == "float64"
        devices = result.schema.table("devices")
        assert devices.column("serial").source_type == "CHARACTER VARYING(64)"
        assert not devices.column("serial").is_nullable

    def test_parenthesized_type_with_spaces(self, parser):
        accounts = parser.parse_file(TEST_DATA / "accounts_sessions.sql").schema.table("accounts")
        balance = accounts.column("balance")
        assert balance.source_type == "NUMERIC(12, 2)"
        assert balance.default_value == "0"
        assert balance.target_type == "float64"

    def test_inline_comment_is_stripped(self, parser):
        sessions = parser.parse_file(TEST_DATA / "wearables.sql").schema.table("activity_sessions")
        is_active = sessions.column("is_active")
        assert is_active.source_type == "BOOLEAN"
        assert is_active.default_value == "TRUE"

    def test_table_level_primary_key_does_not_mark_columns(self, parser):
        sessions = parser.parse_file(TEST_DATA / "wearables.sql").schema.table("activity_sessions")
        assert [c.name for c in sessions.columns] == [
            "user_id",
            "session_id",
            "timestamp",
            "distance",
            "calories",
            "payload",
            "is_active",
        ]
        assert not any(c.is_primary_key for c in sessions.columns)

    def test_mapping_is_attached(self, parser):
        sessions = parser.parse_file(TEST_DATA / "wearables.sql").schema.table("activity_sessions")
        payload = sessions.column("payload")
        assert payload.mapping.target_type == "json.RawMessage"
        assert payload.mapping.persistence_tag == 'gorm:"column:payload;type:jsonb"'

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("CONSTRAINT pk PRIMARY KEY (id)", True),
            ("PRIMARY KEY (id)", True),
            ("FOREIGN KEY (account_id) REFERENCES accounts (id)", True),
            ("UNIQUE (a, b)", True),
            ("CHECK (amount > 0)", True),
            ("id BIGSERIAL PRIMARY KEY", False),
            ("email TEXT UNIQUE", False),
            ("check BOOLEAN", False),
            ("key TEXT NOT NULL", False),
        ],
    )
    def test_constraint_lines(self, line, expected):
        assert SchemaParser.is_constraint_line(line) is expected

    @pytest.mark.parametrize(
        "line",
        [
            "CONSTRAINT date_order_chk CHECK (ends_on >= starts_on),",
            "CONSTRAINT text_unique UNIQUE (starts_on),",
            "CONSTRAINT int_positive CHECK (nights > 0)",
            "CONSTRAINT text PRIMARY KEY (id)",
            "UNIQUE date_range (starts_on, ends_on)",
            "CHECK(nights > 0)",
            "INDEX int_idx (nights)",
        ],
    )
    def test_named_constraints_are_clauses(self, line):
        assert SchemaParser.is_constraint_line(line)

    @pytest.mark.parametrize("line", ["check BOOLEAN,", "key VARCHAR(64) NOT NULL", "index INT4", "unique_code TEXT"])
    def test_columns_named_after_keywords(self, line):
        assert not SchemaParser.is_constraint_line(line)

    def test_named_constraints_never_become_columns(self, parser):
        text = (
            "CREATE TABLE bookings (\n"
            "    id BIGSERIAL PRIMARY KEY,\n"
            "    starts_on DATE NOT NULL,\n"
            "    ends_on DATE NOT NULL,\n"
            "    CONSTRAINT date_order_chk CHECK (ends_on >= starts_on),\n"
            "    CONSTRAINT text_unique UNIQUE (starts_on)\n"
            ");\n"
        )
        result = parser.parse(text)
        bookings = result.schema.table("bookings")
        assert [c.name for c in bookings.columns] == ["id", "starts_on", "ends_on"]
        assert result.dropped_count == 0

    @pytest.mark.parametrize("line", ["orphan", "1abc TEXT", "", ","])
    def test_undecomposable_lines(self, parser, line):
        assert parser.parse_column(line) is None


class TestDroppedLines:
    def test_dropped_lines_are_counted(self, parser):
        result = parser.parse_file(TEST_DATA / "wearables.sql")
        assert result.dropped_count == 2
        assert [d.line_number for d in result.dropped_lines] == [17, 18]
        assert {d.table for d in result.dropped_lines} == {"devices"}
        assert result.dropped_lines[0].text == "orphan_token,"

    def test_dropped_lines_are_logged(self, parser, caplog):
        with caplog.at_level("WARNING"):
            parser.parse_file(TEST_DATA / "wearables.sql")
        assert "Dropped 2 unparsable column line(s)" in caplog.text
        assert "orphan_token" in caplog.text

    def test_surrounding_columns_survive(self, parser):
        devices = parser.parse_file(TEST_DATA / "wearables.sql").schema.table("devices")
        assert [c.name for c in devices.columns] == ["serial", "firmware", "last_seen_time"]


class TestParseFile:
    def test_missing_file_raises_parse_error(self, parser, tmp_path):
        with pytest.raises(ParseError) as excinfo:
            parser.parse_file(tmp_path / "missing.sql")
        assert isinstance(excinfo.value.__cause__, OSError)

    def test_undecodable_file_raises_parse_error(self, parser, tmp_path):
        path = tmp_path / "latin1.sql"
        path.write_bytes(b"CREATE TABLE t (\n    name TEXT DEFAULT '\xe9'\n);\n")
        with pytest.raises(ParseError):
            parser.parse_file(path)
