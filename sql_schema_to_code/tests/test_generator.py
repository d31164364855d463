"""
End-to-end tests for the pipeline generator.

These tests run the whole pipeline (parse, render, write, post-generation
tools) into a temporary directory.
"""

from __future__ import annotations

import subprocess
from datetime import datetime
from pathlib import Path

import jinja2
import pytest

from sql_schema_to_code.pipeline import (
    ArtifactWriteError,
    CodeGeneratorConfig,
    EmptySchemaError,
    ExternalToolError,
    OutputMode,
    PipelineGenerator,
    TemplateNotFoundError,
)
from sql_schema_to_code.pipeline.formatters import Formatter, GoFormatter, GoToolchain
from sql_schema_to_code.pipeline.template_engine import DEFAULT_TEMPLATE_CATEGORIES, TEMPLATE_DIR, TemplateEngine
from sql_schema_to_code.pipeline.template_engine import default_registry

TEST_DATA = Path(__file__).parent / "test_data"
FIXED_TIME = datetime(2024, 6, 1, 12, 30, 0)


def make_generator(module_name="user-service", formatters=(), **config_values) -> PipelineGenerator:
    config = CodeGeneratorConfig(module_name=module_name, **config_values)
    return PipelineGenerator(config, formatters=list(formatters), clock=lambda: FIXED_TIME)


def read_tree(root: Path) -> dict[str, str]:
    return {str(p.relative_to(root)): p.read_text() for p in sorted(root.rglob("*")) if p.is_file()}


class FailingFormatter(Formatter):
    name = "failing"

    def run(self, module_dir, config):
        raise ExternalToolError("gofmt -w .", "exited with status 2", "main.go:1: syntax error")


class RecordingFormatter(Formatter):
    name = "recording"

    def __init__(self):
        self.calls = []

    def run(self, module_dir, config):
        self.calls.append(module_dir)


class TestUsersScenario:
    @pytest.fixture
    def result(self, tmp_path):
        return make_generator().generate_file(TEST_DATA / "users.sql", tmp_path)

    def test_files_written(self, result, tmp_path):
        module_dir = tmp_path / "user-service"
        assert result.module_dir == module_dir
        assert (module_dir / "go.mod").read_text().startswith("module user-service\n")
        assert (module_dir / "cmd/user-service/main.go").is_file()
        assert len(result.files) == 23
        assert all(path.is_file() for path in result.files)
        assert result.warnings == []
        assert result.dropped_lines == 0

    def test_domain_model(self, result):
        model = (result.module_dir / "internal/domain/model/users.go").read_text()
        assert "type User struct {\n\tMetaField\n" in model
        assert "\tName string" in model
        assert "\tEmail string" in model
        assert "CreatedAt" not in model
        assert "\tID " not in model

    def test_meta_field_supplies_identity_and_audit(self, result):
        meta = (result.module_dir / "internal/domain/model/meta.go").read_text()
        for field_name in ["ID", "CreatedAt", "UpdatedAt", "DeletedAt", "IsDeleted"]:
            assert f"\t{field_name} " in meta

    def test_dto(self, result):
        dto = (result.module_dir / "internal/application/dto/user.go").read_text()
        body = dto.split("type User struct {\n", 1)[1].split("}", 1)[0]
        assert [line.split()[0] for line in body.splitlines()] == ["ID", "Name", "Email"]

    def test_migration(self, result):
        (migration,) = (result.module_dir / "migrations").iterdir()
        assert migration.name == "20240601123000_create_user_service_tables.sql"
        up, down = migration.read_text().split("-- +goose Down")

        positions = [
            up.index(definition)
            for definition in [
                "id BIGSERIAL PRIMARY KEY",
                "name VARCHAR(255) NOT NULL",
                "email VARCHAR(255) NOT NULL UNIQUE",
                "created_at TIMESTAMP DEFAULT NOW()",
                "updated_at TIMESTAMPTZ DEFAULT NOW()",
                "deleted_at TIMESTAMPTZ",
                "is_deleted BOOLEAN DEFAULT FALSE",
            ]
        ]
        assert positions == sorted(positions)
        assert "CREATE TABLE IF NOT EXISTS users (" in up
        assert "DROP TABLE IF EXISTS users;" in down

    def test_directory_skeleton(self, result):
        for directory in ["internal/interactor/grpc", "internal/repository/implementor/cache", "pkg", "build"]:
            assert (result.module_dir / directory).is_dir()

    def test_build_scripts_executable(self, result):
        assert (result.module_dir / "script/build.sh").stat().st_mode & 0o111
        assert not (result.module_dir / "Makefile").stat().st_mode & 0o111


class TestAccountsSessionsScenario:
    def test_migration_order_and_index(self, tmp_path):
        result = make_generator(module_name="billing").generate_file(TEST_DATA / "accounts_sessions.sql", tmp_path)
        (migration,) = (result.module_dir / "migrations").iterdir()
        up, down = migration.read_text().split("-- +goose Down")

        assert up.index("CREATE TABLE IF NOT EXISTS accounts") < up.index("CREATE TABLE IF NOT EXISTS sessions")
        assert down.index("DROP TABLE IF EXISTS sessions") < down.index("DROP TABLE IF EXISTS accounts")
        assert "CREATE INDEX IF NOT EXISTS idx_sessions_account_id ON sessions(account_id);" in up
        assert "DROP INDEX IF EXISTS idx_sessions_account_id;" in down

    def test_per_table_and_aggregate_files(self, tmp_path):
        result = make_generator(module_name="billing").generate_file(TEST_DATA / "accounts_sessions.sql", tmp_path)
        rest_dir = result.module_dir / "internal/interactor/rest"
        assert (rest_dir / "accounts_handler.go").is_file()
        assert (rest_dir / "sessions_handler.go").is_file()
        parameters = (rest_dir / "rest_parameter.go").read_text()
        assert parameters.count("var (") == 1
        assert "accountFilter" in parameters and "sessionFilter" in parameters


class TestDeterminism:
    def test_two_runs_are_identical(self, tmp_path):
        first = make_generator().generate_file(TEST_DATA / "wearables.sql", tmp_path / "a")
        second = make_generator().generate_file(TEST_DATA / "wearables.sql", tmp_path / "b")
        assert read_tree(first.module_dir) == read_tree(second.module_dir)

    def test_render_is_pure(self):
        generator = make_generator()
        parse_result = generator.parser.parse_file(TEST_DATA / "accounts_sessions.sql")
        assert generator.render(parse_result) == generator.render(parse_result)


class TestFailFast:
    def test_empty_schema_leaves_no_output(self, tmp_path):
        schema = tmp_path / "empty.sql"
        schema.write_text("-- no tables\nCREATE INDEX idx ON t(x);\n")
        out = tmp_path / "out"

        with pytest.raises(EmptySchemaError):
            make_generator().generate_file(schema, out)
        assert not out.exists()

    def test_missing_template_leaves_no_output(self, tmp_path):
        sources = {
            DEFAULT_TEMPLATE_CATEGORIES[name] + f"/{name}.template": (
                TEMPLATE_DIR / DEFAULT_TEMPLATE_CATEGORIES[name] / f"{name}.template"
            ).read_text()
            for name in DEFAULT_TEMPLATE_CATEGORIES
            if name != "goose-migration"
        }
        engine = TemplateEngine(default_registry(), loader=jinja2.DictLoader(sources))
        generator = PipelineGenerator(
            CodeGeneratorConfig(module_name="svc"), engine=engine, formatters=[], clock=lambda: FIXED_TIME
        )

        with pytest.raises(TemplateNotFoundError) as excinfo:
            generator.generate_file(TEST_DATA / "users.sql", tmp_path)
        assert excinfo.value.name == "goose-migration"
        assert not (tmp_path / "svc").exists()

    def test_missing_schema_file(self, tmp_path):
        from sql_schema_to_code.pipeline import ParseError

        with pytest.raises(ParseError):
            make_generator().generate_file(tmp_path / "missing.sql", tmp_path)

    def test_dropped_lines_reported(self, tmp_path):
        result = make_generator().generate_file(TEST_DATA / "wearables.sql", tmp_path)
        assert result.dropped_lines == 2


class TestOutputModes:
    def test_existing_module_dir_is_an_error(self, tmp_path):
        (tmp_path / "user-service").mkdir()
        with pytest.raises(ArtifactWriteError, match="already exists"):
            make_generator().generate_file(TEST_DATA / "users.sql", tmp_path)
        assert list((tmp_path / "user-service").iterdir()) == []

    def test_force_overwrites(self, tmp_path):
        module_dir = tmp_path / "user-service"
        module_dir.mkdir()
        (module_dir / "go.mod").write_text("stale")

        make_generator(output=_force_output()).generate_file(TEST_DATA / "users.sql", tmp_path)
        assert (module_dir / "go.mod").read_text().startswith("module user-service")

    def test_validation_failure_aborts(self, tmp_path):
        engine = TemplateEngine(
            default_registry(),
            template_dir=_templates_with(tmp_path / "templates", "domain/domain-model.template", "type Broken {\n"),
        )
        generator = PipelineGenerator(
            CodeGeneratorConfig(module_name="svc"), engine=engine, formatters=[], clock=lambda: FIXED_TIME
        )
        from sql_schema_to_code.pipeline import ArtifactValidationError

        with pytest.raises(ArtifactValidationError, match="internal/domain/model/users.go"):
            generator.generate_file(TEST_DATA / "users.sql", tmp_path / "out")
        assert not (tmp_path / "out").exists()

        # Nothing half-written blocks the next run in the default mode
        fixed = PipelineGenerator(CodeGeneratorConfig(module_name="svc"), formatters=[], clock=lambda: FIXED_TIME)
        result = fixed.generate_file(TEST_DATA / "users.sql", tmp_path / "out")
        assert (result.module_dir / "internal/domain/model/users.go").is_file()


def _force_output():
    from sql_schema_to_code.pipeline import OutputConfig

    return OutputConfig(mode=OutputMode.FORCE)


def _templates_with(root: Path, relative: str, body: str) -> Path:
    """Copy of the packaged templates with one file replaced."""
    for source in TEMPLATE_DIR.rglob("*.template"):
        target = root / source.relative_to(TEMPLATE_DIR)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(source.read_text())
    (root / relative).write_text(body)
    return root


class TestPostGenerationTools:
    def test_tool_failure_is_a_warning(self, tmp_path, caplog):
        generator = make_generator(formatters=[FailingFormatter()])
        with caplog.at_level("WARNING"):
            result = generator.generate_file(TEST_DATA / "users.sql", tmp_path)

        assert result.warnings == ["gofmt -w .: exited with status 2"]
        assert "Post-generation step failed" in caplog.text
        assert (result.module_dir / "go.mod").is_file()

    def test_tools_run_after_writing(self, tmp_path):
        recorder = RecordingFormatter()
        result = make_generator(formatters=[recorder]).generate_file(TEST_DATA / "users.sql", tmp_path)
        assert recorder.calls == [result.module_dir]

    def test_default_formatters_follow_config(self):
        config = CodeGeneratorConfig(verify_build=True)
        generator = PipelineGenerator(config)
        assert [type(f) for f in generator.formatters] == [GoFormatter, GoToolchain]

        config = CodeGeneratorConfig()
        config.formatter.enabled = False
        assert PipelineGenerator(config).formatters == []

    def test_missing_go_binaries_do_not_fail(self, tmp_path, monkeypatch):
        def missing(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(subprocess, "run", missing)
        monkeypatch.setattr(Formatter, "is_available", staticmethod(lambda executable: False))

        generator = PipelineGenerator(CodeGeneratorConfig(module_name="svc", verify_build=True), clock=lambda: FIXED_TIME)
        result = generator.generate_file(TEST_DATA / "users.sql", tmp_path)

        assert len(result.warnings) == 2
        assert result.warnings[0].startswith("gofmt -w .: executable not found")
        assert result.warnings[1].startswith("go mod tidy: executable not found")
        assert (tmp_path / "svc" / "go.mod").is_file()

    def test_non_zero_exit_is_a_warning(self, tmp_path, monkeypatch):
        def failing(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="boom")

        monkeypatch.setattr(subprocess, "run", failing)
        monkeypatch.setattr(Formatter, "is_available", staticmethod(lambda executable: True))

        result = make_generator(formatters=[GoFormatter()]).generate_file(TEST_DATA / "users.sql", tmp_path)
        assert result.warnings == ["gofmt -w .: exited with status 1"]
