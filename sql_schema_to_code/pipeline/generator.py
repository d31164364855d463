"""
Pipeline generator - main entry point for the SQL schema to Go service pipeline.

Runs parse, map, render and write as one linear sequence:

1. Parse the schema text into a read-only SchemaModel
2. Render and validate every artifact in memory (Go backend, migration backend)
3. Write the rendered artifacts under the module directory
4. Run the advisory formatter and build verification
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .analyzer.type_mapper import TypeMapper
from .backends import Artifact, GoBackend, MigrationBackend
from .config import CodeGeneratorConfig, OutputMode
from .errors import ArtifactValidationError, ArtifactWriteError, EmptySchemaError, ExternalToolError
from .formatters import Formatter, GoFormatter, GoToolchain
from .schema_ast import ParseResult, SchemaParser
from .template_engine import TemplateEngine, TemplateRegistry, default_registry
from .writer import AtomicWriter

logger = logging.getLogger(__name__)

# Directories created up front, including the ones no artifact lands in
DIRECTORY_SKELETON = (
    "cmd/{module}",
    "internal/config",
    "internal/domain/model",
    "internal/application/dto",
    "internal/interactor/rest",
    "internal/interactor/grpc",
    "internal/repository/implementor/postgres",
    "internal/repository/implementor/cache",
    "migrations",
    "pkg",
    "script",
    "build",
)


@dataclass
class GenerationResult:
    """Outcome of one generation run.

    Attributes:
        module_dir: Root of the generated module
        files: Written files, in generation order
        dropped_lines: Number of column lines the parser could not decompose
        warnings: Advisory failures (formatter, build verification)
    """

    module_dir: Path
    files: list[Path] = field(default_factory=list)
    dropped_lines: int = 0
    warnings: list[str] = field(default_factory=list)


class PipelineGenerator:
    """Compiles a SQL schema into a Go service module."""

    def __init__(
        self,
        config: CodeGeneratorConfig | None = None,
        registry: TemplateRegistry | None = None,
        engine: TemplateEngine | None = None,
        type_mapper: TypeMapper | None = None,
        writer: AtomicWriter | None = None,
        formatters: Sequence[Formatter] | None = None,
        clock: Callable[[], datetime] | None = None,
        generation_command: str = "",
    ):
        """
        Initialize the pipeline generator.

        Args:
            config: Code generation configuration
            registry: Template name to category lookup (defaults to the packaged templates)
            engine: Template engine; built from the registry and config.template_dir if omitted
            type_mapper: Type mapper shared by the parser and the backends
            writer: File writer for the rendered artifacts
            formatters: Post-generation tools; defaults follow the formatter config
            clock: Time source for the migration file name
            generation_command: Command line recorded in the generated README
        """
        self.config = config or CodeGeneratorConfig()
        self.type_mapper = type_mapper or TypeMapper()

        if engine is None:
            template_dir = Path(self.config.template_dir) if self.config.template_dir else None
            engine = TemplateEngine(registry or default_registry(), template_dir=template_dir)
        self.engine = engine

        self.writer = writer or AtomicWriter(atomic=self.config.output.atomic_write)
        self.formatters = list(formatters) if formatters is not None else self._default_formatters()
        self.parser = SchemaParser(self.type_mapper)
        self.backends = [
            GoBackend(self.config, self.engine, self.type_mapper, generation_command=generation_command),
            MigrationBackend(self.config, self.engine, self.type_mapper, clock=clock),
        ]

    def _default_formatters(self) -> list[Formatter]:
        formatters: list[Formatter] = []
        if self.config.formatter.enabled:
            formatters.append(GoFormatter())
        if self.config.verify_build:
            formatters.append(GoToolchain())
        return formatters

    def generate_file(self, schema_path: Path, output_dir: Path) -> GenerationResult:
        """Read a schema file and generate the module under output_dir."""
        return self.generate(self.parser.parse_file(schema_path), output_dir)

    def generate_text(self, text: str, output_dir: Path) -> GenerationResult:
        """Generate the module for schema text under output_dir."""
        return self.generate(self.parser.parse(text), output_dir)

    def generate(self, parse_result: ParseResult, output_dir: Path) -> GenerationResult:
        """
        Render and write every artifact for a parsed schema.

        Args:
            parse_result: Output of the schema parser
            output_dir: Directory the module directory is created in

        Returns:
            GenerationResult with the written files and advisory warnings

        Raises:
            EmptySchemaError: If the schema has no tables (nothing is written)
            TemplateNotFoundError: If a template is missing (nothing is written)
            ArtifactValidationError: If a rendered artifact is malformed (nothing is written)
            ArtifactWriteError: If the module directory exists or a write fails
        """
        schema = parse_result.schema
        if not schema.tables:
            raise EmptySchemaError("No CREATE TABLE statement could be parsed from the schema")

        artifacts = self.render(parse_result)
        if self.config.output.validate_before_write:
            for artifact in artifacts:
                try:
                    self.writer.validate(artifact.content, artifact.language)
                except ArtifactValidationError as e:
                    raise ArtifactValidationError(f"{artifact.path}: {e}") from e

        module_dir = Path(output_dir) / self.config.module_name
        result = GenerationResult(module_dir=module_dir, dropped_lines=parse_result.dropped_count)

        self._prepare_module_dir(module_dir)
        for artifact in artifacts:
            result.files.append(self._write(module_dir, artifact))

        for formatter in self.formatters:
            try:
                formatter.run(module_dir, self.config.formatter)
            except ExternalToolError as e:
                logger.warning("Post-generation step failed (generated files are kept): %s", e)
                if e.output:
                    logger.debug("%s output:\n%s", e.tool, e.output)
                result.warnings.append(str(e))

        logger.info("Generated %d files in %s", len(result.files), module_dir)
        return result

    def render(self, parse_result: ParseResult) -> list[Artifact]:
        """Render every artifact in memory, in generation order."""
        artifacts: list[Artifact] = []
        for backend in self.backends:
            artifacts.extend(backend.generate(parse_result.schema))
        return artifacts

    def _prepare_module_dir(self, module_dir: Path) -> None:
        if module_dir.exists() and self.config.output.mode != OutputMode.FORCE:
            raise ArtifactWriteError(f"Module directory {module_dir} already exists (use force mode to overwrite)")

        try:
            for directory in DIRECTORY_SKELETON:
                (module_dir / directory.format(module=self.config.module_name)).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArtifactWriteError(f"Failed to create {module_dir}: {e}") from e

    def _write(self, module_dir: Path, artifact: Artifact) -> Path:
        path = module_dir.joinpath(*artifact.path.parts)
        self.writer.write(
            path,
            artifact.content,
            language=artifact.language,
            validate=False,
            executable=artifact.executable,
        )
        logger.info("Created: %s", path)
        return path
