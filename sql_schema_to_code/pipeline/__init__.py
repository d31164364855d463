"""
Pipeline - SQL schema to Go service generator.

This module compiles line-oriented CREATE TABLE declarations into a
hexagonal Go service in a few linear phases:

1. Phase 1 (Parser): Parse the schema text into a read-only SchemaModel
2. Phase 2 (Analyzer): Map column types and derive entity names
3. Phase 3 (Backends): Render every artifact through the template engine
4. Phase 4 (Writer): Write the rendered artifacts atomically
5. Phase 5 (Formatters): Optional gofmt/goimports and go build, advisory only
"""

from __future__ import annotations

from .config import CodeGeneratorConfig, FormatterConfig, OutputConfig, OutputMode
from .errors import (
    ArtifactValidationError,
    ArtifactWriteError,
    CodeGenerationError,
    EmptySchemaError,
    ExternalToolError,
    ParseError,
    TemplateNotFoundError,
)
from .generator import GenerationResult, PipelineGenerator
from .template_engine import TemplateEngine, TemplateRegistry, default_registry
from .writer import AtomicWriter

__all__ = [
    "PipelineGenerator",
    "GenerationResult",
    "CodeGeneratorConfig",
    "FormatterConfig",
    "OutputConfig",
    "OutputMode",
    "TemplateEngine",
    "TemplateRegistry",
    "default_registry",
    "AtomicWriter",
    "CodeGenerationError",
    "ParseError",
    "EmptySchemaError",
    "TemplateNotFoundError",
    "ArtifactWriteError",
    "ArtifactValidationError",
    "ExternalToolError",
]
