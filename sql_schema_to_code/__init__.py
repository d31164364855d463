"""SQL Schema to Code Generator

A Python package for generating a hexagonal Go service (GORM models, DTOs,
application and interactor layers, gin REST handlers and goose migrations)
from SQL CREATE TABLE declarations.
"""

__version__ = "0.1.0"

from .pipeline import (
    AtomicWriter,
    CodeGenerationError,
    CodeGeneratorConfig,
    FormatterConfig,
    GenerationResult,
    OutputConfig,
    OutputMode,
    PipelineGenerator,
)

__all__ = [
    "PipelineGenerator",
    "GenerationResult",
    "CodeGeneratorConfig",
    "FormatterConfig",
    "OutputConfig",
    "OutputMode",
    "CodeGenerationError",
    "AtomicWriter",
]
