"""
Base class for artifact backends.

Defines the interface that every generator of output files implements.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePosixPath

from ..analyzer.type_mapper import TypeMapper
from ..config import CodeGeneratorConfig
from ..schema_ast.nodes import SchemaModel
from ..template_engine import TemplateEngine


@dataclass(frozen=True)
class Artifact:
    """One generated file, not yet written.

    Attributes:
        path: Path relative to the module directory
        content: Rendered file content
        language: Language used for pre-write validation ("go", "sql", "")
        executable: Whether the file should be marked executable
    """

    path: PurePosixPath
    content: str
    language: str = ""
    executable: bool = False


class ArtifactBackend(ABC):
    """Abstract base class for artifact backends."""

    def __init__(
        self,
        config: CodeGeneratorConfig,
        engine: TemplateEngine,
        type_mapper: TypeMapper | None = None,
    ):
        """
        Initialize the backend.

        Args:
            config: Code generation configuration
            engine: Template engine used for every render
            type_mapper: Type mapper shared with the parser
        """
        self.config = config
        self.engine = engine
        self.type_mapper = type_mapper or TypeMapper()

    @property
    def module_name(self) -> str:
        return self.config.module_name

    def render(self, template_name: str, bindings: dict[str, str]) -> str:
        return self.engine.render(template_name, bindings)

    @abstractmethod
    def generate(self, schema: SchemaModel) -> list[Artifact]:
        """
        Generate artifacts for a schema.

        Args:
            schema: The parsed schema model (never mutated)

        Returns:
            Artifacts in generation order
        """
