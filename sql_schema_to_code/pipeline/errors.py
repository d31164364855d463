"""
Exceptions raised by the code generation pipeline.
"""

from __future__ import annotations


class CodeGenerationError(Exception):
    """Base class for all pipeline errors."""

    pass


class ParseError(CodeGenerationError):
    """Raised when the schema source cannot be read or is structurally invalid.

    This can happen when:
    - The schema file does not exist or cannot be decoded
    - The same table is declared twice
    """

    pass


class EmptySchemaError(CodeGenerationError):
    """Raised when no table could be parsed from the schema source."""

    pass


class TemplateNotFoundError(CodeGenerationError):
    """Raised when a template name cannot be resolved to a template body."""

    def __init__(self, name: str, path: str):
        self.name = name
        self.path = path
        super().__init__(f"Template '{name}' not found (looked up as {path})")


class ArtifactWriteError(CodeGenerationError):
    """Raised when a generated artifact cannot be written."""

    pass


class ArtifactValidationError(CodeGenerationError):
    """Raised when generated content fails structural validation before writing."""

    pass


class ExternalToolError(CodeGenerationError):
    """Raised when a post-generation tool (formatter, build, lint) fails.

    Never fatal: the generator logs it and records it as a warning.
    """

    def __init__(self, tool: str, message: str, output: str = ""):
        self.tool = tool
        self.output = output
        super().__init__(f"{tool}: {message}")
