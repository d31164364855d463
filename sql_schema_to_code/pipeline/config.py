"""
Configuration for the code generator pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OutputMode(str, Enum):
    """Output mode for file generation.

    Controls behavior when the module directory already exists.
    """

    ERROR_IF_EXISTS = "error"  # Default: raise error if the module directory exists
    FORCE = "force"  # Overwrite generated files


@dataclass
class OutputConfig:
    """Configuration for output file handling.

    Attributes:
        mode: How to handle an existing module directory
        validate_before_write: Whether to check generated content before writing
        atomic_write: Whether to write through a temporary file
    """

    mode: OutputMode = OutputMode.ERROR_IF_EXISTS
    validate_before_write: bool = True
    atomic_write: bool = True


@dataclass
class FormatterConfig:
    """Configuration for post-generation tools."""

    # Whether to run goimports/gofmt over the generated tree
    enabled: bool = True

    # Try goimports before falling back to gofmt
    use_goimports: bool = True

    # Seconds before an external tool is abandoned
    timeout: int = 120


@dataclass
class CodeGeneratorConfig:
    """Configuration options for code generation."""

    # Go module name, also the name of the generated directory
    module_name: str = "service"

    # PostgreSQL schema for the migration (empty = default schema)
    db_schema: str = ""

    # Go version written to go.mod
    go_version: str = "1.22"

    # Directory of template overrides (empty = packaged templates)
    template_dir: str = ""

    # Run go mod tidy / go build / go vet after generation
    verify_build: bool = False

    # Formatter configuration
    formatter: FormatterConfig = field(default_factory=FormatterConfig)

    # Output configuration
    output: OutputConfig = field(default_factory=OutputConfig)

    @staticmethod
    def from_dict(d: dict) -> CodeGeneratorConfig:
        """Create a config from a dictionary."""
        config = CodeGeneratorConfig()
        for k, v in d.items():
            if k == "formatter" and isinstance(v, dict):
                config.formatter = FormatterConfig(**v)
            elif k == "output" and isinstance(v, dict):
                mode = v.get("mode", OutputMode.ERROR_IF_EXISTS)
                if isinstance(mode, str):
                    mode = OutputMode(mode)
                config.output = OutputConfig(
                    mode=mode,
                    validate_before_write=v.get("validate_before_write", True),
                    atomic_write=v.get("atomic_write", True),
                )
            elif hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "module_name": self.module_name,
            "db_schema": self.db_schema,
            "go_version": self.go_version,
            "template_dir": self.template_dir,
            "verify_build": self.verify_build,
            "formatter": {
                "enabled": self.formatter.enabled,
                "use_goimports": self.formatter.use_goimports,
                "timeout": self.formatter.timeout,
            },
            "output": {
                "mode": self.output.mode.value,
                "validate_before_write": self.output.validate_before_write,
                "atomic_write": self.output.atomic_write,
            },
        }
