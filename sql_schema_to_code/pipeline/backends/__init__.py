"""
Artifact backends.

Each backend turns the schema model into a list of rendered artifacts.
"""

from __future__ import annotations

from .base import Artifact, ArtifactBackend
from .go_backend import GoBackend
from .migration_backend import MigrationBackend, MigrationScript, MigrationSynthesizer

__all__ = [
    "Artifact",
    "ArtifactBackend",
    "GoBackend",
    "MigrationBackend",
    "MigrationScript",
    "MigrationSynthesizer",
]
