# typegen/errors.py
from __future__ import annotations


class TypeGenError(Exception):
    pass


class ModuleLoadError(TypeGenError):
    """A configured module, file or directory could not be found or imported."""

    def __init__(self, target: str, message: str):
        super().__init__(f"{message}: {target}")
        self.target = target


class EnumSourceError(TypeGenError):
    """Connecting to, or querying, the enum data source failed."""


class GenerationError(TypeGenError):
    """Generating the artifact for one root type failed."""

    def __init__(self, type_name: str, message: str):
        super().__init__(f"{message}: {type_name}")
        self.type_name = type_name


class ArtifactWriteError(TypeGenError):
    def __init__(self, path: str, message: str = "Failed to write artifact"):
        super().__init__(f"{message}: {path}")
        self.path = path
