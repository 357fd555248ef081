# typegen/ports.py
from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Protocol, Sequence

from typegen.descriptors import TypeDescriptor


class MetadataProvider(Protocol):
    """Exposes reflected types from a set of source modules."""

    def discover_export_roots(self, modules: Sequence[str]) -> List[TypeDescriptor]: ...

    def collect_available_types(self, modules: Sequence[str]) -> Dict[str, TypeDescriptor]: ...


class ArtifactSink(Protocol):
    """Persists rendered artifacts."""

    def ensure_dir(self, directory: Path) -> Path: ...

    def write_text(self, path: Path, text: str) -> Path: ...
