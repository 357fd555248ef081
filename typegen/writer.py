# typegen/writer.py
from __future__ import annotations
import logging
from pathlib import Path

from typegen.errors import ArtifactWriteError

logger = logging.getLogger(__name__)


class FileArtifactWriter:
    """Writes rendered artifacts to the local filesystem (UTF-8, LF line endings)."""

    def ensure_dir(self, directory: Path) -> Path:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ArtifactWriteError(str(directory), "Failed to create output directory") from exc
        return directory

    def write_text(self, path: Path, text: str) -> Path:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                f.write(text)
        except OSError as exc:
            raise ArtifactWriteError(str(path)) from exc
        logger.debug("Wrote %s (%d bytes)", path, len(text))
        return path
