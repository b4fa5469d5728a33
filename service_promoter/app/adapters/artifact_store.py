"""
Local staging of archives downloaded from the source server.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional, Union

from shared.errors import StorageError
from shared.logging import get_logger

PathLike = Union[str, Path]


class ArtifactStore:
    """Stages RuleApp and XOM archives under a single directory.

    The store never deletes what it writes; purge the directory between
    runs if needed. Two promotions must not share a staging directory.
    """

    def __init__(self, stage_dir: PathLike = "./data", *, logger: Optional[Any] = None) -> None:
        self.stage_dir = Path(stage_dir)
        self.logger = logger or get_logger("promoter.artifact_store")

    def stage(self, name: str) -> Path:
        """Return the staging path for ``name``."""
        if not self.stage_dir.is_dir():
            raise StorageError(
                str(self.stage_dir),
                f"Staging directory {self.stage_dir} does not exist"
            )
        return self.stage_dir / name

    def ruleapp_archive_path(self, ruleapp_name: str) -> Path:
        return self.stage(f"{ruleapp_name}_ruleapp.jar")

    def xom_archive_path(self, xom_name: str) -> Path:
        return self.stage(xom_name)

    def write(self, chunks: Iterable[bytes], path: PathLike) -> int:
        """Drain ``chunks`` into ``path`` and return the byte count."""
        path = Path(path)
        if not path.parent.is_dir():
            raise StorageError(str(path), f"Staging directory {path.parent} does not exist")
        written = 0
        try:
            with path.open("wb") as handle:
                for chunk in chunks:
                    handle.write(chunk)
                    written += len(chunk)
        except OSError as exc:
            raise StorageError(
                str(path),
                f"Failed to save archive to {path}",
                details={"error": str(exc)}
            ) from exc
        return written

    def read(self, path: PathLike) -> bytes:
        """Full contents of a staged file."""
        path = Path(path)
        self.logger.info("Reading staged archive", path=str(path.absolute()))
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise StorageError(
                str(path),
                f"Failed to read archive from {path}",
                details={"error": str(exc)}
            ) from exc
        self.logger.info("Read staged archive", path=str(path), size=len(data))
        return data
