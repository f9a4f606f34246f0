from __future__ import annotations

import logging
import os
from pathlib import Path

from services.api.app.services.artifact_base import ArtifactStoreError, check_artifact_name

logger = logging.getLogger(__name__)


class LocalArtifactStore:
    """Keeps generated documents in a local directory, one file per filename.

    Storing under an existing name overwrites the previous document.
    """

    kind = "local"

    def __init__(self, root: Path) -> None:
        self._root = root

    @classmethod
    def from_env(cls) -> "LocalArtifactStore":
        root = Path(os.getenv("PRINTSHOP_ARTIFACT_DIR", ".local/generated-pdfs")).expanduser()
        return cls(root)

    def path_for(self, filename: str) -> Path:
        return self._root / check_artifact_name(filename)

    def store(self, filename: str, data: bytes) -> str:
        path = self.path_for(filename)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise ArtifactStoreError(f"Could not write {path}: {e}") from e

        logger.info("Stored document %s (%d bytes)", path, len(data))
        return str(path)

    def fetch(self, filename: str) -> bytes | None:
        path = self.path_for(filename)
        if not path.is_file():
            return None
        return path.read_bytes()

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).is_file()
