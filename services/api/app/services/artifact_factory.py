from __future__ import annotations

import os

from services.api.app.services.artifact_base import ArtifactStore
from services.api.app.services.artifact_local import LocalArtifactStore
from services.api.app.services.artifact_memory import InMemoryArtifactStore

_MEMORY_STORE: InMemoryArtifactStore | None = None


def get_artifact_store() -> ArtifactStore:
    """Select where generated documents are kept.

    Defaults to a local directory (PRINTSHOP_ARTIFACT_DIR).
    """

    global _MEMORY_STORE

    mode = os.getenv("PRINTSHOP_ARTIFACT_STORE", "local").strip().lower()

    if mode == "local":
        return LocalArtifactStore.from_env()

    if mode == "memory":
        if _MEMORY_STORE is None:
            _MEMORY_STORE = InMemoryArtifactStore()
        return _MEMORY_STORE

    raise ValueError(f"Unknown PRINTSHOP_ARTIFACT_STORE={mode!r}. Expected local or memory.")
