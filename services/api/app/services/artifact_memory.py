from __future__ import annotations

from services.api.app.services.artifact_base import check_artifact_name


class InMemoryArtifactStore:
    kind = "memory"

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}

    def store(self, filename: str, data: bytes) -> str:
        self._blobs[check_artifact_name(filename)] = bytes(data)
        return f"memory://{filename}"

    def fetch(self, filename: str) -> bytes | None:
        return self._blobs.get(check_artifact_name(filename))

    def exists(self, filename: str) -> bool:
        return check_artifact_name(filename) in self._blobs
