from __future__ import annotations

from typing import Protocol


class ArtifactStoreError(Exception):
    """Base class for artifact store errors."""


class InvalidArtifactNameError(ArtifactStoreError):
    def __init__(self, filename: str) -> None:
        super().__init__(f"Invalid document filename: {filename!r}")
        self.filename = filename


def check_artifact_name(filename: str) -> str:
    """Reject anything that is not a plain ``*.pdf`` file name."""

    if (
        not filename
        or not filename.endswith(".pdf")
        or ".." in filename
        or "/" in filename
        or "\\" in filename
    ):
        raise InvalidArtifactNameError(filename)
    return filename


class ArtifactStore(Protocol):
    kind: str

    def store(self, filename: str, data: bytes) -> str: ...

    def fetch(self, filename: str) -> bytes | None: ...

    def exists(self, filename: str) -> bool: ...
