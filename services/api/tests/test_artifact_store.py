from __future__ import annotations

from pathlib import Path

import pytest
from services.api.app.services.artifact_base import ArtifactStore, InvalidArtifactNameError
from services.api.app.services.artifact_local import LocalArtifactStore
from services.api.app.services.artifact_memory import InMemoryArtifactStore


@pytest.fixture(params=["local", "memory"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> ArtifactStore:
    if request.param == "local":
        return LocalArtifactStore(tmp_path / "pdfs")
    return InMemoryArtifactStore()


def test_store_then_fetch(store: ArtifactStore) -> None:
    reference = store.store("order_1_box_asha.pdf", b"%PDF-1.4 one")

    assert reference.endswith("order_1_box_asha.pdf")
    assert store.exists("order_1_box_asha.pdf")
    assert store.fetch("order_1_box_asha.pdf") == b"%PDF-1.4 one"


def test_storing_same_name_overwrites(store: ArtifactStore) -> None:
    store.store("order_1_box_asha.pdf", b"first")
    store.store("order_1_box_asha.pdf", b"second")

    assert store.fetch("order_1_box_asha.pdf") == b"second"


def test_missing_document(store: ArtifactStore) -> None:
    assert store.fetch("order_9_bag_nobody.pdf") is None
    assert not store.exists("order_9_bag_nobody.pdf")


@pytest.mark.parametrize("name", ["", "notes.txt", "../secret.pdf", "a/b.pdf", "a\\b.pdf"])
def test_invalid_names_are_rejected(store: ArtifactStore, name: str) -> None:
    with pytest.raises(InvalidArtifactNameError):
        store.store(name, b"data")
    with pytest.raises(InvalidArtifactNameError):
        store.fetch(name)


def test_local_store_creates_its_directory(tmp_path: Path) -> None:
    root = tmp_path / "deep" / "pdfs"
    store = LocalArtifactStore(root)

    path = store.store("order_2_bag_ravi.pdf", b"%PDF")

    assert Path(path) == root / "order_2_bag_ravi.pdf"
    assert (root / "order_2_bag_ravi.pdf").read_bytes() == b"%PDF"
