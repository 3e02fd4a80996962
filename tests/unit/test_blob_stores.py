from datetime import datetime, timezone
from pathlib import Path

import pytest

from intake.config.settings import Settings
from intake.pipeline.models import FileMeta
from intake.transfer.exceptions import BlobNotFoundError, BlobStoreError
from intake.transfer.factory import BlobStoreFactory
from intake.transfer.local_blob_store import LocalBlobStore, blob_relative_path
from intake.transfer.memory_blob_store import InMemoryBlobStore
from intake.transfer.models import TransferCompleted, TransferFailed, TransferProgress


def _meta(data: bytes = b"0123456789", filename: str = "transcript.pdf") -> FileMeta:
    return FileMeta(filename=filename, size=len(data), source=data)


class TestInMemoryBlobStore:
    def test_transfer_in_chunks(self) -> None:
        store = InMemoryBlobStore(chunk_size=4)
        events = list(store.begin_transfer(_meta()))
        progress = [e.bytes_transferred for e in events if isinstance(e, TransferProgress)]
        assert progress == [0, 4, 8, 10]
        completed = events[-1]
        assert isinstance(completed, TransferCompleted)
        assert completed.blob_ref.startswith("memory://")
        assert completed.blob_ref.endswith(".pdf")
        assert store.read(completed.blob_ref) == b"0123456789"

    def test_missing_source_yields_failure(self) -> None:
        store = InMemoryBlobStore()
        events = list(store.begin_transfer(FileMeta(filename="a.pdf", size=3)))
        assert isinstance(events[-1], TransferFailed)
        assert len(store) == 0

    def test_abandoned_transfer_stores_nothing(self) -> None:
        store = InMemoryBlobStore(chunk_size=2)
        events = store.begin_transfer(_meta())
        next(events)
        next(events)
        events.close()
        assert len(store) == 0

    def test_read_unknown_raises(self) -> None:
        with pytest.raises(BlobNotFoundError):
            InMemoryBlobStore().read("memory://nope.pdf")

    def test_delete(self) -> None:
        store = InMemoryBlobStore()
        ref = list(store.begin_transfer(_meta()))[-1].blob_ref  # type: ignore[union-attr]
        store.delete(ref)
        store.delete(ref)
        assert len(store) == 0


class TestLocalBlobStore:
    def test_relative_path_layout(self) -> None:
        when = datetime(2025, 3, 7, tzinfo=timezone.utc)
        assert blob_relative_path("abc", ".pdf", when).as_posix() == "2025/03/abc.pdf"

    def test_transfer_writes_file(self, tmp_path: Path) -> None:
        store = LocalBlobStore(root=tmp_path, chunk_size=3)
        events = list(store.begin_transfer(_meta()))
        completed = events[-1]
        assert isinstance(completed, TransferCompleted)
        assert completed.blob_ref.startswith("local://")
        assert store.read(completed.blob_ref) == b"0123456789"
        stored = list(tmp_path.rglob("*.pdf"))
        assert len(stored) == 1

    def test_abandoned_transfer_removes_partial_file(self, tmp_path: Path) -> None:
        store = LocalBlobStore(root=tmp_path, chunk_size=2)
        events = store.begin_transfer(_meta())
        next(events)
        next(events)
        events.close()
        assert list(tmp_path.rglob("*.pdf")) == []

    def test_transfer_from_path_source(self, tmp_path: Path) -> None:
        source = tmp_path / "incoming" / "cv.docx"
        source.parent.mkdir()
        source.write_bytes(b"docx-bytes")
        store = LocalBlobStore(root=tmp_path / "blobs")
        completed = list(store.begin_transfer(FileMeta.from_path(source)))[-1]
        assert isinstance(completed, TransferCompleted)
        assert completed.blob_ref.endswith(".docx")
        assert store.read(completed.blob_ref) == b"docx-bytes"

    def test_missing_source_yields_failure(self, tmp_path: Path) -> None:
        store = LocalBlobStore(root=tmp_path)
        missing = FileMeta(filename="a.pdf", size=1, source=tmp_path / "missing.pdf")
        events = list(store.begin_transfer(missing))
        assert isinstance(events[-1], TransferFailed)
        assert list(tmp_path.rglob("*.pdf")) == []

    def test_read_unknown_raises(self, tmp_path: Path) -> None:
        with pytest.raises(BlobNotFoundError):
            LocalBlobStore(root=tmp_path).read("local://2025/01/none.pdf")

    @pytest.mark.parametrize("ref", ["memory://a.pdf", "local://../etc/passwd", "local:///etc/passwd"])
    def test_rejects_foreign_or_escaping_refs(self, tmp_path: Path, ref: str) -> None:
        with pytest.raises(BlobStoreError):
            LocalBlobStore(root=tmp_path).read(ref)

    def test_delete(self, tmp_path: Path) -> None:
        store = LocalBlobStore(root=tmp_path)
        ref = list(store.begin_transfer(_meta()))[-1].blob_ref  # type: ignore[union-attr]
        store.delete(ref)
        with pytest.raises(BlobNotFoundError):
            store.read(ref)


class TestBlobStoreFactory:
    def test_creates_local(self, tmp_path: Path) -> None:
        store = BlobStoreFactory.create(Settings(blob_store="local", blob_root=str(tmp_path)))
        assert isinstance(store, LocalBlobStore)

    def test_creates_memory(self) -> None:
        store = BlobStoreFactory.create(Settings(blob_store="MEMORY"))
        assert isinstance(store, InMemoryBlobStore)

    def test_unknown_store_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown blob store 's3'"):
            BlobStoreFactory.create(Settings(blob_store="s3"))
