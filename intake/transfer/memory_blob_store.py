import threading
import uuid
from collections.abc import Generator

from intake.pipeline.models import FileMeta
from intake.transfer.base import BaseBlobStore
from intake.transfer.exceptions import BlobNotFoundError
from intake.transfer.models import (
    TransferCompleted,
    TransferEvent,
    TransferFailed,
    TransferProgress,
)


class InMemoryBlobStore(BaseBlobStore):
    """Keeps blobs in process memory. For local development and tests."""

    SCHEME = "memory://"

    def __init__(self, chunk_size: int = 64 * 1024) -> None:
        self._chunk_size = chunk_size
        self._blobs: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def begin_transfer(self, candidate: FileMeta) -> Generator[TransferEvent, None, None]:
        buffer = bytearray()
        try:
            with candidate.open() as src:
                yield TransferProgress(0, candidate.size)
                while chunk := src.read(self._chunk_size):
                    buffer.extend(chunk)
                    yield TransferProgress(len(buffer), candidate.size)
        except OSError as exc:
            yield TransferFailed(f"failed to read {candidate.filename}: {exc}")
            return

        blob_ref = f"{self.SCHEME}{uuid.uuid4().hex}{candidate.extension}"
        with self._lock:
            self._blobs[blob_ref] = bytes(buffer)
        yield TransferCompleted(blob_ref)

    def read(self, blob_ref: str) -> bytes:
        with self._lock:
            data = self._blobs.get(blob_ref)
        if data is None:
            raise BlobNotFoundError(f"Blob not found: {blob_ref}")
        return data

    def delete(self, blob_ref: str) -> None:
        with self._lock:
            self._blobs.pop(blob_ref, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)
