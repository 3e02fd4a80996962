import uuid
from collections.abc import Generator
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

from intake.pipeline.models import FileMeta
from intake.transfer.base import BaseBlobStore
from intake.transfer.exceptions import BlobNotFoundError, BlobStoreError
from intake.transfer.models import (
    TransferCompleted,
    TransferEvent,
    TransferFailed,
    TransferProgress,
)


def blob_relative_path(blob_id: str, extension: str, when: datetime) -> PurePosixPath:
    """Build the relative blob path: {yyyy}/{mm}/{blob_id}{extension}"""
    return PurePosixPath(f"{when:%Y}", f"{when:%m}", f"{blob_id}{extension}")


class LocalBlobStore(BaseBlobStore):
    """Writes blobs to a local directory in fixed-size chunks."""

    SCHEME = "local://"
    BLOB_ROOT = Path("/app/files")

    def __init__(self, root: Path | None = None, chunk_size: int = 64 * 1024) -> None:
        self._root = root if root is not None else self.BLOB_ROOT
        self._chunk_size = chunk_size

    def begin_transfer(self, candidate: FileMeta) -> Generator[TransferEvent, None, None]:
        relative = blob_relative_path(
            uuid.uuid4().hex, candidate.extension, datetime.now(timezone.utc)
        )
        target = self._root / relative
        transferred = 0
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with candidate.open() as src, target.open("wb") as dst:
                yield TransferProgress(0, candidate.size)
                while chunk := src.read(self._chunk_size):
                    dst.write(chunk)
                    transferred += len(chunk)
                    yield TransferProgress(transferred, candidate.size)
        except OSError as exc:
            target.unlink(missing_ok=True)
            yield TransferFailed(f"failed to store {candidate.filename}: {exc}")
            return
        except GeneratorExit:
            target.unlink(missing_ok=True)
            raise

        yield TransferCompleted(f"{self.SCHEME}{relative.as_posix()}")

    def read(self, blob_ref: str) -> bytes:
        path = self._resolve(blob_ref)
        if not path.is_file():
            raise BlobNotFoundError(f"Blob not found: {blob_ref}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise BlobStoreError(f"Failed to read {blob_ref}: {exc}") from exc

    def delete(self, blob_ref: str) -> None:
        self._resolve(blob_ref).unlink(missing_ok=True)

    def _resolve(self, blob_ref: str) -> Path:
        if not blob_ref.startswith(self.SCHEME):
            raise BlobStoreError(f"Not a local blob reference: {blob_ref}")
        relative = PurePosixPath(blob_ref[len(self.SCHEME):])
        if relative.is_absolute() or ".." in relative.parts:
            raise BlobStoreError(f"Invalid blob reference: {blob_ref}")
        return self._root / relative
