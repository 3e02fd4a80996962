from pathlib import Path

from intake.config.settings import Settings
from intake.transfer.base import BaseBlobStore
from intake.transfer.local_blob_store import LocalBlobStore
from intake.transfer.memory_blob_store import InMemoryBlobStore


class BlobStoreFactory:
    """Creates the blob store adapter based on settings."""

    ADAPTERS = ("local", "memory")

    @classmethod
    def create(cls, settings: Settings) -> BaseBlobStore:
        kind = settings.blob_store.lower()
        if kind == "local":
            return LocalBlobStore(
                root=Path(settings.blob_root),
                chunk_size=settings.transfer_chunk_size_bytes,
            )
        if kind == "memory":
            return InMemoryBlobStore(chunk_size=settings.transfer_chunk_size_bytes)
        raise ValueError(
            f"Unknown blob store '{kind}'. Choose from: {list(cls.ADAPTERS)}"
        )
