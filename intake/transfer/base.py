from abc import ABC, abstractmethod
from collections.abc import Generator

from intake.pipeline.models import FileMeta
from intake.transfer.models import TransferEvent


class BaseBlobStore(ABC):
    """Contract for all blob store adapters."""

    @abstractmethod
    def begin_transfer(self, candidate: FileMeta) -> Generator[TransferEvent, None, None]:
        """Stream a candidate's bytes into the store.

        Yields zero or more TransferProgress events followed by exactly one
        TransferCompleted or TransferFailed. Closing the generator early
        aborts the transfer and discards partial bytes.
        """

    @abstractmethod
    def read(self, blob_ref: str) -> bytes:
        """Return stored bytes for a reference.

        Raises:
            BlobNotFoundError: if nothing is stored under the reference.
        """

    @abstractmethod
    def delete(self, blob_ref: str) -> None:
        """Remove stored bytes. Unknown references are ignored."""
