import threading
from collections.abc import Callable
from contextlib import closing

from intake.logging.logger import Log
from intake.pipeline.exceptions import TaskCancelled, TransportFailure
from intake.pipeline.models import FileMeta
from intake.transfer.base import BaseBlobStore
from intake.transfer.exceptions import BlobStoreError
from intake.transfer.models import TransferCompleted, TransferFailed, TransferProgress

# Progress reported while bytes are still moving; 100 belongs to the Uploaded state.
MAX_IN_FLIGHT_PROGRESS = 99


def to_percent(bytes_transferred: int, total_bytes: int) -> int:
    """Floor percentage of bytes moved, clamped to 0..100."""
    if total_bytes <= 0:
        return 0
    return max(0, min(100, bytes_transferred * 100 // total_bytes))


class TransferStage:
    """Drives one candidate's bytes into the blob store and reports progress."""

    def __init__(self, blob_store: BaseBlobStore, progress_step_percent: int = 10) -> None:
        self._blob_store = blob_store
        self._step = max(1, progress_step_percent)

    @property
    def blob_store(self) -> BaseBlobStore:
        return self._blob_store

    def run(
        self,
        candidate: FileMeta,
        on_progress: Callable[[int], None],
        cancel: threading.Event,
    ) -> str:
        """Transfer the candidate and return its blob reference.

        `on_progress` receives non-decreasing percentages below 100, no more
        often than every `progress_step_percent`.

        The transfer is aborted as soon as more bytes arrive than the
        candidate declared. A completed blob whose size does not match is
        deleted before failing.

        Raises:
            TransportFailure: if the blob store reports or raises a failure.
            TaskCancelled: if `cancel` is set while bytes are moving.
        """
        last_reported = 0
        last_transferred: int | None = None
        try:
            with closing(self._blob_store.begin_transfer(candidate)) as events:
                for event in events:
                    if cancel.is_set():
                        if isinstance(event, TransferCompleted):
                            self._blob_store.delete(event.blob_ref)
                        raise TaskCancelled(f"Transfer of {candidate.filename} cancelled")
                    if isinstance(event, TransferProgress):
                        if event.bytes_transferred > candidate.size:
                            # Closing the stream discards the partial blob.
                            raise TransportFailure(
                                f"size mismatch: more than the declared {candidate.size} "
                                f"bytes sent for {candidate.filename}"
                            )
                        last_transferred = event.bytes_transferred
                        percent = min(
                            to_percent(event.bytes_transferred, event.total_bytes),
                            MAX_IN_FLIGHT_PROGRESS,
                        )
                        if percent - last_reported >= self._step:
                            on_progress(percent)
                            last_reported = percent
                    elif isinstance(event, TransferCompleted):
                        self._check_size(candidate, last_transferred, event.blob_ref)
                        Log.debug(f"Transferred {candidate.filename} to {event.blob_ref}")
                        return event.blob_ref
                    elif isinstance(event, TransferFailed):
                        raise TransportFailure(event.reason)
        except BlobStoreError as exc:
            raise TransportFailure(f"blob store error: {exc}") from exc
        except OSError as exc:
            raise TransportFailure(f"transfer I/O error: {exc}") from exc

        raise TransportFailure(f"transfer of {candidate.filename} ended without completion")

    def _check_size(self, candidate: FileMeta, transferred: int | None, blob_ref: str) -> None:
        if transferred is not None and transferred != candidate.size:
            self._blob_store.delete(blob_ref)
            raise TransportFailure(
                f"size mismatch: transferred {transferred} of declared {candidate.size} bytes"
            )
