from dataclasses import dataclass


@dataclass(frozen=True)
class TransferProgress:
    """Bytes moved so far for one transfer."""

    bytes_transferred: int
    total_bytes: int


@dataclass(frozen=True)
class TransferCompleted:
    blob_ref: str


@dataclass(frozen=True)
class TransferFailed:
    reason: str


TransferEvent = TransferProgress | TransferCompleted | TransferFailed
