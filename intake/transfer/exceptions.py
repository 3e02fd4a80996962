class BlobStoreError(Exception):
    """Base exception for blob store failures."""


class BlobNotFoundError(BlobStoreError):
    """Raised when a blob reference does not resolve to stored bytes."""
