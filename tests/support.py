"""Test doubles shared by unit and integration tests."""

import threading
from collections.abc import Generator

from intake.extraction.base import BaseParser
from intake.extraction.models import ParseResult
from intake.pipeline.models import FileMeta
from intake.policy.models import CategoryPolicy
from intake.transfer.memory_blob_store import InMemoryBlobStore
from intake.transfer.models import TransferCompleted, TransferEvent, TransferFailed

MB = 1024 * 1024


class StubParser(BaseParser):
    """Parser returning queued outcomes in order; the last one repeats."""

    def __init__(
        self,
        *outcomes: ParseResult | Exception,
        gate: threading.Event | None = None,
    ) -> None:
        self._outcomes = list(outcomes) or [ParseResult(confidence_score=85)]
        self._gate = gate
        self._lock = threading.Lock()
        self.calls: list[tuple[str, str]] = []

    def parse_document(self, blob_ref: str, document_type_hint: str) -> ParseResult:
        with self._lock:
            self.calls.append((blob_ref, document_type_hint))
            outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if self._gate is not None:
            self._gate.wait(5)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class GatedBlobStore(InMemoryBlobStore):
    """In-memory store that holds every transfer until `gate` is set."""

    def __init__(self, chunk_size: int = 64 * 1024) -> None:
        super().__init__(chunk_size=chunk_size)
        self.gate = threading.Event()

    def begin_transfer(self, candidate: FileMeta) -> Generator[TransferEvent, None, None]:
        self.gate.wait(5)
        yield from super().begin_transfer(candidate)


class FailingBlobStore(InMemoryBlobStore):
    def begin_transfer(self, candidate: FileMeta) -> Generator[TransferEvent, None, None]:
        yield TransferFailed("connection reset by peer")


class StallingBlobStore(InMemoryBlobStore):
    """Transfers of files named hung* block until `release` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.release = threading.Event()

    def begin_transfer(self, candidate: FileMeta) -> Generator[TransferEvent, None, None]:
        if candidate.filename.startswith("hung"):
            self.release.wait(10)
        yield from super().begin_transfer(candidate)


class HeldCompletionStore(InMemoryBlobStore):
    """Stores the bytes, then holds the completion event until `gate` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = threading.Event()

    def begin_transfer(self, candidate: FileMeta) -> Generator[TransferEvent, None, None]:
        for event in super().begin_transfer(candidate):
            if isinstance(event, TransferCompleted):
                self.gate.wait(5)
            yield event


def make_candidate(
    filename: str = "transcript.pdf",
    size: int = 2 * MB,
    mime_type: str = "application/pdf",
) -> FileMeta:
    """Candidate whose byte source matches its declared size."""
    return FileMeta(filename=filename, size=size, mime_type=mime_type, source=b"x" * size)


def make_policy(
    category_id: str = "academic",
    max_tasks: int = 5,
    threshold: int = 70,
) -> CategoryPolicy:
    return CategoryPolicy(
        category_id=category_id,
        max_tasks=max_tasks,
        accepted_extensions=frozenset({".pdf", ".jpg", ".png"}),
        max_file_size_bytes=10_485_760,
        confidence_threshold=threshold,
        title="Academic Documents",
        document_type_hint="transcript",
    )
