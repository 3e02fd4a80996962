import copy
import io
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO

from intake.pipeline.exceptions import PipelineError


class TaskState(str, Enum):
    QUEUED = "queued"
    # Reserved: validation always finishes before a task exists.
    VALIDATING = "validating"
    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    VERIFIED = "verified"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.VERIFIED, TaskState.REJECTED)


@dataclass(frozen=True)
class FileMeta:
    """A candidate file offered for admission.

    `source` is either the raw bytes or a filesystem path; it is only opened
    by the blob store once the file has been admitted.
    """

    filename: str
    size: int
    mime_type: str = "application/octet-stream"
    source: bytes | Path | None = field(default=None, repr=False)

    @property
    def extension(self) -> str:
        """Lowercase suffix after the final dot, including the dot ('' if none)."""
        _, dot, suffix = self.filename.rpartition(".")
        if not dot or not suffix:
            return ""
        return f".{suffix.lower()}"

    def open(self) -> BinaryIO:
        if isinstance(self.source, bytes):
            return io.BytesIO(self.source)
        if isinstance(self.source, Path):
            return self.source.open("rb")
        raise FileNotFoundError(f"No byte source attached to {self.filename}")

    @classmethod
    def from_path(cls, path: Path, mime_type: str = "application/octet-stream") -> "FileMeta":
        return cls(
            filename=path.name,
            size=path.stat().st_size,
            mime_type=mime_type,
            source=path,
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class UploadTask:
    """One admitted file moving through transfer, extraction and verification."""

    id: str
    filename: str
    declared_size: int
    declared_mime_type: str
    category: str
    document_type_hint: str
    state: TaskState = TaskState.QUEUED
    progress: int = 0
    retry_count: int = 0
    parsed_data: dict[str, Any] | None = None
    confidence_score: int | None = None
    error_reason: str | None = None
    blob_ref: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ProgressEvent:
    """Point-in-time view of a task published on its progress channel."""

    task_id: str
    state: TaskState
    progress: int
    retry_count: int = 0
    confidence_score: int | None = None
    parsed_data: dict[str, Any] | None = None
    error_reason: str | None = None

    @property
    def terminal(self) -> bool:
        return self.state.is_terminal

    @classmethod
    def from_task(cls, task: UploadTask) -> "ProgressEvent":
        return cls(
            task_id=task.id,
            state=task.state,
            progress=task.progress,
            retry_count=task.retry_count,
            confidence_score=task.confidence_score,
            parsed_data=copy.deepcopy(task.parsed_data),
            error_reason=task.error_reason,
        )


@dataclass(frozen=True)
class AdmissionResult:
    """Synchronous outcome of submitting one candidate."""

    filename: str
    task_id: str | None = None
    error: PipelineError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
