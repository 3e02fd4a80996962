"""Owns every UploadTask and drives it through transfer, extraction and verification.

Each attempt runs its stage sequence on its own daemon thread, so a stage
blocked in I/O never holds up another task. The only state shared between
tasks is the active-task map and the per-category quota counters, both
guarded by one coordinator lock. A task's own record is only mutated under
that task's lock, and every mutation is checked against the transition
table.

Lock order is always coordinator lock, then task lock. Blob store calls
are made with no lock held.
"""

import copy
import threading
import uuid
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Generic, TypeVar, cast

from intake.extraction.models import ParseResult
from intake.extraction.stage import ExtractionStage
from intake.logging.logger import Log
from intake.pipeline.exceptions import (
    ExtractionFailure,
    InvalidStateTransition,
    QuotaExceeded,
    TaskCancelled,
    TaskNotFoundError,
    TransportFailure,
)
from intake.pipeline.models import FileMeta, ProgressEvent, TaskState, UploadTask
from intake.pipeline.progress import ProgressChannel
from intake.pipeline.state_machine import ensure_transition
from intake.policy.models import CategoryPolicy
from intake.transfer.exceptions import BlobStoreError
from intake.transfer.stage import TransferStage
from intake.verification.decision import decide

T = TypeVar("T")


class _DeadlineExpired(Exception):
    pass


class _StageCall(Generic[T]):
    """One stage call on its own thread. The deadline counts from thread start.

    A call that finishes after its caller gave up hands its value to
    `discard` instead.
    """

    def __init__(self, call: Callable[[], T], discard: Callable[[T], None] | None) -> None:
        self._call = call
        self._discard = discard
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._finished = False
        self._abandoned = False
        self._value: T | None = None
        self._error: Exception | None = None

    def start(self, name: str) -> None:
        threading.Thread(target=self._target, name=name, daemon=True).start()

    def result(self, timeout: float) -> T:
        self._done.wait(timeout)
        with self._lock:
            if not self._finished:
                self._abandoned = True
                raise _DeadlineExpired()
        if self._error is not None:
            raise self._error
        return cast(T, self._value)

    def _target(self) -> None:
        value: T | None = None
        error: Exception | None = None
        try:
            value = self._call()
        except Exception as exc:
            error = exc
        with self._lock:
            self._finished = True
            self._value = value
            self._error = error
            abandoned = self._abandoned
        self._done.set()
        if abandoned and error is None and self._discard is not None:
            self._discard(cast(T, value))


@dataclass
class _TaskEntry:
    task: UploadTask
    candidate: FileMeta
    policy: CategoryPolicy
    channel: ProgressChannel
    lock: threading.Lock = field(default_factory=threading.Lock)
    cancel: threading.Event = field(default_factory=threading.Event)
    attempt: int = 0
    removed: bool = False
    worker: threading.Thread | None = None


class TaskCoordinator:
    """Authoritative state machine and scheduler for upload tasks."""

    def __init__(
        self,
        transfer_stage: TransferStage,
        extraction_stage: ExtractionStage,
        *,
        stage_timeout_seconds: float | None = None,
    ) -> None:
        self._transfer = transfer_stage
        self._extraction = extraction_stage
        self._stage_timeout = stage_timeout_seconds
        self._lock = threading.Lock()
        self._tasks: dict[str, _TaskEntry] = {}
        self._usage: dict[str, int] = {}
        self._closed = False

    # -- admission and caller operations --------------------------------

    def admit(
        self,
        candidate: FileMeta,
        policy: CategoryPolicy,
        document_type_hint: str,
    ) -> UploadTask:
        """Take one quota unit, create the task and start its transfer.

        The task becomes visible already in Uploading.

        Raises:
            QuotaExceeded: if the category has no free slots; no task is created.
        """
        category = policy.category_id
        with self._lock:
            if self._closed:
                raise RuntimeError("TaskCoordinator is closed")
            used = self._usage.get(category, 0)
            if used >= policy.max_tasks:
                raise QuotaExceeded(
                    f"quota exceeded for category '{category}': {used}/{policy.max_tasks} in use"
                )
            self._usage[category] = used + 1

            task = UploadTask(
                id=uuid.uuid4().hex,
                filename=candidate.filename,
                declared_size=candidate.size,
                declared_mime_type=candidate.mime_type,
                category=category,
                document_type_hint=document_type_hint,
            )
            ensure_transition(task.id, task.state, TaskState.UPLOADING)
            task.state = TaskState.UPLOADING
            entry = _TaskEntry(
                task=task,
                candidate=candidate,
                policy=policy,
                channel=ProgressChannel(ProgressEvent.from_task(task)),
            )
            self._tasks[task.id] = entry
            with entry.lock:
                self._launch(entry)
                snapshot = copy.deepcopy(task)

        Log.info(
            f"Admitted {candidate.filename} [{used + 1}/{policy.max_tasks}]",
            task_id=task.id,
            category=category,
        )
        return snapshot

    def retry(self, task_id: str) -> None:
        """Restart a rejected task from Uploading, keeping its quota unit.

        Raises:
            TaskNotFoundError: if the task does not exist.
            InvalidStateTransition: if the task is not Rejected.
        """
        entry = self._get(task_id)
        with entry.lock:
            task = entry.task
            if entry.removed:
                raise TaskNotFoundError(f"Task {task_id} not found")
            if task.state != TaskState.REJECTED:
                raise InvalidStateTransition(
                    f"Task {task_id}: retry requires state rejected, got {task.state.value}"
                )
            ensure_transition(task_id, task.state, TaskState.UPLOADING)
            superseded = task.blob_ref
            task.state = TaskState.UPLOADING
            task.progress = 0
            task.confidence_score = None
            task.parsed_data = None
            task.error_reason = None
            task.blob_ref = None
            task.retry_count += 1
            self._publish(entry)
            self._launch(entry)
        Log.info(f"Retrying (retry {task.retry_count})", task_id=task_id, category=task.category)
        self._delete_blob(superseded, task)

    def remove(self, task_id: str) -> None:
        """Drop a task in any state and release its quota unit immediately.

        In-flight stage work is signalled to stop; no further events are
        delivered for the task. Bytes already stored for it are deleted.

        Raises:
            TaskNotFoundError: if the task does not exist.
        """
        with self._lock:
            entry = self._tasks.get(task_id)
            if entry is None:
                raise TaskNotFoundError(f"Task {task_id} not found")
            with entry.lock:
                self._discard(entry)
                blob_ref = entry.task.blob_ref
        Log.info("Removed", task_id=task_id, category=entry.task.category)
        self._delete_blob(blob_ref, entry.task)

    def acknowledge(self, task_id: str) -> None:
        """Release a task whose terminal outcome the caller has processed.

        The blob of a Verified task stays with the caller; a Rejected task's
        blob is deleted.

        Raises:
            TaskNotFoundError: if the task does not exist.
            InvalidStateTransition: if the task is not Verified or Rejected.
        """
        with self._lock:
            entry = self._tasks.get(task_id)
            if entry is None:
                raise TaskNotFoundError(f"Task {task_id} not found")
            with entry.lock:
                if not entry.task.state.is_terminal:
                    raise InvalidStateTransition(
                        f"Task {task_id}: only terminal tasks can be acknowledged, "
                        f"got {entry.task.state.value}"
                    )
                self._discard(entry)
                state = entry.task.state
                blob_ref = entry.task.blob_ref
        Log.info(
            f"Acknowledged in state {state.value}",
            task_id=task_id,
            category=entry.task.category,
        )
        if state == TaskState.REJECTED:
            self._delete_blob(blob_ref, entry.task)

    def snapshot(self, task_id: str) -> UploadTask:
        """Point-in-time copy of a task.

        Raises:
            TaskNotFoundError: if the task does not exist.
        """
        entry = self._get(task_id)
        with entry.lock:
            return copy.deepcopy(entry.task)

    def subscribe(self, task_id: str, timeout: float | None = None) -> Iterator[ProgressEvent]:
        """Event stream for a task, starting from its current state.

        Raises:
            TaskNotFoundError: if the task does not exist.
        """
        return self._get(task_id).channel.subscribe(timeout)

    def wait(self, task_id: str, timeout: float | None = None) -> UploadTask:
        """Block until the task's current attempt is terminal and return a snapshot.

        Raises:
            TaskNotFoundError: if the task does not exist or is removed while waiting.
            TimeoutError: if no event arrives within `timeout` seconds.
        """
        last: ProgressEvent | None = None
        for event in self.subscribe(task_id, timeout):
            last = event
        if last is None or not last.terminal:
            raise TaskNotFoundError(f"Task {task_id} was removed while waiting")
        return self.snapshot(task_id)

    def tasks(self, category: str | None = None) -> list[UploadTask]:
        with self._lock:
            entries = [
                e for e in self._tasks.values() if category is None or e.task.category == category
            ]
        snapshots: list[UploadTask] = []
        for entry in entries:
            with entry.lock:
                snapshots.append(copy.deepcopy(entry.task))
        return sorted(snapshots, key=lambda t: t.created_at)

    def usage(self, category: str) -> int:
        """Quota units currently held in a category."""
        with self._lock:
            return self._usage.get(category, 0)

    def close(self) -> None:
        """Cancel all in-flight work and end every subscription.

        Worker threads are daemons; a stage call that ignores cancellation
        does not keep the process alive.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            entries = list(self._tasks.values())
        for entry in entries:
            with entry.lock:
                entry.cancel.set()
                entry.channel.close()
        Log.info("Task coordinator closed")

    # -- stage sequence (worker threads) --------------------------------

    def _run(self, entry: _TaskEntry, attempt: int, cancel: threading.Event) -> None:
        task_id = entry.task.id
        try:
            blob_ref = self._call_stage(
                lambda: self._transfer.run(
                    entry.candidate,
                    on_progress=lambda percent: self._record_progress(entry, attempt, percent),
                    cancel=cancel,
                ),
                cancel,
                failure=TransportFailure,
                stage="transfer",
                discard=lambda late_ref: self._delete_blob(late_ref, entry.task),
            )
            hint = self._complete_transfer(entry, attempt, blob_ref)
            result = self._call_stage(
                lambda: self._extraction.run(blob_ref, hint, cancel),
                cancel,
                failure=ExtractionFailure,
                stage="extraction",
            )
            self._complete_extraction(entry, attempt, result)
        except TaskCancelled:
            Log.debug(
                f"Attempt {attempt} stopped after removal",
                task_id=task_id,
                category=entry.task.category,
            )
        except (TransportFailure, ExtractionFailure) as exc:
            self._reject(entry, attempt, str(exc))
        except Exception as exc:
            Log.exception(
                f"Attempt {attempt} crashed: {exc}",
                task_id=task_id,
                category=entry.task.category,
            )
            self._reject(entry, attempt, f"unexpected error: {exc}")

    def _call_stage(
        self,
        call: Callable[[], T],
        cancel: threading.Event,
        *,
        failure: type[Exception],
        stage: str,
        discard: Callable[[T], None] | None = None,
    ) -> T:
        if self._stage_timeout is None:
            return call()
        stage_call = _StageCall(call, discard)
        stage_call.start(f"intake-{stage}")
        try:
            return stage_call.result(self._stage_timeout)
        except _DeadlineExpired as exc:
            cancel.set()
            raise failure(
                f"{stage} timed out after {self._stage_timeout} seconds"
            ) from exc

    def _record_progress(self, entry: _TaskEntry, attempt: int, percent: int) -> None:
        with entry.lock:
            self._ensure_current(entry, attempt)
            task = entry.task
            if task.state != TaskState.UPLOADING or percent <= task.progress:
                return
            task.progress = min(percent, 99)
            self._publish(entry)

    def _complete_transfer(self, entry: _TaskEntry, attempt: int, blob_ref: str) -> str:
        task = entry.task
        with entry.lock:
            current = self._is_current(entry, attempt)
            if current:
                ensure_transition(task.id, task.state, TaskState.UPLOADED)
                task.state = TaskState.UPLOADED
                task.progress = 100
                task.blob_ref = blob_ref
                self._publish(entry)

                ensure_transition(task.id, task.state, TaskState.PROCESSING)
                task.state = TaskState.PROCESSING
                self._publish(entry)
        if not current:
            self._delete_blob(blob_ref, task)
            raise TaskCancelled(f"Task {task.id} attempt {attempt} is no longer current")
        Log.info(f"Uploaded as {blob_ref}, extracting", task_id=task.id, category=task.category)
        return task.document_type_hint

    def _complete_extraction(self, entry: _TaskEntry, attempt: int, result: ParseResult) -> None:
        with entry.lock:
            self._ensure_current(entry, attempt)
            task = entry.task
            decision = decide(result.confidence_score, entry.policy.confidence_threshold)
            target = TaskState.VERIFIED if decision.verified else TaskState.REJECTED
            ensure_transition(task.id, task.state, target)
            task.state = target
            task.confidence_score = result.confidence_score
            if decision.verified:
                task.parsed_data = copy.deepcopy(result.parsed_data)
            else:
                task.error_reason = decision.reason
            self._publish(entry)
        Log.info(
            f"{target.value.capitalize()} with confidence {result.confidence_score} "
            f"(threshold {entry.policy.confidence_threshold})",
            task_id=task.id,
            category=task.category,
        )

    def _reject(self, entry: _TaskEntry, attempt: int, reason: str) -> None:
        with entry.lock:
            if not self._is_current(entry, attempt):
                return
            task = entry.task
            ensure_transition(task.id, task.state, TaskState.REJECTED)
            task.state = TaskState.REJECTED
            task.error_reason = reason
            self._publish(entry)
        Log.warning(f"Rejected: {reason}", task_id=task.id, category=task.category)

    # -- helpers ---------------------------------------------------------

    def _launch(self, entry: _TaskEntry) -> None:
        """Start a new attempt on its own thread. Caller holds entry.lock."""
        entry.attempt += 1
        entry.cancel = threading.Event()
        entry.worker = threading.Thread(
            target=self._run,
            args=(entry, entry.attempt, entry.cancel),
            name=f"intake-task-{entry.task.id[:8]}-{entry.attempt}",
            daemon=True,
        )
        entry.worker.start()

    def _delete_blob(self, blob_ref: str | None, task: UploadTask) -> None:
        """Delete bytes no task refers to any more. Called with no lock held."""
        if blob_ref is None:
            return
        try:
            self._transfer.blob_store.delete(blob_ref)
        except BlobStoreError as exc:
            Log.warning(
                f"Could not delete {blob_ref}: {exc}",
                task_id=task.id,
                category=task.category,
            )
            return
        Log.debug(f"Deleted {blob_ref}", task_id=task.id, category=task.category)

    def _discard(self, entry: _TaskEntry) -> None:
        """Forget a task and release its quota. Caller holds both locks."""
        task = entry.task
        del self._tasks[task.id]
        self._usage[task.category] = max(0, self._usage.get(task.category, 0) - 1)
        entry.removed = True
        entry.cancel.set()
        entry.channel.close()

    def _publish(self, entry: _TaskEntry) -> None:
        """Caller holds entry.lock, which keeps a task's events in order."""
        entry.task.updated_at = datetime.now(timezone.utc)
        entry.channel.publish(ProgressEvent.from_task(entry.task))

    @staticmethod
    def _is_current(entry: _TaskEntry, attempt: int) -> bool:
        return not entry.removed and entry.attempt == attempt

    def _ensure_current(self, entry: _TaskEntry, attempt: int) -> None:
        if not self._is_current(entry, attempt):
            raise TaskCancelled(f"Task {entry.task.id} attempt {attempt} is no longer current")

    def _get(self, task_id: str) -> _TaskEntry:
        with self._lock:
            entry = self._tasks.get(task_id)
        if entry is None:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return entry
