"""Transition table for UploadTask states.

Every state change made by the coordinator goes through `ensure_transition`,
so an illegal move surfaces as InvalidStateTransition instead of silently
corrupting the task.
"""

from intake.pipeline.exceptions import InvalidStateTransition
from intake.pipeline.models import TaskState

TRANSITIONS: dict[TaskState, frozenset[TaskState]] = {
    TaskState.QUEUED: frozenset({TaskState.UPLOADING}),
    TaskState.VALIDATING: frozenset(),
    TaskState.UPLOADING: frozenset({TaskState.UPLOADED, TaskState.REJECTED}),
    TaskState.UPLOADED: frozenset({TaskState.PROCESSING}),
    TaskState.PROCESSING: frozenset({TaskState.VERIFIED, TaskState.REJECTED}),
    TaskState.VERIFIED: frozenset(),
    TaskState.REJECTED: frozenset({TaskState.UPLOADING}),
}


def can_transition(current: TaskState, target: TaskState) -> bool:
    return target in TRANSITIONS[current]


def ensure_transition(task_id: str, current: TaskState, target: TaskState) -> None:
    """Raise InvalidStateTransition unless `current -> target` is allowed."""
    if not can_transition(current, target):
        raise InvalidStateTransition(
            f"Task {task_id}: cannot move from {current.value} to {target.value}"
        )
