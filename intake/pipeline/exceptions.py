class PipelineError(Exception):
    """Base exception for all pipeline errors."""


class ValidationError(PipelineError):
    """Raised when a candidate file violates its category policy."""


class QuotaExceeded(PipelineError):
    """Raised when a category has no free task slots left."""


class InvalidStateTransition(PipelineError):
    """Raised when an operation is not allowed in the task's current state."""


class TaskNotFoundError(PipelineError):
    """Raised when a task id is unknown or the task has been removed."""


class TransportFailure(PipelineError):
    """Raised by the transfer stage when bytes cannot reach the blob store."""


class ExtractionFailure(PipelineError):
    """Raised by the extraction stage when the parser fails."""


class TaskCancelled(PipelineError):
    """Raised inside a running stage once its task has been removed."""
