"""Document ingestion and verification pipeline."""

from intake.pipeline.facade import Pipeline, build_pipeline
from intake.pipeline.models import AdmissionResult, FileMeta, ProgressEvent, TaskState, UploadTask

__all__ = [
    "AdmissionResult",
    "FileMeta",
    "Pipeline",
    "ProgressEvent",
    "TaskState",
    "UploadTask",
    "build_pipeline",
]
