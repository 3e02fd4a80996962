from collections.abc import Iterable, Iterator
from types import TracebackType

from intake.config.settings import Settings
from intake.extraction.base import BaseParser
from intake.extraction.factory import ParserFactory
from intake.extraction.stage import ExtractionStage
from intake.logging.logger import Log
from intake.pipeline.coordinator import TaskCoordinator
from intake.pipeline.exceptions import QuotaExceeded, ValidationError
from intake.pipeline.models import AdmissionResult, FileMeta, ProgressEvent, UploadTask
from intake.policy.base import BasePolicySource
from intake.policy.factory import PolicySourceFactory
from intake.policy.registry import PolicyRegistry
from intake.policy.validator import validate
from intake.transfer.base import BaseBlobStore
from intake.transfer.factory import BlobStoreFactory
from intake.transfer.stage import TransferStage


class Pipeline:
    """Entry point for submitting documents and following their outcome.

    Flow per candidate: validate -> admit (quota) -> transfer -> extract -> verify.
    """

    def __init__(self, registry: PolicyRegistry, coordinator: TaskCoordinator) -> None:
        self._registry = registry
        self._coordinator = coordinator

    def submit(
        self,
        category: str,
        candidates: Iterable[FileMeta],
        document_type_hint: str | None = None,
    ) -> list[AdmissionResult]:
        """Admit candidates into a category. Does not wait for processing.

        Returns one AdmissionResult per candidate, in order. Rejected
        candidates carry a ValidationError or QuotaExceeded and create no task.

        Raises:
            UnknownCategoryError: if the category has no policy.
        """
        policy = self._registry.get_policy(category)
        hint = document_type_hint or policy.document_type_hint
        results: list[AdmissionResult] = []
        for candidate in candidates:
            try:
                validate(candidate, policy)
                task = self._coordinator.admit(candidate, policy, hint)
            except (ValidationError, QuotaExceeded) as exc:
                Log.warning(f"Not admitted: {candidate.filename}: {exc}", category=category)
                results.append(AdmissionResult(filename=candidate.filename, error=exc))
            else:
                results.append(AdmissionResult(filename=candidate.filename, task_id=task.id))
        return results

    def subscribe(self, task_id: str, timeout: float | None = None) -> Iterator[ProgressEvent]:
        return self._coordinator.subscribe(task_id, timeout)

    def retry(self, task_id: str) -> None:
        self._coordinator.retry(task_id)

    def remove(self, task_id: str) -> None:
        self._coordinator.remove(task_id)

    def acknowledge(self, task_id: str) -> None:
        self._coordinator.acknowledge(task_id)

    def snapshot(self, task_id: str) -> UploadTask:
        return self._coordinator.snapshot(task_id)

    def wait(self, task_id: str, timeout: float | None = None) -> UploadTask:
        return self._coordinator.wait(task_id, timeout)

    def tasks(self, category: str | None = None) -> list[UploadTask]:
        return self._coordinator.tasks(category)

    def quota_usage(self, category: str) -> tuple[int, int]:
        """Return (used, max_tasks) for a category.

        Raises:
            UnknownCategoryError: if the category has no policy.
        """
        policy = self._registry.get_policy(category)
        return self._coordinator.usage(category), policy.max_tasks

    def close(self) -> None:
        self._coordinator.close()

    def __enter__(self) -> "Pipeline":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def build_pipeline(
    settings: Settings,
    *,
    policy_source: BasePolicySource | None = None,
    blob_store: BaseBlobStore | None = None,
    parser: BaseParser | None = None,
) -> Pipeline:
    """Build a Pipeline with all required adapters.

    Any adapter passed in replaces the one the settings would select.
    """
    Log.configure(settings.log_level)
    registry = PolicyRegistry.from_source(
        policy_source if policy_source is not None else PolicySourceFactory.create(settings)
    )
    store = blob_store if blob_store is not None else BlobStoreFactory.create(settings)
    document_parser = parser if parser is not None else ParserFactory.create(settings, store)
    coordinator = TaskCoordinator(
        TransferStage(store, settings.progress_step_percent),
        ExtractionStage(document_parser),
        stage_timeout_seconds=settings.stage_timeout_seconds,
    )
    return Pipeline(registry, coordinator)
