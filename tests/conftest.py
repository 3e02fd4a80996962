import io
from collections.abc import Callable, Iterator

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from intake.extraction.base import BaseParser
from intake.extraction.stage import ExtractionStage
from intake.pipeline.coordinator import TaskCoordinator
from intake.policy.models import CategoryPolicy
from intake.transfer.base import BaseBlobStore
from intake.transfer.memory_blob_store import InMemoryBlobStore
from intake.transfer.stage import TransferStage
from tests.support import GatedBlobStore, StubParser, make_policy


@pytest.fixture()
def academic_policy() -> CategoryPolicy:
    return make_policy()


@pytest.fixture()
def gated_store() -> Iterator[GatedBlobStore]:
    store = GatedBlobStore()
    yield store
    store.gate.set()


@pytest.fixture()
def coordinator_factory() -> Iterator[Callable[..., TaskCoordinator]]:
    """Build coordinators over the given store/parser; all are closed at teardown."""
    created: list[TaskCoordinator] = []

    def _factory(
        blob_store: BaseBlobStore | None = None,
        parser: BaseParser | None = None,
        progress_step_percent: int = 10,
        stage_timeout_seconds: float | None = None,
    ) -> TaskCoordinator:
        coordinator = TaskCoordinator(
            TransferStage(
                blob_store if blob_store is not None else InMemoryBlobStore(),
                progress_step_percent,
            ),
            ExtractionStage(parser if parser is not None else StubParser()),
            stage_timeout_seconds=stage_timeout_seconds,
        )
        created.append(coordinator)
        return coordinator

    yield _factory
    for coordinator in created:
        coordinator.close()


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Official Transcript Stanford University GPA: 3.8/4.0")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()
