import threading

from intake.extraction.base import BaseParser
from intake.extraction.models import ParseResult
from intake.logging.logger import Log
from intake.pipeline.exceptions import ExtractionFailure, TaskCancelled


class ExtractionStage:
    """Calls the parser for a transferred document."""

    def __init__(self, parser: BaseParser) -> None:
        self._parser = parser

    def run(self, blob_ref: str, document_type_hint: str, cancel: threading.Event) -> ParseResult:
        """Parse the document behind `blob_ref`.

        Raises:
            ExtractionFailure: if the parser raises for any reason.
            TaskCancelled: if the task was removed before or during the call.
        """
        if cancel.is_set():
            raise TaskCancelled(f"Extraction of {blob_ref} cancelled")
        try:
            result = self._parser.parse_document(blob_ref, document_type_hint)
        except Exception as exc:
            Log.warning(f"Parser failed for {blob_ref}: {exc}")
            raise ExtractionFailure(f"extraction failed: {exc}") from exc
        if cancel.is_set():
            raise TaskCancelled(f"Extraction of {blob_ref} cancelled")
        return result
