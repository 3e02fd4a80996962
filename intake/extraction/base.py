from abc import ABC, abstractmethod

from intake.extraction.models import ParseResult


class BaseParser(ABC):
    """Contract for all document parsers."""

    @abstractmethod
    def parse_document(self, blob_ref: str, document_type_hint: str) -> ParseResult:
        """Extract structured fields from a stored document.

        Args:
            blob_ref: Reference returned by the blob store after transfer.
            document_type_hint: One of cv, transcript, statement,
                recommendation, certificate, other.

        Returns:
            ParseResult with a 0..100 confidence score and parsed fields.

        Raises:
            ParserError: on any failure.
        """


class BaseParserClient(ABC):
    """Contract for the AI provider clients used by LlmDocumentParser."""

    @abstractmethod
    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> str:
        """Return the provider's raw JSON answer.

        `image_data_url` attaches the document itself when it is an image.
        """
