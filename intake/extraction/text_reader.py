"""Reads plain text out of stored document bytes, dispatching on file extension."""

import io
from abc import ABC, abstractmethod
from typing import ClassVar

import docx
import pdfplumber
import pymupdf

from intake.extraction.exceptions import TextExtractionError

IMAGE_MIME_TYPES: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
}


class BaseTextReader(ABC):
    """Contract for all text readers."""

    @abstractmethod
    def read(self, data: bytes) -> str:
        """Return the document's text as a single string.

        Raises:
            TextExtractionError: if the bytes cannot be read.
        """


class PdfPlumberReader(BaseTextReader):
    def read(self, data: bytes) -> str:
        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            raise TextExtractionError(f"pdfplumber extraction failed: {exc}") from exc
        return "\n".join(pages).strip()


class PyMuPdfReader(BaseTextReader):
    def read(self, data: bytes) -> str:
        try:
            with pymupdf.open(stream=data, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = [page.get_text() for page in doc]
        except Exception as exc:
            raise TextExtractionError(f"pymupdf extraction failed: {exc}") from exc
        return "\n".join(pages).strip()


class DocxReader(BaseTextReader):
    """Paragraphs, then table rows with cells joined by ' | '."""

    def read(self, data: bytes) -> str:
        try:
            document = docx.Document(io.BytesIO(data))
        except Exception as exc:
            raise TextExtractionError(f"docx extraction failed: {exc}") from exc
        lines = [para.text.strip() for para in document.paragraphs if para.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells]
                if any(cells):
                    lines.append(" | ".join(cells))
        return "\n".join(lines)


class PlainTextReader(BaseTextReader):
    def read(self, data: bytes) -> str:
        return data.decode("utf-8", errors="replace").strip()


class DocumentTextReader:
    """Picks a text reader by extension; images are not read as text."""

    PDF_READERS: ClassVar[dict[str, type[BaseTextReader]]] = {
        "pdfplumber": PdfPlumberReader,
        "pymupdf": PyMuPdfReader,
    }
    TEXT_EXTENSIONS: ClassVar[frozenset[str]] = frozenset({".txt", ".md", ".csv"})

    def __init__(self, pdf_engine: str = "pdfplumber") -> None:
        reader_cls = self.PDF_READERS.get(pdf_engine.lower())
        if reader_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{pdf_engine}'. Choose from: {list(self.PDF_READERS)}"
            )
        self._readers: dict[str, BaseTextReader] = {
            ".pdf": reader_cls(),
            ".docx": DocxReader(),
        }
        plain = PlainTextReader()
        for ext in self.TEXT_EXTENSIONS:
            self._readers[ext] = plain

    @staticmethod
    def is_image(extension: str) -> bool:
        return extension.lower() in IMAGE_MIME_TYPES

    def read(self, data: bytes, extension: str) -> str:
        """Extract text for a document with the given extension.

        Raises:
            TextExtractionError: for unsupported formats or unreadable bytes.
        """
        reader = self._readers.get(extension.lower())
        if reader is None:
            raise TextExtractionError(f"Text extraction not supported for '{extension}' files")
        return reader.read(data)
