"""AI-powered document parser."""

import base64
import json
import re
from pathlib import Path, PurePosixPath
from typing import Any

from intake.extraction.base import BaseParser, BaseParserClient
from intake.extraction.exceptions import ParserError
from intake.extraction.models import ParseResult
from intake.extraction.prompt_loader import load_json_schema, load_prompt_template
from intake.extraction.text_reader import IMAGE_MIME_TYPES, DocumentTextReader
from intake.extraction.validator import validate_and_build
from intake.logging.logger import Log
from intake.transfer.base import BaseBlobStore
from intake.transfer.exceptions import BlobStoreError

_IMAGE_PLACEHOLDER = "(the document is attached as an image)"
# Some models wrap their answer in a markdown code block despite the prompt.
_CODE_FENCE = re.compile(r"^```[\w-]*\s*\n(?P<body>.*?)\n?```\s*$", re.DOTALL)


class LlmDocumentParser(BaseParser):
    """Reads a stored document and extracts structured fields with an AI provider."""

    MAX_DOCUMENT_CHARS = 50_000

    def __init__(
        self,
        *,
        client: BaseParserClient,
        blob_store: BaseBlobStore,
        text_reader: DocumentTextReader,
        model: str,
        temperature: float = 0.0,
        prompt_template_path: Path | None = None,
        json_schema_path: Path | None = None,
        system_prompt: str = "",
    ) -> None:
        self._client = client
        self._blob_store = blob_store
        self._text_reader = text_reader
        self._model = model
        self._temperature = max(0.0, min(0.2, temperature))
        self._system_prompt = system_prompt
        self._prompt_template = load_prompt_template(prompt_template_path)
        self._json_schema_dict = load_json_schema(json_schema_path)
        self._json_schema = json.dumps(self._json_schema_dict, indent=2)

    def parse_document(self, blob_ref: str, document_type_hint: str) -> ParseResult:
        try:
            data = self._blob_store.read(blob_ref)
        except BlobStoreError as exc:
            raise ParserError(f"Cannot load {blob_ref}: {exc}") from exc

        extension = PurePosixPath(blob_ref).suffix.lower()
        image_data_url: str | None = None
        if DocumentTextReader.is_image(extension):
            image_data_url = self._to_data_url(data, extension)
            text = _IMAGE_PLACEHOLDER
        else:
            text = self._text_reader.read(data, extension)
            if not text:
                raise ParserError(f"No text could be extracted from {blob_ref}")
            text = text[: self.MAX_DOCUMENT_CHARS]

        prompt = self._build_prompt(text, document_type_hint)
        Log.debug(f"Extraction prompt for {blob_ref}:\n{prompt}")

        raw_response = self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            json_schema=self._json_schema_dict,
            image_data_url=image_data_url,
        )
        Log.debug(f"AI raw response:\n{raw_response}")

        result = validate_and_build(self._parse_json(raw_response))
        Log.info(
            f"Parsed {blob_ref} as {document_type_hint}: "
            f"confidence {result.confidence_score}, {len(result.parsed_data)} sections"
        )
        return result

    def _build_prompt(self, text: str, document_type_hint: str) -> str:
        return self._prompt_template.format(
            document_type_hint=document_type_hint,
            json_schema=self._json_schema,
            document_text=text,
        )

    @staticmethod
    def _to_data_url(data: bytes, extension: str) -> str:
        encoded = base64.b64encode(data).decode("ascii")
        return f"data:{IMAGE_MIME_TYPES[extension]};base64,{encoded}"

    @staticmethod
    def _parse_json(raw: str) -> dict[str, Any]:
        text = raw.strip()
        fenced = _CODE_FENCE.match(text)
        if fenced:
            text = fenced.group("body")
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParserError(f"Invalid JSON response: {exc}") from exc
        if not isinstance(parsed, dict):
            raise ParserError(f"Expected a JSON object, got {type(parsed).__name__}")
        return parsed
