"""Bundled extraction prompt and output schema."""

import json
from pathlib import Path
from typing import Any

from intake.extraction.exceptions import ParserError

PROMPT_DIR = Path(__file__).parent / "prompts"


def _read(path: Path, what: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ParserError(f"Failed to load {what}: {exc}") from exc


def load_prompt_template(path: Path | None = None) -> str:
    """Template with {document_type_hint}, {json_schema} and {document_text} placeholders."""
    return _read(path or PROMPT_DIR / "extraction_prompt.txt", "prompt template")


def load_json_schema(path: Path | None = None) -> dict[str, Any]:
    """Read and parse the schema the parser's JSON answer must follow.

    Raises:
        ParserError: if the file is unreadable or does not hold a JSON object.
    """
    path = path or PROMPT_DIR / "extraction_schema.json"
    try:
        schema = json.loads(_read(path, "JSON schema"))
    except json.JSONDecodeError as exc:
        raise ParserError(f"Invalid JSON schema in {path}: {exc}") from exc
    if not isinstance(schema, dict):
        raise ParserError(f"JSON schema in {path} must be an object")
    return schema
