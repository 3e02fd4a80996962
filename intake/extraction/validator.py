"""Validates raw parser JSON against the extraction contract."""

from typing import Any

from intake.extraction.exceptions import ParserValidationError
from intake.extraction.models import ParseResult

_OBJECT_SECTIONS = frozenset(
    {"education", "experience", "skills", "contact", "academic_performance", "preferences"}
)
_LIST_SECTIONS = frozenset({"career_goals", "achievements"})


def validate_and_build(data: dict[str, Any]) -> ParseResult:
    """Validate raw parsed JSON and build a ParseResult.

    Raises:
        ParserValidationError: on any validation failure.
    """
    for key in ("confidence_score", "parsed_data"):
        if key not in data:
            raise ParserValidationError(f"Missing required top-level field: {key}")
    score = _build_confidence(data["confidence_score"])
    parsed_data = _build_parsed_data(data["parsed_data"])
    return ParseResult(confidence_score=score, parsed_data=parsed_data)


def _build_confidence(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ParserValidationError("'confidence_score' must be a number")
    score = round(raw)
    if not 0 <= score <= 100:
        raise ParserValidationError(f"'confidence_score' must be in 0..100, got {raw}")
    return score


def _build_parsed_data(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ParserValidationError("'parsed_data' must be an object")
    for key, value in raw.items():
        if value is None:
            continue
        if key in _OBJECT_SECTIONS and not isinstance(value, dict):
            raise ParserValidationError(f"'parsed_data.{key}' must be an object")
        if key in _LIST_SECTIONS and not isinstance(value, list):
            raise ParserValidationError(f"'parsed_data.{key}' must be a list")
    return {key: value for key, value in raw.items() if value is not None}
