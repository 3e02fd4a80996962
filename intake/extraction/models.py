from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ParseResult:
    """Structured fields extracted from one document plus the parser's confidence."""

    confidence_score: int
    parsed_data: dict[str, Any] = field(default_factory=dict)
