"""Builds CategoryPolicy objects from raw mappings (JSON documents, DB rows)."""

from collections.abc import Iterable
from typing import Any

from intake.policy.exceptions import PolicySourceError
from intake.policy.models import DEFAULT_CONFIDENCE_THRESHOLD, CategoryPolicy

DOCUMENT_TYPE_HINTS = frozenset(
    {"cv", "transcript", "statement", "recommendation", "certificate", "other"}
)


def normalize_extensions(raw: Iterable[str]) -> frozenset[str]:
    """Lowercase each extension and make sure it starts with a dot."""
    normalized: set[str] = set()
    for ext in raw:
        cleaned = ext.strip().lower()
        if not cleaned or cleaned == ".":
            continue
        normalized.add(cleaned if cleaned.startswith(".") else f".{cleaned}")
    return frozenset(normalized)


def document_type_hint_for(title: str) -> str:
    """Map a free-form category or document title to a parser hint."""
    lowered = title.lower()
    if "cv" in lowered or "resume" in lowered:
        return "cv"
    if "transcript" in lowered:
        return "transcript"
    if "statement" in lowered:
        return "statement"
    if "recommendation" in lowered:
        return "recommendation"
    if "certificate" in lowered:
        return "certificate"
    return "other"


def build_policy(
    data: dict[str, Any],
    default_threshold: int = DEFAULT_CONFIDENCE_THRESHOLD,
) -> CategoryPolicy:
    """Validate one raw policy mapping and build a CategoryPolicy.

    Raises:
        PolicySourceError: on any missing or malformed field.
    """
    category_id = data.get("category_id")
    if not category_id or not isinstance(category_id, str):
        raise PolicySourceError("'category_id' must be a non-empty string")

    max_tasks = _require_int(data, "max_tasks", category_id, minimum=1)
    max_size = _require_int(data, "max_file_size_bytes", category_id, minimum=0)

    raw_extensions = data.get("accepted_extensions")
    if not isinstance(raw_extensions, (list, tuple, set, frozenset)) or not all(
        isinstance(ext, str) for ext in raw_extensions
    ):
        raise PolicySourceError(
            f"Category '{category_id}': 'accepted_extensions' must be a list of strings"
        )
    extensions = normalize_extensions(raw_extensions)
    if not extensions:
        raise PolicySourceError(
            f"Category '{category_id}': 'accepted_extensions' must not be empty"
        )

    threshold = data.get("confidence_threshold")
    if threshold is None:
        threshold = default_threshold
    if isinstance(threshold, bool) or not isinstance(threshold, int) or not 0 <= threshold <= 100:
        raise PolicySourceError(
            f"Category '{category_id}': 'confidence_threshold' must be an integer in 0..100"
        )

    title = data.get("title") or ""
    if not isinstance(title, str):
        raise PolicySourceError(f"Category '{category_id}': 'title' must be a string")

    hint = data.get("document_type_hint") or document_type_hint_for(title or category_id)
    if hint not in DOCUMENT_TYPE_HINTS:
        raise PolicySourceError(
            f"Category '{category_id}': 'document_type_hint' must be one of "
            f"{sorted(DOCUMENT_TYPE_HINTS)}, got {hint!r}"
        )

    guidelines = data.get("guidelines") or ()
    if not all(isinstance(line, str) for line in guidelines):
        raise PolicySourceError(f"Category '{category_id}': 'guidelines' must be strings")

    return CategoryPolicy(
        category_id=category_id,
        max_tasks=max_tasks,
        accepted_extensions=extensions,
        max_file_size_bytes=max_size,
        confidence_threshold=threshold,
        title=title,
        document_type_hint=hint,
        required=bool(data.get("required", False)),
        guidelines=tuple(guidelines),
    )


def _require_int(data: dict[str, Any], key: str, category_id: str, *, minimum: int) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise PolicySourceError(f"Category '{category_id}': '{key}' must be an integer")
    if value < minimum:
        raise PolicySourceError(f"Category '{category_id}': '{key}' must be >= {minimum}")
    return value
