from dataclasses import dataclass, field

DEFAULT_CONFIDENCE_THRESHOLD = 70


@dataclass(frozen=True)
class CategoryPolicy:
    """Admission rules for one document category."""

    category_id: str
    max_tasks: int
    accepted_extensions: frozenset[str]
    max_file_size_bytes: int
    confidence_threshold: int = DEFAULT_CONFIDENCE_THRESHOLD
    title: str = ""
    document_type_hint: str = "other"
    required: bool = False
    guidelines: tuple[str, ...] = field(default_factory=tuple)
