from typing import Any, ClassVar

from intake.policy.base import BasePolicySource
from intake.policy.builder import build_policy
from intake.policy.models import DEFAULT_CONFIDENCE_THRESHOLD, CategoryPolicy

_MB = 1024 * 1024


class DefaultPolicySource(BasePolicySource):
    """Built-in categories used by the application's document manager."""

    CATEGORIES: ClassVar[list[dict[str, Any]]] = [
        {
            "category_id": "academic",
            "title": "Academic Documents",
            "document_type_hint": "transcript",
            "required": True,
            "max_tasks": 5,
            "accepted_extensions": [".pdf", ".jpg", ".jpeg", ".png"],
            "max_file_size_bytes": 10 * _MB,
            "guidelines": [
                "Upload official transcripts from all attended institutions",
                "Include degree certificates and diplomas",
                "Documents must be clear and legible",
            ],
        },
        {
            "category_id": "personal",
            "title": "Personal Documents",
            "document_type_hint": "cv",
            "required": True,
            "max_tasks": 3,
            "accepted_extensions": [".pdf", ".doc", ".docx"],
            "max_file_size_bytes": 5 * _MB,
            "guidelines": [
                "Upload your most recent CV or resume",
                "Include a personal statement",
            ],
        },
        {
            "category_id": "recommendations",
            "title": "Recommendation Letters",
            "document_type_hint": "recommendation",
            "required": True,
            "max_tasks": 3,
            "accepted_extensions": [".pdf", ".doc", ".docx"],
            "max_file_size_bytes": 5 * _MB,
            "guidelines": [
                "Letters should be on official letterhead when possible",
                "Each letter should be signed and dated",
            ],
        },
        {
            "category_id": "financial",
            "title": "Financial Documents",
            "document_type_hint": "other",
            "required": True,
            "max_tasks": 5,
            "accepted_extensions": [".pdf", ".jpg", ".jpeg", ".png"],
            "max_file_size_bytes": 10 * _MB,
            "guidelines": [
                "Provide bank statements from the last 3-6 months",
                "Include scholarship award letters if applicable",
            ],
        },
        {
            "category_id": "language",
            "title": "Language Proficiency",
            "document_type_hint": "certificate",
            "required": False,
            "max_tasks": 3,
            "accepted_extensions": [".pdf", ".jpg", ".jpeg", ".png"],
            "max_file_size_bytes": 5 * _MB,
            "guidelines": [
                "Upload official test score reports",
                "Test scores should be recent (within 2 years)",
            ],
        },
    ]

    def __init__(self, default_threshold: int = DEFAULT_CONFIDENCE_THRESHOLD) -> None:
        self._default_threshold = default_threshold

    def load(self) -> list[CategoryPolicy]:
        return [build_policy(raw, self._default_threshold) for raw in self.CATEGORIES]
