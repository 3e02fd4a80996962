import json
from pathlib import Path

from intake.policy.base import BasePolicySource
from intake.policy.builder import build_policy
from intake.policy.exceptions import PolicySourceError
from intake.policy.models import DEFAULT_CONFIDENCE_THRESHOLD, CategoryPolicy


class JsonFilePolicySource(BasePolicySource):
    """Loads policies from a JSON document of the form {"categories": [...]}."""

    def __init__(
        self,
        path: Path,
        default_threshold: int = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> None:
        self._path = path
        self._default_threshold = default_threshold

    def load(self) -> list[CategoryPolicy]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PolicySourceError(f"Failed to read policy file {self._path}: {exc}") from exc

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PolicySourceError(f"Invalid JSON in policy file {self._path}: {exc}") from exc

        if not isinstance(document, dict) or not isinstance(document.get("categories"), list):
            raise PolicySourceError(
                f"Policy file {self._path} must be an object with a 'categories' list"
            )

        policies: list[CategoryPolicy] = []
        for index, item in enumerate(document["categories"]):
            if not isinstance(item, dict):
                raise PolicySourceError(f"Category at index {index} must be an object")
            policies.append(build_policy(item, self._default_threshold))
        return policies
