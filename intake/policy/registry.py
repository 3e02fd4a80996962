from intake.logging.logger import Log
from intake.policy.base import BasePolicySource
from intake.policy.exceptions import PolicySourceError, UnknownCategoryError
from intake.policy.models import CategoryPolicy


class PolicyRegistry:
    """Read-only lookup of category policies, loaded once from a source."""

    def __init__(self, policies: list[CategoryPolicy]) -> None:
        by_id: dict[str, CategoryPolicy] = {}
        for policy in policies:
            if policy.category_id in by_id:
                raise PolicySourceError(f"Duplicate category: {policy.category_id}")
            by_id[policy.category_id] = policy
        self._policies = by_id

    @classmethod
    def from_source(cls, source: BasePolicySource) -> "PolicyRegistry":
        registry = cls(source.load())
        Log.info(f"Loaded {len(registry)} category policies: {registry.categories()}")
        return registry

    def get_policy(self, category_id: str) -> CategoryPolicy:
        """Return the policy for a category.

        Raises:
            UnknownCategoryError: if the category is not configured.
        """
        policy = self._policies.get(category_id)
        if policy is None:
            raise UnknownCategoryError(
                f"Unknown category '{category_id}'. Configured: {self.categories()}"
            )
        return policy

    def categories(self) -> list[str]:
        return sorted(self._policies)

    def __len__(self) -> int:
        return len(self._policies)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._policies
