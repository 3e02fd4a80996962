from abc import ABC, abstractmethod

from intake.policy.models import CategoryPolicy


class BasePolicySource(ABC):
    """Contract for all category policy sources."""

    @abstractmethod
    def load(self) -> list[CategoryPolicy]:
        """Load every configured category policy.

        Returns:
            One CategoryPolicy per category.

        Raises:
            PolicySourceError: if the source is unreachable or malformed.
        """
