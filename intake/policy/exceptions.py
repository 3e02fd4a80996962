class PolicyError(Exception):
    """Base exception for category policy configuration errors."""


class UnknownCategoryError(PolicyError):
    """Raised when no policy is configured for a category."""


class PolicySourceError(PolicyError):
    """Raised when policies cannot be loaded or are malformed."""
