from intake.policy.builder import document_type_hint_for
from intake.policy.models import CategoryPolicy
from intake.policy.registry import PolicyRegistry
from intake.policy.validator import validate

__all__ = ["CategoryPolicy", "PolicyRegistry", "document_type_hint_for", "validate"]
