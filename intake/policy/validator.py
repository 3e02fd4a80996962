from intake.pipeline.exceptions import ValidationError
from intake.pipeline.models import FileMeta
from intake.policy.models import CategoryPolicy


def validate(candidate: FileMeta, policy: CategoryPolicy) -> None:
    """Check a candidate against its category policy before admission.

    Rules run in order and the first violation wins: extension first,
    then size.

    Raises:
        ValidationError: describing the violated rule.
    """
    extension = candidate.extension
    if extension not in policy.accepted_extensions:
        accepted = ", ".join(sorted(policy.accepted_extensions))
        shown = extension or "(none)"
        raise ValidationError(f"file type not supported: {shown} (accepted: {accepted})")
    if candidate.size > policy.max_file_size_bytes:
        raise ValidationError(
            f"exceeds max size: {candidate.size} > {policy.max_file_size_bytes} bytes"
        )
