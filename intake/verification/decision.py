"""The single place where acceptance policy is decided."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Decision:
    verified: bool
    reason: str | None = None


def decide(confidence_score: int, confidence_threshold: int) -> Decision:
    """Accept when the score reaches the threshold; ties are accepted."""
    if confidence_score >= confidence_threshold:
        return Decision(verified=True)
    return Decision(
        verified=False,
        reason=f"confidence below threshold: {confidence_score} < {confidence_threshold}",
    )
