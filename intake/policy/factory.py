from pathlib import Path

from intake.config.settings import Settings
from intake.policy.base import BasePolicySource
from intake.policy.default_source import DefaultPolicySource
from intake.policy.json_source import JsonFilePolicySource
from intake.policy.postgres_source import PostgresPolicySource


class PolicySourceFactory:
    """Creates the configured category policy source."""

    SOURCES = ("defaults", "json", "postgres")

    @classmethod
    def create(cls, settings: Settings) -> BasePolicySource:
        source = settings.policy_source.lower()
        if source == "defaults":
            return DefaultPolicySource(settings.default_confidence_threshold)
        if source == "json":
            path = settings.policy_file.strip()
            if not path:
                raise ValueError("policy_file is required for policy_source=json")
            return JsonFilePolicySource(Path(path), settings.default_confidence_threshold)
        if source == "postgres":
            return PostgresPolicySource(settings)
        raise ValueError(
            f"Unknown policy source '{source}'. Choose from: {list(cls.SOURCES)}"
        )
