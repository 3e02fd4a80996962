import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import psycopg
import pytest

from intake.config.settings import Settings
from intake.policy.default_source import DefaultPolicySource
from intake.policy.exceptions import PolicySourceError
from intake.policy.factory import PolicySourceFactory
from intake.policy.json_source import JsonFilePolicySource
from intake.policy.postgres_source import PostgresPolicySource

MB = 1024 * 1024


def _write_policy_file(tmp_path: Path, document: Any) -> Path:
    path = tmp_path / "categories.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def _mock_connection(rows: list[dict[str, Any]]) -> MagicMock:
    cursor = MagicMock()
    cursor.fetchall.return_value = rows
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    ctx = MagicMock()
    ctx.__enter__.return_value = conn
    return ctx


class TestDefaultPolicySource:
    def test_loads_all_categories(self) -> None:
        policies = {p.category_id: p for p in DefaultPolicySource().load()}
        assert set(policies) == {"academic", "personal", "recommendations", "financial", "language"}

    def test_academic_limits(self) -> None:
        policies = {p.category_id: p for p in DefaultPolicySource().load()}
        academic = policies["academic"]
        assert academic.max_tasks == 5
        assert academic.max_file_size_bytes == 10 * MB
        assert academic.accepted_extensions == frozenset({".pdf", ".jpg", ".jpeg", ".png"})
        assert academic.document_type_hint == "transcript"

    def test_language_is_optional(self) -> None:
        policies = {p.category_id: p for p in DefaultPolicySource().load()}
        assert policies["language"].required is False
        assert policies["personal"].required is True

    def test_default_threshold_applies(self) -> None:
        policies = DefaultPolicySource(default_threshold=60).load()
        assert {p.confidence_threshold for p in policies} == {60}


class TestJsonFilePolicySource:
    def test_loads_categories(self, tmp_path: Path) -> None:
        path = _write_policy_file(
            tmp_path,
            {
                "categories": [
                    {
                        "category_id": "academic",
                        "max_tasks": 2,
                        "accepted_extensions": ["pdf"],
                        "max_file_size_bytes": 1024,
                        "confidence_threshold": 80,
                    }
                ]
            },
        )
        policies = JsonFilePolicySource(path).load()
        assert len(policies) == 1
        assert policies[0].max_tasks == 2
        assert policies[0].confidence_threshold == 80

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(PolicySourceError, match="Failed to read"):
            JsonFilePolicySource(tmp_path / "missing.json").load()

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PolicySourceError, match="Invalid JSON"):
            JsonFilePolicySource(path).load()

    def test_wrong_shape_raises(self, tmp_path: Path) -> None:
        path = _write_policy_file(tmp_path, [{"category_id": "academic"}])
        with pytest.raises(PolicySourceError, match="'categories' list"):
            JsonFilePolicySource(path).load()

    def test_non_object_entry_raises(self, tmp_path: Path) -> None:
        path = _write_policy_file(tmp_path, {"categories": ["academic"]})
        with pytest.raises(PolicySourceError, match="index 0"):
            JsonFilePolicySource(path).load()


class TestPostgresPolicySource:
    def test_builds_policies_from_rows(self) -> None:
        rows = [
            {
                "category_id": "personal",
                "title": "Personal Documents",
                "document_type_hint": None,
                "required": True,
                "max_tasks": 3,
                "accepted_extensions": [".pdf", ".docx"],
                "max_file_size_bytes": 5 * MB,
                "confidence_threshold": None,
            }
        ]
        with patch(
            "intake.policy.postgres_source.get_connection",
            return_value=_mock_connection(rows),
        ):
            policies = PostgresPolicySource(Settings(default_confidence_threshold=75)).load()

        assert len(policies) == 1
        assert policies[0].category_id == "personal"
        assert policies[0].confidence_threshold == 75
        assert policies[0].document_type_hint == "other"
        assert policies[0].required is True

    def test_wraps_database_errors(self) -> None:
        ctx = MagicMock()
        ctx.__enter__.side_effect = psycopg.OperationalError("connection refused")
        with patch("intake.policy.postgres_source.get_connection", return_value=ctx):
            with pytest.raises(PolicySourceError, match="connection refused"):
                PostgresPolicySource(Settings()).load()


class TestPolicySourceFactory:
    def test_creates_defaults(self) -> None:
        source = PolicySourceFactory.create(Settings(policy_source="defaults"))
        assert isinstance(source, DefaultPolicySource)

    def test_creates_json(self, tmp_path: Path) -> None:
        source = PolicySourceFactory.create(
            Settings(policy_source="json", policy_file=str(tmp_path / "c.json"))
        )
        assert isinstance(source, JsonFilePolicySource)

    def test_json_requires_file(self) -> None:
        with pytest.raises(ValueError, match="policy_file"):
            PolicySourceFactory.create(Settings(policy_source="json", policy_file=""))

    def test_creates_postgres(self) -> None:
        source = PolicySourceFactory.create(Settings(policy_source="Postgres"))
        assert isinstance(source, PostgresPolicySource)

    def test_unknown_source_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown policy source"):
            PolicySourceFactory.create(Settings(policy_source="yaml"))
