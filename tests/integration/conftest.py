import json
from collections.abc import Iterator
from pathlib import Path

import pytest

from intake.config.settings import Settings
from intake.pipeline.facade import Pipeline, build_pipeline

MB = 1024 * 1024


def _write_policies(path: Path, academic_threshold: int) -> Path:
    path.write_text(
        json.dumps(
            {
                "categories": [
                    {
                        "category_id": "academic",
                        "title": "Academic Documents",
                        "max_tasks": 5,
                        "accepted_extensions": ["pdf", "jpg", "jpeg", "png"],
                        "max_file_size_bytes": 10 * MB,
                        "confidence_threshold": academic_threshold,
                    },
                    {
                        "category_id": "personal",
                        "title": "CV and Personal Statement",
                        "max_tasks": 3,
                        "accepted_extensions": ["pdf", "doc", "docx"],
                        "max_file_size_bytes": 5 * MB,
                    },
                ]
            }
        ),
        encoding="utf-8",
    )
    return path


def _settings(tmp_path: Path, academic_threshold: int) -> Settings:
    return Settings(
        policy_source="json",
        policy_file=str(_write_policies(tmp_path / "categories.json", academic_threshold)),
        blob_store="local",
        blob_root=str(tmp_path / "blobs"),
        transfer_chunk_size_bytes=4096,
        parser_provider="example",
        stage_timeout_seconds=10,
    )


@pytest.fixture()
def blob_root(tmp_path: Path) -> Path:
    return tmp_path / "blobs"


@pytest.fixture()
def pipeline(tmp_path: Path) -> Iterator[Pipeline]:
    with build_pipeline(_settings(tmp_path, academic_threshold=70)) as built:
        yield built


@pytest.fixture()
def strict_pipeline(tmp_path: Path) -> Iterator[Pipeline]:
    with build_pipeline(_settings(tmp_path, academic_threshold=90)) as built:
        yield built
