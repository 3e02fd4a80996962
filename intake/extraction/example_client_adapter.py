"""Offline extraction client.

Returns a fixed, valid extraction payload without network calls. Used for
local development and tests, and as a template for new provider adapters:
implement BaseParserClient and register the provider in ParserFactory.
"""

import json
from typing import ClassVar

from intake.extraction.base import BaseParserClient


class ExampleClientAdapter(BaseParserClient):
    """Adapter that always answers with DEFAULT_RESPONSE (or a given payload)."""

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {
        "confidence_score": 85,
        "parsed_data": {
            "education": {
                "institutions": [
                    {
                        "name": "Example University",
                        "degree": "Bachelor of Science",
                        "field": "Computer Science",
                        "gpa": 3.6,
                    }
                ]
            },
            "skills": {"technical": ["Python"], "languages": [], "soft_skills": []},
        },
    }

    def __init__(self, response: dict[str, object] | None = None) -> None:
        self._response = response if response is not None else self.DEFAULT_RESPONSE

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> str:
        _ = model, temperature, system_prompt, user_prompt, json_schema, image_data_url
        return json.dumps(self._response)
