from typing import Any

import httpx
import openai

from intake.extraction.base import BaseParserClient
from intake.extraction.exceptions import ParserError, ParserNetworkError


class OpenAIClientAdapter(BaseParserClient):
    """Chat-completions client for OpenAI and OpenAI-compatible providers.

    The answer is requested in `json_schema` response format. Images are
    attached as an `image_url` content part next to the prompt text.
    """

    SCHEMA_NAME = "document_extraction"

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

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
        messages: list[dict[str, Any]] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": self._user_content(user_prompt, image_data_url)},
        ]
        # Several compatible providers refuse strict schemas.
        response_format = {
            "type": "json_schema",
            "json_schema": {"name": self.SCHEMA_NAME, "strict": False, "schema": json_schema},
        }
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format=response_format,  # type: ignore[arg-type]
                messages=messages,  # type: ignore[arg-type]
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ParserNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ParserNetworkError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise ParserError("AI returned no choices")
        choice = response.choices[0]
        if choice.finish_reason == "length":
            raise ParserError("AI response was cut off at the token limit")
        if choice.message.content is None:
            raise ParserError("AI returned empty response")
        return choice.message.content

    @staticmethod
    def _user_content(prompt: str, image_data_url: str | None) -> str | list[dict[str, Any]]:
        if image_data_url is None:
            return prompt
        return [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": image_data_url}},
        ]
