from typing import Any, ClassVar

from intake.config.settings import Settings
from intake.extraction.base import BaseParser, BaseParserClient
from intake.extraction.example_client_adapter import ExampleClientAdapter
from intake.extraction.openai_client_adapter import OpenAIClientAdapter
from intake.extraction.parser import LlmDocumentParser
from intake.extraction.text_reader import DocumentTextReader
from intake.transfer.base import BaseBlobStore


class ParserFactory:
    """Creates the configured document parser."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def supported_providers(cls) -> list[str]:
        return ["example", "openai", "openai_compatible", *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS)]

    @classmethod
    def create(cls, settings: Settings, blob_store: BaseBlobStore) -> BaseParser:
        """Create a parser reading documents from `blob_store`."""
        provider = settings.parser_provider.lower()
        text_reader = DocumentTextReader(settings.pdf_engine)
        if provider == "example":
            return LlmDocumentParser(
                client=ExampleClientAdapter(),
                blob_store=blob_store,
                text_reader=text_reader,
                model="example",
            )
        return LlmDocumentParser(
            client=cls._create_client(provider, settings),
            blob_store=blob_store,
            text_reader=text_reader,
            model=cls._setting(provider, "model_name", settings) or "",
            temperature=settings.parser_openai_temperature if provider == "openai" else 0.0,
        )

    @classmethod
    def _create_client(cls, provider: str, settings: Settings) -> BaseParserClient:
        base_url = cls._resolve_base_url(provider, settings)
        return OpenAIClientAdapter(
            api_key=cls._setting(provider, "api_key", settings) or "",
            timeout_seconds=cls._setting(provider, "timeout_seconds", settings) or 30,
            base_url=base_url,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = settings.parser_openai_compatible_base_url.strip()
            if not url:
                raise ValueError(
                    "parser_openai_compatible_base_url is required for "
                    "parser_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return default_base_url
        raise ValueError(
            f"Unknown parser provider '{provider}'. Choose from: {cls.supported_providers()}"
        )

    @staticmethod
    def _setting(provider: str, name: str, settings: Settings) -> Any:
        return getattr(settings, f"parser_{provider}_{name}", None)
