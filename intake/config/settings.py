from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    policy_source: str = "defaults"
    policy_file: str = ""
    default_confidence_threshold: int = 70

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "intake"
    db_username: str = "intake"
    db_password: str = "secret"

    blob_store: str = "local"
    blob_root: str = "/app/files"
    transfer_chunk_size_bytes: int = 64 * 1024
    progress_step_percent: int = 10

    stage_timeout_seconds: float | None = None

    pdf_engine: str = "pdfplumber"

    parser_provider: str = "openai"

    parser_openai_api_key: str = ""
    parser_openai_model_name: str = "gpt-4o-mini"
    parser_openai_timeout_seconds: int = 30
    parser_openai_temperature: float = 0.0

    parser_openai_compatible_base_url: str = ""
    parser_openai_compatible_api_key: str = ""
    parser_openai_compatible_model_name: str = ""
    parser_openai_compatible_timeout_seconds: int = 30

    parser_openrouter_api_key: str = ""
    parser_openrouter_model_name: str = ""
    parser_openrouter_timeout_seconds: int = 30

    parser_groq_api_key: str = ""
    parser_groq_model_name: str = ""
    parser_groq_timeout_seconds: int = 30

    parser_together_api_key: str = ""
    parser_together_model_name: str = ""
    parser_together_timeout_seconds: int = 30

    parser_deepseek_api_key: str = ""
    parser_deepseek_model_name: str = ""
    parser_deepseek_timeout_seconds: int = 30

    parser_ollama_api_key: str = "ollama"
    parser_ollama_model_name: str = ""
    parser_ollama_timeout_seconds: int = 60
