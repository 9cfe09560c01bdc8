"""Configuration management using environment variables and pydantic."""

from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Deployment settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Gemini Configuration
    gemini_api_key: str = ""
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-1.5-flash-latest"
    gemini_temperature: float = 0.7
    gemini_max_output_tokens: int = 2048
    gemini_top_p: float = 0.8
    gemini_top_k: int = 40

    # Ollama Configuration (embeddings)
    ollama_base_url: str = "http://localhost:11434"
    ollama_embedding_model: str = "mxbai-embed-large"
    embedding_dimension: Optional[int] = 1024  # None disables the check

    # Vector Database Configuration
    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: str = ""

    # Query Configuration
    index_name: str = "stroke"
    top_k: int = 5
    max_top_k: int = 10
    request_timeout_seconds: float = 30.0
    greeting_enabled: bool = True

    # Logging Configuration
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file_path: str = "logs/assistant.log"  # empty string disables file logging
    log_max_size_mb: int = 100
    log_backup_count: int = 5


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
