"""
Runtime configuration.

Values are read from the environment (or a local ``.env`` file) once and
cached; see ``get_settings``.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = Field(
        default="sqlite:///program_pipeline.db", validation_alias="DATABASE_URL"
    )
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o", validation_alias="OPENAI_MODEL")
    llm_max_tokens: int = Field(default=8192, validation_alias="LLM_MAX_TOKENS")
    llm_temperature: float = Field(default=0.7, validation_alias="LLM_TEMPERATURE")
    llm_timeout_seconds: float = Field(default=120.0, validation_alias="LLM_TIMEOUT_SECONDS")
    generation_max_attempts: int = Field(default=1, validation_alias="GENERATION_MAX_ATTEMPTS")
    generation_retry_backoff_seconds: float = Field(
        default=2.0, validation_alias="GENERATION_RETRY_BACKOFF_SECONDS"
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, validation_alias="LOG_FILE")

    @field_validator("generation_max_attempts")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        """At least one generation attempt is always made."""
        if v < 1:
            raise ValueError("GENERATION_MAX_ATTEMPTS must be at least 1")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
