"""Configuration Management."""

import os
from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="UIFORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Server
    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=8080, gt=0, description="HTTP port")

    # Completion service
    llm_base_url: str = Field(default="https://api.openai.com/v1", description="Completion API base URL")
    llm_api_key: str = Field(
        default_factory=lambda: os.getenv("OPENAI_API_KEY", ""), description="Completion API key"
    )
    llm_model: str = Field(default="gpt-4o-mini", description="Completion model name")
    llm_temperature: float = Field(default=0.0, ge=0.0, le=2.0, description="Model temperature")
    llm_timeout: float = Field(default=60.0, gt=0, description="Completion request timeout")
    llm_use_chat_completions: bool = Field(
        default=False, description="Force the chat completions endpoint"
    )

    # Rate limiting
    rate_limit_max_attempts: int = Field(default=3, ge=1, description="Attempts on 429 responses")
    rate_limit_min_wait: float = Field(default=1.0, ge=0.0, description="Minimum wait between 429 retries")

    # Circuit breaker
    breaker_fail_max: int = Field(default=5, gt=0, description="Failures before the breaker opens")
    breaker_reset_timeout: int = Field(default=30, gt=0, description="Breaker reset timeout (seconds)")

    # Validation
    max_prompt_length: int = Field(default=2000, gt=0, description="Max request text length")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")

    # Debug
    expose_debug: bool = Field(default=False, description="Return generated markup on markup failures")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
