"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Retry defaults match RetryPolicy defaults (5s initial, x2, 60s cap, 10 attempts)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Anthropic
    anthropic_api_key: str = "sk-ant-placeholder"
    anthropic_timeout_seconds: int = 300

    # Retry / backoff
    retry_initial_delay_ms: int = Field(5000, gt=0)
    retry_multiplier: float = Field(2, ge=1)
    retry_max_delay_ms: int = Field(60_000, gt=0)
    retry_max_attempts: int = Field(10, ge=1)

    # Agent
    agent_model: str = "claude-opus-4-6"
    agent_max_tokens: int = 8192
    summary_max_tokens: int = 2048

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
