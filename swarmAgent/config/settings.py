"""Environment-bound configuration objects.

Settings are loaded from environment variables and an optional ``.env`` file
through pydantic-settings. Each group accepts a couple of alias names so that
deployments can keep their existing variable names.

Example:
    from swarmAgent.config.settings import get_settings

    settings = get_settings()  # Cached singleton
    limit = settings.concurrency.global_concurrency
    timeout = settings.hooks.hook_timeout
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()


_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    populate_by_name=True,
)


class ConcurrencySettings(BaseSettings):
    """Permit pool sizes.

    - global_concurrency: simultaneous model requests across a whole swarm,
      delegation included (default: 50)
    - local_concurrency: concurrent tool calls per agent turn (default: 10)
    """

    global_concurrency: int = Field(
        default=50,
        ge=1,
        validation_alias=AliasChoices("SWARM_GLOBAL_CONCURRENCY", "GLOBAL_CONCURRENCY"),
    )
    local_concurrency: int = Field(
        default=10,
        ge=1,
        validation_alias=AliasChoices("SWARM_LOCAL_CONCURRENCY", "LOCAL_CONCURRENCY"),
    )

    model_config = _ENV_CONFIG


class HookSettings(BaseSettings):
    """Timeouts for external-command hooks and workflow transformers (seconds)."""

    hook_timeout: float = Field(default=60.0, gt=0, alias="SWARM_HOOK_TIMEOUT")
    transformer_timeout: float = Field(default=60.0, gt=0, alias="SWARM_TRANSFORMER_TIMEOUT")

    model_config = _ENV_CONFIG


class ModelSettings(BaseSettings):
    """Default model identifier and credentials for OpenAI-compatible endpoints."""

    default_model: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices("SWARM_MODEL", "MODEL_DEFAULT", "OPENAI_MODEL"),
    )
    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SWARM_MODEL_API_KEY", "OPENAI_API_KEY"),
    )
    base_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SWARM_MODEL_BASE_URL", "OPENAI_BASE_URL"),
    )
    context_window: int = Field(
        default=128000,
        validation_alias=AliasChoices("SWARM_MODEL_CONTEXT_WINDOW", "MODEL_CONTEXT_WINDOW"),
    )
    request_timeout: float = Field(default=300.0, alias="SWARM_MODEL_TIMEOUT")

    model_config = _ENV_CONFIG


class RuntimeSettings(BaseSettings):
    """Per-agent graph execution limits."""

    # LangGraph super-steps per ask; each tool round trip takes two
    recursion_limit: int = Field(default=200, ge=4, alias="SWARM_RECURSION_LIMIT")
    default_logging_hooks: bool = Field(default=True, alias="SWARM_DEFAULT_LOGGING_HOOKS")

    model_config = _ENV_CONFIG


class ObservabilitySettings(BaseSettings):
    """Diagnostic logging configuration."""

    log_level: str = Field(default="INFO", alias="SWARM_LOG_LEVEL")
    log_dir: str = Field(default="logs", alias="SWARM_LOG_DIR")
    log_prompt_max_length: int = Field(default=500, ge=100, le=5000, alias="SWARM_LOG_PROMPT_MAX_LENGTH")

    model_config = _ENV_CONFIG


class Settings(BaseSettings):
    """Root settings loaded from the environment and ``.env``.

    Use get_settings() to obtain a cached singleton instance.
    """

    environment: str = Field(default="dev", alias="APP_ENV")
    concurrency: ConcurrencySettings = Field(default_factory=ConcurrencySettings)
    hooks: HookSettings = Field(default_factory=HookSettings)
    models: ModelSettings = Field(default_factory=ModelSettings)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        case_sensitive=False,
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance."""
    return Settings()
