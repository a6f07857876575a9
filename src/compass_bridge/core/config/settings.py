"""
Application configuration management.

Handles loading configuration from environment variables and config files.
"""

from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

PLACEHOLDER_CREDENTIALS = frozenset(
    {"", "demo-figma-key", "mock_key", "your-api-key", "your_api_key", "changeme"}
)


class ApplicationSettings(BaseSettings):
    """Application configuration."""

    app_name: str = Field(default="Compass Bridge", alias="APP_NAME")
    app_env: str = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("app_env")
    @classmethod
    def validate_environment(cls, v: Any) -> str:
        allowed = {"development", "testing", "staging", "production"}
        v_str = str(v)
        if v_str not in allowed:
            raise ValueError(f"APP_ENV must be one of {allowed}")
        return v_str

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = str(v).upper()
        if v not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return str(v)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class FigmaSettings(BaseSettings):
    """Figma REST API client configuration."""

    api_key: str = Field(default="", alias="FIGMA_API_KEY")
    access_token: str = Field(default="", alias="FIGMA_ACCESS_TOKEN")
    base_url: str = Field(default="https://api.figma.com/v1", alias="FIGMA_BASE_URL")
    timeout: float = Field(default=30.0, alias="FIGMA_TIMEOUT")
    max_retries: int = Field(default=3, ge=0, alias="FIGMA_MAX_RETRIES")
    base_delay: float = Field(default=1.0, ge=0, alias="FIGMA_BASE_DELAY")

    @model_validator(mode="after")
    def fallback_to_access_token(self) -> "FigmaSettings":
        if not self.api_key and self.access_token:
            self.api_key = self.access_token
        return self

    @property
    def has_credential(self) -> bool:
        return self.api_key not in PLACEHOLDER_CREDENTIALS

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class LlmSettings(BaseSettings):
    """Text generation backend configuration."""

    provider: str = Field(default="anthropic", alias="LLM_PROVIDER")
    anthropic_api_key: str = Field(default="", alias="ANTHROPIC_API_KEY")
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    model: str | None = Field(None, alias="LLM_MODEL")
    max_tokens: int = Field(default=4096, gt=0, alias="LLM_MAX_TOKENS")
    timeout: float = Field(default=60.0, alias="LLM_TIMEOUT")
    max_retries: int = Field(default=3, ge=0, alias="LLM_MAX_RETRIES")

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: Any) -> str:
        allowed = {"anthropic", "openai"}
        v_str = str(v).lower()
        if v_str not in allowed:
            raise ValueError(f"LLM_PROVIDER must be one of {allowed}")
        return v_str

    @property
    def api_key(self) -> str:
        """Key for the selected provider."""
        if self.provider == "openai":
            return self.openai_api_key
        return self.anthropic_api_key

    @property
    def resolved_model(self) -> str:
        if self.model:
            return self.model
        if self.provider == "openai":
            return "gpt-4o-mini"
        return "claude-3-5-sonnet-latest"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class HostSettings(BaseSettings):
    """Capability host and HTTP endpoint configuration."""

    server_name: str = Field(default="compass-bridge", alias="HOST_SERVER_NAME")
    server_version: str = Field(default="1.0.0", alias="HOST_SERVER_VERSION")
    host: str = Field(default="127.0.0.1", alias="HOST_HOST")
    port: int = Field(default=3002, alias="HOST_PORT")

    # Remote hosts to register as providers, comma-separated name=url
    remote_providers_spec: str = Field(default="", alias="HOST_REMOTE_PROVIDERS")

    @property
    def remote_providers(self) -> dict[str, str]:
        """Remote provider endpoints keyed by routing name."""
        parsed = {}
        for item in self.remote_providers_spec.split(","):
            if "=" not in item:
                continue
            name, url = item.split("=", 1)
            if name.strip() and url.strip():
                parsed[name.strip()] = url.strip()
        return parsed

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class Settings(BaseSettings):
    """Main settings class that combines all configuration sections."""

    application: ApplicationSettings = Field(default_factory=ApplicationSettings)
    figma: FigmaSettings = Field(default_factory=FigmaSettings)
    llm: LlmSettings = Field(default_factory=LlmSettings)  # type: ignore[arg-type]
    host: HostSettings = Field(default_factory=HostSettings)

    @property
    def is_development(self) -> bool:
        return self.application.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.application.app_env == "production"

    @property
    def is_testing(self) -> bool:
        return self.application.app_env == "testing"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def load_settings() -> Settings:
    """
    Load settings from environment variables and .env file.

    Returns:
        Settings: Configured settings instance
    """
    return Settings()


_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get cached settings instance (singleton pattern).

    Returns:
        Settings: Cached settings instance
    """
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
