"""Configuration management for the try-on studio."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from .models.request import Provider


class GeminiConfig(BaseModel):
    """Multi-modal "contents" provider settings."""
    analysis_model: str = "gemini-3-pro-image-preview"
    image_model: str = "gemini-3-pro-image-preview"


class OpenAIConfig(BaseModel):
    """REST "responses" provider settings."""
    base_url: str = "https://api.openai.com/v1"
    analysis_model: str = "gpt-4.1-mini"
    image_model: str = "gpt-4.1"
    timeout: float = 300.0  # image generation can take minutes


class RetryConfig(BaseModel):
    """Backoff settings for transient provider failures."""
    max_retries: int = Field(default=3, ge=0)
    base_delay_ms: int = Field(default=2000, ge=0)
    jitter_ms: int = Field(default=400, ge=0)


class AuthConfig(BaseModel):
    """Credential handling settings."""
    strict_status_match: bool = False  # only trust status/code, ignore message text
    validation_timeout: float = 12.0


class StudioConfig(BaseSettings):
    """Main studio configuration."""

    provider: Provider = Provider.GEMINI

    # Sub-configs
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)

    # Credentials (loaded from .env, optional)
    gemini_api_key: str | None = None
    openai_api_key: str | None = None

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "VTON_"
        env_nested_delimiter = "__"
        extra = "ignore"

    def initial_credentials(self) -> dict[Provider, str]:
        """Credentials configured in the environment, keyed by provider."""
        keys = {
            Provider.GEMINI: self.gemini_api_key,
            Provider.OPENAI: self.openai_api_key,
        }
        return {provider: key.strip() for provider, key in keys.items() if key and key.strip()}


def load_config() -> StudioConfig:
    """Load configuration from environment and defaults."""
    return StudioConfig()
