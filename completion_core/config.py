"""
Application configuration management.

Following Sandi Metz principles:
- Single Responsibility: Configuration loading and validation
- Small class: < 100 lines
- Clear naming: Descriptive property names
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from completion_core.models.llm import ModelTier


class AppConfig(BaseSettings):
    """
    Completion layer configuration with validation.

    Loads from environment variables with fallback to .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Provider settings
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    anthropic_base_url: str = Field(
        default="", description="Optional Anthropic API base URL override"
    )
    request_timeout_seconds: float = Field(
        default=120.0, gt=0.0, description="Provider request timeout"
    )

    # Model routing
    fast_model_id: str = Field(
        default="claude-3-5-haiku-20241022", description="Model for the fast tier"
    )
    quality_model_id: str = Field(
        default="claude-sonnet-4-20250514", description="Model for the quality tier"
    )
    default_max_tokens: int = Field(default=2048, ge=1, description="Max tokens")
    structured_max_tokens: int = Field(
        default=1024, ge=1, description="Max tokens for structured JSON calls"
    )

    # Deterministic substitution
    mock_llm: bool = Field(
        default=False, description="Serve fixture responses instead of live calls"
    )
    e2e_fixtures_path: str = Field(
        default="", description="Directory holding <fixture-id>.yaml files"
    )

    # Prompt snapshots
    disable_prompt_logging: bool = Field(
        default=False, description="Disable prompt/response snapshot files"
    )
    prompt_log_dir: str = Field(
        default="logs/prompts", description="Directory for prompt snapshots"
    )

    @field_validator("fast_model_id", "quality_model_id")
    @classmethod
    def validate_model_id(cls, v: str) -> str:
        """Validate model identifiers are not blank."""
        v = v.strip()
        if not v:
            raise ValueError("Model identifier cannot be empty")
        return v

    @property
    def has_api_key(self) -> bool:
        """Check if provider credentials are present."""
        return bool(self.anthropic_api_key.strip())

    def model_for_tier(self, tier: ModelTier) -> str:
        """
        Resolve the model identifier for a tier.

        Args:
            tier: Requested model tier

        Returns:
            Configured model identifier
        """
        if ModelTier(tier) is ModelTier.FAST:
            return self.fast_model_id
        return self.quality_model_id


# Global configuration instance
config = AppConfig()
