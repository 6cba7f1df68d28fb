"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
Engine tuning (resolver bound, confidence bands, match boosts) lives here
so deployments can adjust it without code changes.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SELECTION RESOLVER
    # ===================
    resolver_max_passes: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum fixpoint passes before resolution is truncated"
    )

    # ===================
    # CONFIDENCE MATCHER
    # ===================
    match_auto_verified_threshold: float = Field(
        default=0.9,
        ge=0,
        le=1,
        description="Score at or above which a match is AUTO_VERIFIED"
    )
    match_review_threshold: float = Field(
        default=0.5,
        ge=0,
        le=1,
        description="Score at or above which a match is REVIEW_NEEDED"
    )
    match_refdes_bonus: float = Field(
        default=0.2,
        ge=0,
        le=0.5,
        description="Bonus added when the part's reference designator is named in the category"
    )
    match_part_number_boost: float = Field(
        default=1.1,
        ge=1,
        le=2,
        description="Internal score for a literal part number hit (clamped to 1.0 on output)"
    )
    match_knowledge_boost: float = Field(
        default=1.05,
        ge=1,
        le=2,
        description="Internal score for a previously confirmed mapping"
    )
    auto_select_floor: float = Field(
        default=0.45,
        ge=0,
        le=1,
        description="Minimum score for an order option to be auto-selected"
    )
    min_token_length: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Shortest token kept by the matching tokenizer"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
