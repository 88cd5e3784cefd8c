"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Hours to milliseconds
_HOUR_MS = 60 * 60 * 1000


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Verification tokens
    verification_secret: str = Field(
        default="", description="Secret key for signing email verification tokens"
    )
    stripe_webhook_secret: str = Field(
        default="",
        description="Stripe webhook secret, used for signing when no verification secret is set",
    )
    verification_token_ttl_hours: int = Field(
        default=24, gt=0, description="Verification token lifetime in hours"
    )
    verification_check_signature_first: bool = Field(
        default=False,
        description="Check the token signature before its expiry during verification",
    )

    # App
    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    debug: bool | None = Field(default=None, description="Debug mode (defaults based on environment)")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    app_url: str = Field(
        default="http://localhost:5173", description="Frontend app URL for verification links"
    )
    cors_origins: list[str] = Field(
        default=["https://shiftcheck.app", "https://www.shiftcheck.app"],
        description="Allowed CORS origins",
    )
    dev_cors_origins: list[str] = Field(
        default=[
            "http://localhost:5173",
            "http://localhost:3001",
            "http://localhost:3002",
            "http://localhost:3003",
        ],
        description="Extra CORS origins allowed in development",
    )

    # Email
    email_backend: Literal["console"] = Field(
        default="console", description="Email backend used for verification emails"
    )
    email_from: str = Field(
        default="ShiftCheck <noreply@shiftcheck.app>", description="From address for emails"
    )
    support_email: str = Field(
        default="support@shiftcheck.app", description="Support address shown in emails"
    )

    # Sentry
    sentry_dsn: str = Field(default="", description="Sentry DSN for error tracking")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == "development"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.environment == "test"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def debug_enabled(self) -> bool:
        """Get debug mode, defaulting based on environment if not explicitly set."""
        if self.debug is not None:
            return self.debug
        return self.is_development

    @computed_field  # type: ignore[prop-decorator]
    @property
    def signing_secret(self) -> str:
        """Secret used to sign verification tokens.

        Falls back to the Stripe webhook secret when no dedicated
        verification secret is configured. Empty when neither is set.
        """
        return self.verification_secret or self.stripe_webhook_secret

    @computed_field  # type: ignore[prop-decorator]
    @property
    def token_ttl_ms(self) -> int:
        """Verification token lifetime in milliseconds."""
        return self.verification_token_ttl_hours * _HOUR_MS

    @computed_field  # type: ignore[prop-decorator]
    @property
    def allowed_origins(self) -> list[str]:
        """CORS origins, including localhost ones in development."""
        if self.is_development:
            return [*self.cors_origins, *self.dev_cors_origins]
        return list(self.cors_origins)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience alias
settings = get_settings()
