"""Configuration management for the checkout authorization flow."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VerificationServiceSettings(BaseSettings):
    """Verification service client settings."""

    base_url: str = Field(
        default="http://localhost:3000/api",
        description="Verification service base URL"
    )
    auth_token: str | None = Field(default=None, description="Optional bearer token")
    timeout_seconds: float = Field(default=10.0, description="Request timeout")


class PaymentServiceSettings(BaseSettings):
    """Payment service client settings."""

    base_url: str = Field(
        default="http://localhost:3000/api",
        description="Payment service base URL"
    )
    auth_token: str | None = Field(default=None, description="Optional bearer token")
    timeout_seconds: float = Field(default=15.0, description="Request timeout")


class StripeProcessorSettings(BaseSettings):
    """Stripe processor settings."""

    api_key: str = Field(default="", description="Stripe API key")


class CheckoutSettings(BaseSettings):
    """Behaviour of the authorization state machine."""

    processor: str = Field(default="stripe", description="Card processor name")
    currency: str = Field(default="usd", description="ISO 4217 charge currency")
    auto_charge_delay_seconds: float = Field(
        default=0.0,
        ge=0.0,
        description="Pause between code verification and charging"
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment name")

    verification_service: VerificationServiceSettings = Field(
        default_factory=VerificationServiceSettings
    )
    payment_service: PaymentServiceSettings = Field(
        default_factory=PaymentServiceSettings
    )
    stripe: StripeProcessorSettings = Field(default_factory=StripeProcessorSettings)
    checkout: CheckoutSettings = Field(default_factory=CheckoutSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
    )


# Global settings instance
settings = Settings()
