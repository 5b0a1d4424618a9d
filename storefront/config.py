"""Application configuration management using Pydantic Settings."""
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the directory where settings.py is located
BASE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    app_name: str = "Storefront Order Service"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = Field(default="development", pattern="^(development|staging|production)$")

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = ["http://localhost:3000"]

    # MongoDB
    mongodb_url: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = "storefront"
    mongodb_max_pool_size: int = 10
    mongodb_min_pool_size: int = 1
    mongodb_use_transactions: bool = Field(
        default=False,
        description="Write order header and items in one transaction (replica set required)",
    )
    claim_lease_seconds: int = Field(
        default=120,
        ge=1,
        description="Age after which an unfinished submission claim may be taken over",
    )

    # Auth
    jwt_secret: str = Field(default="dev-secret-change-me", description="Access token signing secret")
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # Pricing
    default_free_shipping_threshold: float = 500.0
    default_shipping_fee: float = 40.0
    max_item_quantity: int = 100

    # Payment gateway (Razorpay)
    payment_currency: str = "INR"
    razorpay_key_id: str = Field(default="", description="Razorpay key id")
    razorpay_key_secret: str = Field(default="", description="Razorpay key secret")
    razorpay_api_url: str = "https://api.razorpay.com/v1"
    payment_gateway_timeout: float = 10.0  # seconds

    # Logging
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_format: str = "json"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR.parent / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
