# app/core/config.py
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables (or .env)."""

    app_name: str = Field(default="Talento Local", description="Name used in banners and emails")
    app_env: str = Field(default="development", description="development / production / test")
    log_level: str = Field(default="INFO")

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./talento.db")
    database_echo: bool = Field(default=False)

    # Payment processor (MercadoPago)
    processor_base_url: str = Field(default="https://api.mercadopago.com")
    processor_access_token: str = Field(default="", description="Bearer token for the processor API")
    processor_timeout_seconds: float = Field(default=10.0, gt=0)
    processor_retry_attempts: int = Field(default=3, ge=1)

    # Fallback payer email sent to the processor when the client gives none
    default_payer_email: str = Field(default="test_user@test.com")

    # Email
    email_provider: Literal["smtp", "console"] = Field(default="console")
    email_host: str = Field(default="smtp.gmail.com")
    email_port: int = Field(default=587)
    email_user: str = Field(default="")
    email_password: str = Field(default="")
    email_from: str = Field(default="")
    email_timeout_seconds: float = Field(default=10.0, gt=0)

    # Pending reservation sweep (0 disables it)
    sweep_interval_seconds: float = Field(default=0, ge=0)
    sweep_min_age_seconds: float = Field(default=300, ge=0)
    sweep_batch_size: int = Field(default=50, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def sender_address(self) -> str:
        return self.email_from or self.email_user


@lru_cache()
def get_settings() -> Settings:
    return Settings()
