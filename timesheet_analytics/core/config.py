"""Application configuration."""

from decimal import Decimal
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "Timesheet Analytics"
    app_env: str = "development"
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Upper bound for a single time entry; anything above is a data-quality error.
    max_entry_hours: Decimal = Field(default=Decimal("24"), gt=0)
    analytics_cache_size: int = Field(default=128, ge=1)

    export_filename_prefix: str = "timesheet-report"
    export_pdf_title: str = "Timesheet Report"

    # Keep .env support for comma-separated values (non-JSON).
    allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TSA_",
        case_sensitive=False,
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""

    return Settings()
