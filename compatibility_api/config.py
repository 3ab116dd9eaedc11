"""Application configuration with environment variable validation."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

DEFAULT_COLUMNS = ["Year", "Make", "Model", "Trim", "Engine", "Notes"]


def _split_csv(value):
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # eBay Sell Metadata API
    ebay_auth_token: str = Field(default="", validation_alias="EBAY_AUTH_TOKEN")
    ebay_api_base_url: str = Field(
        default="https://api.ebay.com/sell/metadata/v1/compatibilities",
        validation_alias="EBAY_API_BASE_URL",
    )
    ebay_marketplace_id: str = Field(
        default="EBAY_MOTORS_US",
        validation_alias="EBAY_MARKETPLACE_ID",
    )
    default_category_id: str = Field(
        default="179679",
        validation_alias="EBAY_DEFAULT_CATEGORY_ID",
    )
    request_timeout: float = Field(default=15.0, validation_alias="EBAY_TIMEOUT_SECONDS")

    # Lookup / rendering policy
    fan_out_property: str = Field(default="Year", validation_alias="FAN_OUT_PROPERTY")
    # Annotated as str so pydantic-settings does not try to JSON-decode the env value
    compatibility_columns: str = Field(
        default=",".join(DEFAULT_COLUMNS),
        validation_alias="COMPATIBILITY_COLUMNS",
    )

    # Web
    allowed_origins: str = Field(default="*", validation_alias="ALLOWED_ORIGINS")
    static_dir: Optional[str] = Field(default=None, validation_alias="STATIC_DIR")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("compatibility_columns", "allowed_origins", mode="before")
    @classmethod
    def join_lists(cls, value):
        """Allow list values when settings are built in code."""
        if isinstance(value, (list, tuple)):
            return ",".join(value)
        return value

    @property
    def credential_configured(self) -> bool:
        return bool(self.ebay_auth_token.strip())

    @property
    def columns(self) -> list[str]:
        return _split_csv(self.compatibility_columns) or list(DEFAULT_COLUMNS)

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.allowed_origins)

    @property
    def multi_compatibility_url(self) -> str:
        return f"{self.ebay_api_base_url.rstrip('/')}/get_multi_compatibility_property_values"

    @property
    def property_values_url(self) -> str:
        return f"{self.ebay_api_base_url.rstrip('/')}/get_compatibility_property_values"


@lru_cache
def get_settings() -> Settings:
    return Settings()
