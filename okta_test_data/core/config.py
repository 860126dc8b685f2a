"""Configuration for the Okta test data seeder.

Two layers:

- `SeedConfig` holds what the run acts on (API token and organization URL).
  It is built from command-line flags only.
- `Settings` holds ambient runtime knobs (logging, HTTP timeout) loaded
  with Pydantic Settings from `OKTA_TEST_DATA_*` environment variables.
  It never carries credentials or the organization URL.
"""

from functools import lru_cache
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Ambient runtime settings."""

    model_config = SettingsConfigDict(env_prefix="OKTA_TEST_DATA_", extra="ignore")

    log_level: str = "INFO"
    structured_logs: bool = False
    http_timeout_seconds: float = 30.0

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"log_level must be a standard logging level, got '{v}'")
        return level

    @field_validator("http_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be positive")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()


class SeedConfig(BaseModel):
    """Target tenant and credentials for one run."""

    model_config = ConfigDict(frozen=True)

    api_token: SecretStr
    org: str

    @field_validator("api_token")
    @classmethod
    def validate_api_token(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("apiToken must not be empty")
        return SecretStr(v.get_secret_value().strip())

    @field_validator("org")
    @classmethod
    def validate_org(cls, v: str) -> str:
        """Require an https organization URL and drop trailing slashes."""
        org = v.strip().rstrip("/")
        parsed = urlparse(org)
        if parsed.scheme != "https" or not parsed.netloc:
            raise ValueError(f"org must be an https URL, got '{v}'")
        return org
