from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .durations import parse_expires_in

API_DIR = Path(__file__).resolve().parents[2]
REPO_ROOT = API_DIR.parents[1]
ENV_FILES = [REPO_ROOT / ".env", API_DIR / ".env"]

for env_path in ENV_FILES:
    if env_path.exists():
        load_dotenv(env_path, override=False)


class ConfigurationError(RuntimeError):
    """Raised when mandatory settings are missing or invalid."""


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        case_sensitive=False, extra="ignore", frozen=True, populate_by_name=True
    )

    app_name: str = Field(default="Library Management API", alias="APP_NAME")
    app_env: str = Field(default="development", alias="APP_ENV")
    api_prefix: str = Field(default="/api", alias="API_PREFIX")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    jwt_secret: str = Field(default="", alias="JWT_SECRET")
    jwt_expires_in: str = Field(default="1d", alias="JWT_EXPIRES_IN")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_audience: Optional[str] = Field(default=None, alias="JWT_AUDIENCE")
    jwt_issuer: Optional[str] = Field(default=None, alias="JWT_ISSUER")

    bcrypt_salt_rounds: int = Field(default=10, ge=4, le=31, alias="BCRYPT_SALT_ROUNDS")

    # Pagination bounds
    pagination_default_limit: int = Field(default=20, ge=1, alias="PAGINATION_DEFAULT_LIMIT")
    pagination_max_limit: int = Field(default=100, ge=1, alias="PAGINATION_MAX_LIMIT")

    backend_cors_origins_raw: str = Field(default="*", alias="BACKEND_CORS_ORIGINS")

    @property
    def backend_cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.backend_cors_origins_raw.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"


def validate_settings(settings: Settings) -> Settings:
    """Reject configurations the API cannot start with."""
    if not settings.jwt_secret.strip():
        raise ConfigurationError("JWT_SECRET is required in environment or .env")
    try:
        parse_expires_in(settings.jwt_expires_in)
    except ValueError as exc:
        raise ConfigurationError(f"JWT_EXPIRES_IN is invalid: {exc}") from exc
    if settings.pagination_default_limit > settings.pagination_max_limit:
        raise ConfigurationError(
            "PAGINATION_DEFAULT_LIMIT must not exceed PAGINATION_MAX_LIMIT"
        )
    return settings


@lru_cache
def get_settings() -> Settings:
    try:
        settings = Settings()
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
    return validate_settings(settings)
