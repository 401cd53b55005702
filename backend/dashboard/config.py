"""
Application settings.

Values come from environment variables prefixed with ``DASHBOARD_`` (or a
``.env`` file). A single ``Settings`` instance is built at process start and
handed to ``create_app``.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Used only when DASHBOARD_JWT_SECRET_KEY is unset; refused in production.
FALLBACK_SECRET_KEY = "a_fallback_secret_key_if_env_is_missing"


class ConfigurationError(RuntimeError):
    pass


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DASHBOARD_", env_file=".env", extra="ignore")

    app_name: str = "Sales Dashboard API"
    environment: str = "development"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./dashboard.db"
    seed_on_startup: bool = True

    # Auth
    jwt_secret_key: Optional[str] = None
    jwt_algorithm: str = "HS256"
    token_expire_minutes: int = 60
    password_hash_rounds: int = 10

    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )
    log_level: str = "INFO"

    @property
    def signing_key(self) -> str:
        """The JWT signing key, falling back to a constant outside production."""
        self.validate_signing_key()
        return self.jwt_secret_key or FALLBACK_SECRET_KEY

    def validate_signing_key(self) -> None:
        """Raise ConfigurationError when production runs without a signing key."""
        if not self.jwt_secret_key and self.environment.lower() == "production":
            raise ConfigurationError("DASHBOARD_JWT_SECRET_KEY must be set in production")

    @property
    def uses_fallback_secret(self) -> bool:
        return not self.jwt_secret_key


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
