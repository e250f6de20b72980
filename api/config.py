"""
Environment-aware configuration.

Flask-level settings live on the config classes below (loaded with
app.config.from_object). The values the auth layer depends on are frozen into
an AuthSettings instance once at startup and handed to every service; nothing
reads them from the environment at request time.
"""
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping

from dotenv import load_dotenv

from utils.errors import ConfigError

load_dotenv()  # Read .env if present


class BaseConfig:
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    # "dev" unlocks the admin reset endpoint
    PLATFORM = os.getenv("PLATFORM", "")

    # No defaults for secrets: a missing value must stop the app from starting
    JWT_SECRET = os.getenv("JWT_SECRET")
    POLKA_KEY = os.getenv("POLKA_KEY")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "chirpy")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "3600")))
    REFRESH_TOKEN_EXPIRES = timedelta(days=int(os.getenv("REFRESH_TOKEN_EXPIRES_DAYS", "60")))
    JWT_CLOCK_SKEW = timedelta(seconds=int(os.getenv("JWT_CLOCK_SKEW_SECONDS", "0")))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True

class TestingConfig(BaseConfig):
    TESTING = True
    # Let registered error handlers shape the response instead of re-raising
    PROPAGATE_EXCEPTIONS = False

class ProductionConfig(BaseConfig):
    DEBUG = False

def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig

@dataclass(frozen=True)
class AuthSettings:
    """Read-only auth configuration shared by the token services."""

    jwt_secret: str
    api_key: str
    issuer: str = "chirpy"
    access_token_ttl: timedelta = timedelta(hours=1)
    refresh_token_ttl: timedelta = timedelta(days=60)
    clock_skew: timedelta = timedelta(0)

    def __post_init__(self):
        if not self.jwt_secret or not self.jwt_secret.strip():
            raise ConfigError("JWT_SECRET is not set")
        if not self.api_key or not self.api_key.strip():
            raise ConfigError("POLKA_KEY is not set")
        if self.access_token_ttl <= timedelta(0) or self.refresh_token_ttl <= timedelta(0):
            raise ConfigError("token lifetimes must be positive")
        if self.clock_skew < timedelta(0):
            raise ConfigError("JWT_CLOCK_SKEW_SECONDS must not be negative")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "AuthSettings":
        return cls(
            jwt_secret=config.get("JWT_SECRET"),
            api_key=config.get("POLKA_KEY"),
            issuer=config.get("JWT_ISSUER", "chirpy"),
            access_token_ttl=config.get("ACCESS_TOKEN_EXPIRES", timedelta(hours=1)),
            refresh_token_ttl=config.get("REFRESH_TOKEN_EXPIRES", timedelta(days=60)),
            clock_skew=config.get("JWT_CLOCK_SKEW", timedelta(0)),
        )
