"""
Application configuration using Pydantic Settings.
"""

import os
from datetime import timedelta
from functools import lru_cache

from pydantic_settings import BaseSettings

from authcore.auth.tokens import TokenScope


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite:///./dev.db"
    db_timeout_seconds: int = 3

    # App settings
    app_name: str = "Auth Core"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Token lifetimes, one per scope
    activation_token_ttl_hours: int = 72
    authentication_token_ttl_hours: int = 24
    password_reset_token_ttl_minutes: int = 45

    # SendGrid Email
    sendgrid_api_key: str = ""
    sendgrid_from_email: str = "noreply@example.com"
    sendgrid_from_name: str = "Auth Core"

    # Frontend URL (for email links)
    frontend_url: str = "http://localhost:8000"

    # Initial user (for first-time setup)
    initial_user_username: str = ""
    initial_user_email: str = ""
    initial_user_password: str = ""

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"

    def ttl_for(self, scope: TokenScope) -> timedelta:
        """Return the time-to-live applied to newly issued tokens of a scope."""
        scope = TokenScope(scope)
        if scope is TokenScope.activation:
            return timedelta(hours=self.activation_token_ttl_hours)
        if scope is TokenScope.authentication:
            return timedelta(hours=self.authentication_token_ttl_hours)
        return timedelta(minutes=self.password_reset_token_ttl_minutes)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
