"""
Configuration management for the OAuth relay.

Uses pydantic-settings for environment variable management. Settings are
loaded once at startup and treated as immutable for the process lifetime.
"""
from typing import Optional
from urllib.parse import urlsplit

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-me-in-production-use-strong-secret"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # App
    APP_NAME: str = "authrelay"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    PORT: int = 5000

    # Google OAuth
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_AUTH_URL: str = "https://accounts.google.com/o/oauth2/v2/auth"
    GOOGLE_TOKEN_URL: str = "https://oauth2.googleapis.com/token"
    GOOGLE_USERINFO_URL: str = "https://openidconnect.googleapis.com/v1/userinfo"
    GOOGLE_SCOPES: str = "openid email profile"
    GOOGLE_ACCESS_TYPE: Optional[str] = "offline"
    GOOGLE_PROMPT: Optional[str] = "consent"

    # Frontend / backend locations
    FRONTEND_URL: str = "http://localhost:3000"
    BACKEND_URL: str = "http://localhost:5000"
    GOOGLE_CALLBACK_PATH: str = "/auth/google/callback"
    LOGIN_SUCCESS_PATH: str = "/dashboard.html"
    LOGIN_FAILURE_PATH: str = "/"

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 10.0
    PROFILE_FETCH_RETRIES: int = 2
    PROFILE_RETRY_DELAY_SECONDS: float = 0.25

    # State and session lifetimes
    STATE_TTL_SECONDS: int = 600
    STATE_MAX_ENTRIES: int = 10_000
    SESSION_TTL_SECONDS: int = 60 * 60 * 24 * 7
    SWEEP_INTERVAL_SECONDS: float = 60.0

    # Security
    JWT_SECRET_KEY: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"

    # Cookies
    SESSION_COOKIE_NAME: str = "session_token"
    ACCESS_TOKEN_COOKIE_NAME: str = "access_token"
    ACCESS_TOKEN_COOKIE_MAX_AGE: int = 60 * 60
    COOKIE_DOMAIN: Optional[str] = None
    COOKIE_SECURE: Optional[bool] = None

    # Observability
    SENTRY_DSN: Optional[str] = None

    @model_validator(mode="after")
    def check_production_secrets(self) -> "Settings":
        if self.is_production and self.JWT_SECRET_KEY == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET_KEY must be set in production")
        if self.STATE_TTL_SECONDS <= 0 or self.SESSION_TTL_SECONDS <= 0:
            raise ValueError("STATE_TTL_SECONDS and SESSION_TTL_SECONDS must be positive")
        if self.PROFILE_FETCH_RETRIES < 0:
            raise ValueError("PROFILE_FETCH_RETRIES cannot be negative")
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def GOOGLE_REDIRECT_URI(self) -> str:
        # Must match the URI registered with Google byte for byte.
        return self.BACKEND_URL.rstrip("/") + self.GOOGLE_CALLBACK_PATH

    @property
    def scopes(self) -> list[str]:
        return [scope for scope in self.GOOGLE_SCOPES.replace(",", " ").split() if scope]

    @property
    def login_success_url(self) -> str:
        return self.FRONTEND_URL.rstrip("/") + self.LOGIN_SUCCESS_PATH

    @property
    def login_failure_url(self) -> str:
        return self.FRONTEND_URL.rstrip("/") + self.LOGIN_FAILURE_PATH

    @property
    def cross_origin(self) -> bool:
        """True when the frontend is served from a different origin than the backend."""
        frontend = urlsplit(self.FRONTEND_URL)
        backend = urlsplit(self.BACKEND_URL)
        return (frontend.scheme, frontend.netloc) != (backend.scheme, backend.netloc)


# Global settings instance
settings = Settings()
