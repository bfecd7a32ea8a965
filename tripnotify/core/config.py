import sys

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    APP_ENV: str = "development"
    APP_VERSION: str | None = None  # used as Sentry release tag
    API_URL: str = "http://localhost:8000"
    FRONTEND_URL: str = "http://localhost:5173"

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "Settings":
        if self.APP_ENV == "production":
            if not self.CLERK_ISSUER_URL:
                print(  # noqa: T201
                    "FATAL: CLERK_ISSUER_URL is required in production.",
                    file=sys.stderr,
                )
                sys.exit(1)
            if not self.SENTRY_DSN:
                import warnings
                warnings.warn(
                    "SENTRY_DSN not set in production; errors will be invisible",
                    stacklevel=2,
                )
        return self

    # Notification client
    NOTIFICATIONS_INITIAL_LIMIT: int = 30
    NOTIFICATIONS_WINDOW_SIZE: int = 50
    STREAM_RECONNECT_DELAY_SECONDS: float = 5.0
    STREAM_RECONNECT_MAX_ATTEMPTS: int | None = None  # None = retry forever
    STREAM_CONNECT_TIMEOUT_SECONDS: float = 10.0
    HTTP_TIMEOUT_SECONDS: float = 15.0

    # Notification service
    SSE_HEARTBEAT_SECONDS: float = 30.0

    # Auth (Clerk)
    CLERK_ISSUER_URL: str = ""  # e.g. "https://your-app.clerk.accounts.dev"
    CLERK_SECRET_KEY: str = ""
    CLERK_API_URL: str = "https://api.clerk.com/v1"
    CLERK_JWKS_CACHE_TTL: int = 300  # seconds to cache JWKS public keys

    # Sentry error monitoring: no-op while SENTRY_DSN is unset
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"


settings = Settings()
