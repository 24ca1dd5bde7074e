"""Application settings and configuration.

This module defines all configuration options for the VELTIS backend.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="VELTIS API", alias="APP_NAME")
    platform_name: str = Field(default="VELTIS", alias="PLATFORM_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./veltis.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # JWT session settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Wallet challenge nonces
    nonce_ttl_minutes: int = Field(default=15, alias="NONCE_TTL_MINUTES")
    nonce_sweep_interval_seconds: float = Field(
        default=15 * 60,
        alias="NONCE_SWEEP_INTERVAL_SECONDS",
    )
    nonce_format: Literal["token", "numeric"] = Field(default="token", alias="NONCE_FORMAT")

    # Durable store retry policy
    store_retry_attempts: int = Field(default=3, alias="STORE_RETRY_ATTEMPTS")
    store_retry_base_delay_seconds: float = Field(
        default=1.0,
        alias="STORE_RETRY_BASE_DELAY_SECONDS",
    )
    store_retry_multiplier: float = Field(default=2.0, alias="STORE_RETRY_MULTIPLIER")

    # Degraded-mode bypasses (development only, off by default)
    allow_fallback_nonce: bool = Field(default=False, alias="ALLOW_FALLBACK_NONCE")
    fallback_nonce: str = Field(default="123456", alias="FALLBACK_NONCE")
    allow_placeholder_identity: bool = Field(
        default=False,
        alias="ALLOW_PLACEHOLDER_IDENTITY",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
