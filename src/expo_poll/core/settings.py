"""Application settings and configuration.

This module defines all configuration options for the Expo Poll service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The vote-authorization protocol values (shared secret, validity window,
    quotas) have no defaults where a wrong guess would silently weaken it.
    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Expo Poll", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Vote-authorization protocol
    shared_secret: str = Field(alias="SHARED_SECRET", min_length=1)
    validity_window_buckets: int = Field(alias="VALIDITY_WINDOW_BUCKETS", ge=0)
    max_votes: int = Field(alias="MAX_VOTES", ge=1)
    max_devices_per_project: int = Field(default=3, alias="MAX_DEVICES_PER_PROJECT", ge=1)
    bucket_width_seconds: int = Field(default=10, alias="BUCKET_WIDTH_SECONDS", ge=1)
    base_url: str = Field(default="http://localhost:8000", alias="BASE_URL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./expo_poll.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    database_timeout_seconds: float = Field(
        default=5.0,
        alias="DATABASE_TIMEOUT_SECONDS",
        gt=0,
    )

    # CORS configuration for the display and voting pages
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
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
        populate_by_name=True,
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.

        Returns:
            Database URL compatible with synchronous database drivers
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
