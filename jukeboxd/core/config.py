"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # Database
    DATABASE_URL: str = "sqlite+pysqlite:///./jukeboxd.db"
    DATABASE_ECHO: bool = False

    # Redis (sessions/cache). "memory://" disables Redis entirely.
    REDIS_URL: str = "memory://"
    REDIS_MAX_CONNECTIONS: int = 20

    # Sessions
    SESSION_TTL_SECONDS: int = 604800  # 7 days

    # Feed pagination
    FEED_DEFAULT_LIMIT: int = 20
    FEED_MAX_LIMIT: int = 100

    # Content rules
    REVIEW_MAX_LENGTH: int = 5000

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def redis_enabled(self) -> bool:
        """Redis is used only when a real URL is configured."""
        url = (self.REDIS_URL or "").strip().lower()
        return bool(url) and url != "memory://"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
