"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with validation.
"""
from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    environment: str = Field(default="development", description="Environment: development, staging, production")
    debug: bool = Field(default=False, description="Debug mode")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./dm_core.db",
        description="Async SQLAlchemy connection URL"
    )
    database_pool_size: int = Field(default=20, description="Connection pool size (ignored for SQLite)")
    auto_create_tables: bool = Field(default=False, description="Create tables on startup (development only)")

    # Redis
    redis_url: str = Field(default="", description="Redis connection URL (empty disables profile caching)")
    redis_password: str = Field(default="", description="Redis password")

    # Security
    jwt_secret: str = Field(
        default="change-me-in-production-this-is-32-chars",
        min_length=32,
        description="Secret used to verify bearer tokens (min 32 chars)"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")

    # CORS
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    # Rate Limiting
    rate_limit_per_minute: int = Field(default=30, description="Sends per minute per client")
    reaction_rate_limit_per_minute: int = Field(default=60, description="Reactions per minute per client")

    # WebSocket
    ws_heartbeat_interval: int = Field(default=30, description="WebSocket heartbeat interval in seconds")

    # Messaging rules
    edit_window_seconds: int = Field(default=60, ge=0, description="Seconds after creation during which a message can be edited")
    reaction_cap: int = Field(default=2, ge=1, description="Live reactions allowed per user per message")
    preview_length: int = Field(default=50, ge=1, description="Characters of message content shown in notifications")

    # Notifications
    notification_backend: str = Field(default="database", description="Notification sink: database, webhook or none")
    notification_webhook_url: str = Field(default="", description="Webhook URL for the webhook notification sink")
    notification_timeout: float = Field(default=5.0, description="Webhook request timeout in seconds")

    # Cache TTL (in seconds)
    cache_user_ttl: int = Field(default=600, description="Profile cache TTL in seconds")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format: json or text")

    def get_allowed_origins_list(self) -> List[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
