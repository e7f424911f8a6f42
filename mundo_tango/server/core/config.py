"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
All values load from environment variables and the ``.env`` file; grouped
settings are exposed as small pydantic models through properties.
"""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class CORSConfig(BaseModel):
    """CORS configuration."""

    origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS", description="Allowed CORS origins (use * for all)")
    allow_credentials: bool = Field(
        default=True, alias="CORS_ALLOW_CREDENTIALS", description="Allow credentials in CORS requests"
    )
    allow_methods: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_METHODS", description="Allowed HTTP methods (use * for all)"
    )
    allow_headers: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_HEADERS", description="Allowed HTTP headers (use * for all)"
    )

    model_config = {"populate_by_name": True}


class BusinessRulesConfig(BaseModel):
    """Platform constants used by donations, marketplace payouts and the feed."""

    platform_fee_rate: float = Field(
        default=0.05, alias="PLATFORM_FEE_RATE", description="Share kept by the platform on donations and sales"
    )
    settlement_delay_days: int = Field(
        default=7, alias="SETTLEMENT_DELAY_DAYS", description="Days before a sale becomes payable to the seller"
    )
    auto_refund_window_days: int = Field(
        default=30, alias="AUTO_REFUND_WINDOW_DAYS", description="Days during which a purchase can be refunded"
    )
    dispute_window_days: int = Field(
        default=90, alias="DISPUTE_WINDOW_DAYS", description="Days during which a purchase can be disputed"
    )
    feed_candidate_limit: int = Field(
        default=200, alias="FEED_CANDIDATE_LIMIT", description="Maximum posts scored for a personalized feed"
    )
    feed_max_consecutive_author: int = Field(
        default=3, alias="FEED_MAX_CONSECUTIVE_AUTHOR", description="Posts in a row allowed from one author"
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Server Configuration
    # =====================================================================
    server_host: str = Field(
        default="0.0.0.0",
        description="Server host address to bind to",
        alias="MUNDO_TANGO_SERVER_HOST",
    )
    server_port: int = Field(
        default=8000,
        description="Server port number",
        alias="MUNDO_TANGO_SERVER_PORT",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="MUNDO_TANGO_LOG_LEVEL",
    )
    log_format: str = Field(default="detailed", description="simple, detailed or json", alias="LOG_FORMAT")
    log_file_dir: str = Field(default="logs", description="Directory for the log file", alias="LOG_FILE_DIR")
    enable_file_logging: bool = Field(
        default=False, description="Also write logs to a file", alias="ENABLE_FILE_LOGGING"
    )

    # =====================================================================
    # Database Configuration
    # =====================================================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./mundo_tango.db",
        description="Async SQLAlchemy connection URL (PostgreSQL URLs are rewritten to asyncpg)",
        alias="DATABASE_URL",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements", alias="DATABASE_ECHO")

    # =====================================================================
    # CORS Configuration
    # =====================================================================
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["*"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    # =====================================================================
    # Business Rules
    # =====================================================================
    platform_fee_rate: float = Field(default=0.05, alias="PLATFORM_FEE_RATE")
    settlement_delay_days: int = Field(default=7, alias="SETTLEMENT_DELAY_DAYS")
    auto_refund_window_days: int = Field(default=30, alias="AUTO_REFUND_WINDOW_DAYS")
    dispute_window_days: int = Field(default=90, alias="DISPUTE_WINDOW_DAYS")
    feed_candidate_limit: int = Field(default=200, alias="FEED_CANDIDATE_LIMIT")
    feed_max_consecutive_author: int = Field(default=3, alias="FEED_MAX_CONSECUTIVE_AUTHOR")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def cors(self) -> CORSConfig:
        """Get CORS configuration from environment variables."""
        return CORSConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def business(self) -> BusinessRulesConfig:
        """Get platform business rule constants."""
        return BusinessRulesConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
