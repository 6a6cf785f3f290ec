"""
CRM Dashboard Service
Centralized Configuration Management

Configuration is loaded with Pydantic settings from environment variables
(and an optional ``.env`` file), validated and typed once at startup.
"""

from functools import lru_cache
from typing import Optional, List
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store configuration (Postgres / Supabase)"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", populate_by_name=True)

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="crm", alias="database", description="Database name")
    user: str = Field(default="crm", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(
        default=None,
        alias="DATABASE_URL",
        description="Full async database URL (overrides host/port), e.g. a Supabase connection string",
    )

    @property
    def async_url(self) -> str:
        """Async database URL for asyncpg, or the DATABASE_URL override"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class SecuritySettings(BaseSettings):
    """HTTP security configuration"""

    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)

    # Rate limiting
    rate_limit_requests: int = Field(default=100, alias="RATE_LIMIT_REQUESTS", description="Rate limit requests")
    rate_limit_window_seconds: int = Field(default=60, alias="RATE_LIMIT_WINDOW_SECONDS", description="Rate limit window")

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )


class MonitoringSettings(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class ReportingSettings(BaseSettings):
    """Dashboard aggregation configuration"""

    model_config = SettingsConfigDict(env_prefix="REPORTING_")

    default_top_limit: int = Field(default=5, description="Default size of top-N rankings")
    max_top_limit: int = Field(default=100, description="Largest top-N accepted by the API")


class ChatSettings(BaseSettings):
    """Webhook automation service used by the chat widget"""

    model_config = SettingsConfigDict(env_prefix="CHAT_")

    webhook_url: Optional[str] = Field(default=None, description="Webhook receiving chat messages")
    health_url: Optional[str] = Field(default=None, description="Webhook health endpoint")
    timeout_seconds: float = Field(default=30.0, description="Chat request timeout")
    health_timeout_seconds: float = Field(default=5.0, description="Health check timeout")


class ExportSettings(BaseSettings):
    """CSV / Excel export configuration"""

    model_config = SettingsConfigDict(env_prefix="EXPORT_")

    date_format: str = Field(default="%d/%m/%Y", description="strftime format for the export date column")
    csv_bom: bool = Field(default=True, description="Prefix CSV output with a UTF-8 BOM for Excel")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="crm-dashboard", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    chat: ChatSettings = Field(default_factory=ChatSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
