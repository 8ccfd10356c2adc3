from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Project Info
    PROJECT_NAME: str = "API Key Service"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", description="Environment: development, staging, production")

    # Database
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./data/apikeys.db",
        description="Database URL (SQLite, MySQL or PostgreSQL async driver)"
    )
    DB_POOL_SIZE: int = Field(default=10, description="Database connection pool size")
    DB_MAX_OVERFLOW: int = Field(default=10, description="Database max overflow connections")
    DB_POOL_TIMEOUT: int = Field(default=30, description="Database pool timeout in seconds")
    DB_POOL_RECYCLE: int = Field(default=3600, description="Database pool recycle time in seconds")
    DB_CREATE_TABLES: bool = Field(default=True, description="Create missing tables on startup")
    STORE_TIMEOUT_SECONDS: float = Field(default=10.0, description="Upper bound for a single store call")

    # Security - admin sessions
    SECRET_KEY: str = Field(..., description="Secret key for signing admin session tokens")
    ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    ADMIN_SESSION_EXPIRE_MINUTES: int = Field(default=60, description="Admin session lifetime in minutes")
    ADMIN_SESSION_COOKIE_NAME: str = Field(default="admin_session", description="Cookie carrying the admin session token")

    @field_validator('SECRET_KEY')
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        if len(v) < 32:
            raise ValueError('SECRET_KEY must be at least 32 characters')
        return v

    # API keys
    KEY_ONLINE_WINDOW_DAYS: int = Field(default=30, description="Days since last use before a key is shown offline")

    # Security - CORS
    BACKEND_CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins"
    )
    MAX_REQUEST_SIZE: int = Field(default=1048576, description="Max request body size in bytes (default 1MB)")

    # Server Configuration
    WORKERS: int = Field(default=4, description="Number of Uvicorn workers")
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=3000, description="Server port")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    LOG_DIR: str = Field(default="./logs", description="Directory for log files")
    LOG_RETENTION_DAYS: int = Field(default=30, description="Number of days to keep log files")
    LOG_ENABLE_REQUEST_LOGGING: bool = Field(default=True, description="Enable HTTP request/response logging")

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = Field(default=True, description="Enable rate limiting")
    RATE_LIMIT_DEFAULT: str = Field(default="100/minute", description="Default rate limit")
    RATE_LIMIT_AUTH: str = Field(default="5/minute", description="Rate limit for admin login/register")
    RATE_LIMIT_VALIDATE: str = Field(default="60/minute", description="Rate limit for key validation")
    RATE_LIMIT_STORAGE_URI: str = Field(default="memory://", description="Rate limit storage URI")

    # CSRF Protection
    CSRF_ENABLED: bool = Field(default=True, description="Enable CSRF protection for cookie sessions")

    def get_log_level(self) -> str:
        """Get log level based on environment."""
        if self.ENVIRONMENT.lower() in ["development", "dev", "test"]:
            return "DEBUG"
        return self.LOG_LEVEL.upper()

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
