"""
Application configuration management using Pydantic Settings.
"""
from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    APP_NAME: str = "CertifyHub"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production|test)$")

    # API
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "CertifyHub API"
    BACKEND_CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # Security
    SECRET_KEY: str = Field(..., min_length=32)
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours
    BCRYPT_ROUNDS: int = Field(default=12, ge=4, le=31)

    # JWT Settings
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "certifyhub-api"
    TOKEN_VERSION_CHECK: bool = False

    # Rejected requests (not found, forbidden, bad token) share one status
    REJECTION_STATUS_CODE: int = Field(default=400, ge=400, le=499)

    # Database
    POSTGRES_USER: str = "certifyhub"
    POSTGRES_PASSWORD: str = "certifyhub"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "certifyhub"
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)
    DB_COMMAND_TIMEOUT_SECONDS: float = 10.0
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 40

    # MinIO / S3 asset storage
    S3_ENDPOINT: str = "localhost:9000"
    S3_ACCESS_KEY: Optional[str] = None
    S3_SECRET_KEY: Optional[str] = None
    S3_BUCKET_NAME: str = "certifyhub"
    S3_REGION: str = "us-east-1"
    S3_USE_SSL: bool = False
    S3_PUBLIC_BASE_URL: Optional[str] = None
    UPLOAD_TIMEOUT_SECONDS: float = 30.0

    # Sentry
    SENTRY_DSN: Optional[str] = None
    SENTRY_ENVIRONMENT: Optional[str] = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100
    TOP_N_TRENDING: int = 10
    RECENT_LIMIT: int = 20

    # File Upload
    MAX_UPLOAD_SIZE_MB: int = 10
    ALLOWED_UPLOAD_EXTENSIONS: List[str] = [".pdf", ".png", ".jpg", ".jpeg", ".webp"]

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info) -> str:
        if v:
            return v
        values = info.data
        user = values.get("POSTGRES_USER")
        password = values.get("POSTGRES_PASSWORD")
        host = values.get("POSTGRES_HOST", "localhost")
        port = values.get("POSTGRES_PORT", 5432)
        db = values.get("POSTGRES_DB", "certifyhub")
        return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str):
            return [i.strip() for i in v.split(",")]
        return v

    @property
    def max_upload_size_bytes(self) -> int:
        """Calculate max upload size in bytes."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"

    @property
    def is_sqlite(self) -> bool:
        return str(self.DATABASE_URL).startswith("sqlite")

    def get_engine_options(self) -> Dict[str, Any]:
        """Get engine keyword arguments for the configured database driver."""
        if self.is_sqlite:
            return {
                "echo": self.DEBUG,
                "connect_args": {"timeout": self.DB_COMMAND_TIMEOUT_SECONDS},
            }
        return {
            "echo": self.DEBUG,
            "pool_pre_ping": True,
            "pool_size": self.DB_POOL_SIZE,
            "max_overflow": self.DB_MAX_OVERFLOW,
            "pool_recycle": 3600,
            "connect_args": {"command_timeout": self.DB_COMMAND_TIMEOUT_SECONDS},
        }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()


# Create a settings instance for easy import
settings = get_settings()
