"""
Environment settings for the Health Transformation service.

Values come from the process environment or a local .env file.
Business rules (thresholds, routine defaults) are not settings; they live
in config/transformation_rules.yaml and are read by
services/transformation/config.py.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Literal, Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./transformation.db")
    DB_POOL_SIZE: int = Field(default=5, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=10, ge=0)
    DB_POOL_RECYCLE: int = Field(default=3600)  # seconds

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"

    # Celery
    CELERY_BROKER_URL: str = Field(default="memory://")
    CELERY_RESULT_BACKEND: str = Field(default="cache+memory://")
    CELERY_TASK_ALWAYS_EAGER: bool = False

    # Daily plan expansion
    DAILY_PLAN_SOFT_TIME_LIMIT_S: float = Field(default=120.0, gt=0)
    DAILY_PLAN_PREVIEW_MAX_DAYS: int = Field(default=31, ge=1)

    # Certificates
    CERTIFICATE_ISSUER_NAME: str = "Health Transformation Certification Authority"
    CERTIFICATE_ISSUER_TITLE: str = "Chief Health Officer"
    CERTIFICATE_ISSUER_ORGANIZATION: str = "Health Transformation"
    CERTIFICATE_VERIFY_BASE_URL: str = "https://health-transformation.local/verify"
    CERTIFICATE_ERROR_CORRECTION_LEVEL: int = Field(default=3, ge=0, le=3)

    # Runtime
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = False
    CORS_ORIGINS: Optional[str] = None  # comma-separated

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    @field_validator("CERTIFICATE_VERIFY_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


settings = Settings()
