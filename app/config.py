"""Application configuration with comprehensive validation."""
from typing import Optional, Literal
from functools import lru_cache
from pydantic import Field, model_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with production-grade validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "FoodEval Scoring Engine"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "console"

    # API
    API_V1_PREFIX: str = "/api/v1"

    # Storage / locking backends
    STORAGE_BACKEND: Literal["memory", "snowflake"] = "memory"
    LOCK_BACKEND: Literal["local", "redis"] = "local"

    # Snowflake
    SNOWFLAKE_ACCOUNT: Optional[str] = None
    SNOWFLAKE_USER: Optional[str] = None
    SNOWFLAKE_PASSWORD: Optional[SecretStr] = None
    SNOWFLAKE_DATABASE: Optional[str] = None
    SNOWFLAKE_SCHEMA: Optional[str] = None
    SNOWFLAKE_WAREHOUSE: Optional[str] = None
    SNOWFLAKE_ROLE: Optional[str] = None

    # Redis (locks + counters)
    REDIS_URL: str = "redis://localhost:6379/0"
    LOCK_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0, le=300)
    LOCK_BLOCKING_TIMEOUT_SECONDS: float = Field(default=2.0, ge=0, le=60)
    LOCK_KEY_PREFIX: str = "foodeval:lock:"

    # Default scoring policy (used when an event has none)
    DEFAULT_TRIM_HIGH_LOW_FROM_COUNT: int = Field(default=5, ge=1, le=100)
    DEFAULT_TRIM_COUNT_HIGH: int = Field(default=1, ge=0, le=10)
    DEFAULT_TRIM_COUNT_LOW: int = Field(default=1, ge=0, le=10)
    DEFAULT_ROUNDING_DECIMALS: int = Field(default=2, ge=0, le=6)

    # Evaluation capture
    AUTO_EXCLUSION_RATIO: float = Field(default=0.5, gt=0, lt=1)
    EXCLUDE_TRAINEES_FROM_CALCULATION: bool = True

    @model_validator(mode="after")
    def validate_snowflake_settings(self):
        """Snowflake backend needs credentials."""
        if self.STORAGE_BACKEND == "snowflake":
            missing = [
                name for name in ("SNOWFLAKE_ACCOUNT", "SNOWFLAKE_USER", "SNOWFLAKE_PASSWORD")
                if getattr(self, name) is None
            ]
            if missing:
                raise ValueError(f"Snowflake backend requires: {', '.join(missing)}")
        return self

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure production runs with shared storage and locks."""
        if self.APP_ENV == "production":
            if self.DEBUG:
                raise ValueError("DEBUG must be False in production")
            if self.LOCK_BACKEND != "redis":
                raise ValueError("Production requires LOCK_BACKEND=redis")
        return self

@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
