"""Application configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the appointment lifecycle service, read from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="ClinicOps Appointments API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")

    # postgresql:// and sqlite:// URLs are rewritten to their async drivers
    database_url: str = Field(..., alias="DATABASE_URL")

    # Doctor directory cache
    cache_enabled: bool = Field(default=False, alias="CACHE_ENABLED")
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    doctor_cache_ttl: int = Field(default=900, ge=1, alias="DOCTOR_CACHE_TTL")

    # Operator tokens are issued by the identity service; only verified here
    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=30, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    enforce_sequential_consultation: bool = Field(
        default=True,
        alias="ENFORCE_SEQUENTIAL_CONSULTATION",
        description="Allow only one in-progress consultation per service and date",
    )

    cors_origins_str: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @property
    def cors_origins(self) -> list[str]:
        """Comma separated ``CORS_ORIGINS`` as a list."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]


settings = get_settings()
