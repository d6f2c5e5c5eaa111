from datetime import datetime
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "sqlite+aiosqlite:///./hackportal.db"
    environment: str = "dev"  # dev, production
    # Storage settings
    storage_backend: str = "local"  # local, gcs
    storage_path: str = "storage/cvs"
    storage_max_size: int = 10 * 1024 * 1024  # 10MB default
    gcs_bucket_name: str = ""
    gcs_project_id: str = ""
    gcs_credentials_path: str = ""
    # Identity service settings
    auth_url: str = "http://localhost:8000"
    application_url: str = "http://localhost:8080"
    auth_service_token: str = ""
    auth_timeout_seconds: float = 5.0
    # Hackathon settings
    hackathon_short_name: str = "Hackathon"
    hackathon_full_name: str = "Hackathon"
    contact_email: str = ""
    applications_open: datetime | None = None
    applications_close: datetime | None = None
    # Review settings
    review_batch_size: int = 5
    reviews_per_applicant: int = 2
    review_max_score: float = 10.0
    review_assignment_fail_soft: bool = True  # If True, query failures return an empty batch

    @field_validator("environment")
    @classmethod
    def environment_supported(cls, v: str) -> str:
        if v not in ("dev", "production"):
            raise ValueError("must be 'dev' or 'production'")
        return v

    @field_validator("review_batch_size", "reviews_per_applicant")
    @classmethod
    def positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be 1 or greater")
        return v

    def applications_are_open(self, now: datetime | None = None) -> bool:
        """Check whether ``now`` falls inside the configured application window."""
        now = now or datetime.utcnow()
        if self.applications_open and now < self.applications_open:
            return False
        if self.applications_close and now > self.applications_close:
            return False
        return True


class LoggingSettings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # "text" or "json"
    ENV: str = "dev"  # dev | staging | prod

    model_config = SettingsConfigDict(env_prefix="APP_")


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance for the running process."""
    return Settings()
