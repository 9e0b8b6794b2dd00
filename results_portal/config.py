"""Application settings loaded from the environment."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RESULTS_PORTAL_", env_file=".env", extra="ignore")

    # Database (sqlite for local dev, e.g. mysql+pymysql:// or postgresql:// in production)
    database_url: str = "sqlite:///./results_portal.db"
    pool_size: int = 10
    max_overflow: int = 5
    pool_timeout: int = 10  # seconds to wait for a free connection

    # Uploaded result files
    upload_dir: str = "./uploads"

    # Admin session cookie
    session_secret: str = "dev-session-secret-change-in-production"
    session_cookie: str = "results_admin_session"
    session_max_age_seconds: int = 60 * 60 * 3  # 3 hours

    # Default admin seeded on first startup
    admin_username: str = "admin"
    admin_password: str = "change-me"

    # Access grants
    grant_ttl_seconds: int = 300  # 5 minutes
    grant_sweep_interval_seconds: int = 600

    # CORS
    cors_origins: str = "http://127.0.0.1:5500,http://localhost:5500"

    log_level: str = "INFO"

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings; usable as a FastAPI dependency."""
    return Settings()
