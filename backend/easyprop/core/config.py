"""
Application configuration
"""

from typing import List, Optional
from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    """Application settings"""

    # Logging Settings
    LOG_LEVEL: str = "INFO"

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "EasyProp Marketplace"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # CORS Settings
    BACKEND_CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Database Settings (Supabase exposes a plain Postgres connection string)
    POSTGRES_SERVER: str = ""
    POSTGRES_USER: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = ""
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # Supabase Settings
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_STORAGE_BUCKET: str = "property-images"
    SUPABASE_PROFILE_BUCKET: str = "profile-photos"

    # Firebase Authentication
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_API_KEY: str = ""
    FIREBASE_CERTS_URL: str = (
        "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
    )
    FIREBASE_IDENTITY_URL: str = "https://identitytoolkit.googleapis.com/v1"

    # Redis Settings
    REDIS_URL: str = ""
    ENABLE_CACHE: bool = True
    CACHE_TTL_SECONDS: int = 300

    # EmailJS
    EMAILJS_API_URL: str = "https://api.emailjs.com/api/v1.0/email/send"
    EMAILJS_SERVICE_ID: str = ""
    EMAILJS_TEMPLATE_ID: str = ""
    EMAILJS_PUBLIC_KEY: str = ""

    # Business defaults
    HAPPY_CUSTOMERS_BASE: int = 5000
    DEFAULT_COUNTRY: str = "India"
    DEFAULT_CURRENCY: str = "INR"
    MAX_PROFILE_PHOTO_BYTES: int = 5 * 1024 * 1024

    # Maintenance scheduler
    ENABLE_STATS_SCHEDULER: bool = False
    STATS_RECALC_TIME: str = "02:00"

    # Migration
    MIGRATION_DATA_DIR: str = "./migration/data"

    # Outbound HTTP
    REQUEST_TIMEOUT: float = 30.0

    # Environment
    ENVIRONMENT: str = "development"  # development, staging, production

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def get_database_url(self) -> str:
        """
        Construct database URL from components if not explicitly provided
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # Default to SQLite for development if PostgreSQL settings not provided
        if not all([self.POSTGRES_SERVER, self.POSTGRES_USER, self.POSTGRES_DB]):
            return "sqlite:///./easyprop.db"

        password_str = f":{self.POSTGRES_PASSWORD}" if self.POSTGRES_PASSWORD else ""
        return f"postgresql://{self.POSTGRES_USER}{password_str}@{self.POSTGRES_SERVER}/{self.POSTGRES_DB}"

    @property
    def cache_enabled(self) -> bool:
        return self.ENABLE_CACHE and bool(self.REDIS_URL)

    @property
    def emailjs_configured(self) -> bool:
        return all([self.EMAILJS_SERVICE_ID, self.EMAILJS_TEMPLATE_ID, self.EMAILJS_PUBLIC_KEY])

    def get_cors_origins(self) -> List[str]:
        """Return the list of allowed CORS origins"""
        if self.BACKEND_CORS_ORIGINS:
            origins = [origin.strip() for origin in self.BACKEND_CORS_ORIGINS.split(",") if origin.strip()]
            return origins if origins else self.CORS_ORIGINS
        return self.CORS_ORIGINS


# Create global settings instance
settings = Settings()


def get_absolute_path(relative_path: str) -> Path:
    """Convert relative path to absolute path"""
    path = Path(relative_path)
    if path.is_absolute():
        return path
    return Path.cwd() / path
