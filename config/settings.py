"""
Configuration settings for the application
"""
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOGS_DIR = Path("./logs")

# Store backends
STORE_SQL = "sql"
STORE_JSON = "json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Persistence
    database_url: Optional[str] = Field(default="sqlite+aiosqlite:///./gym_portal.db", alias="DATABASE_URL")
    store_backend: str = Field(default=STORE_SQL, alias="STORE_BACKEND")
    json_store_path: str = Field(default="./data/portal_store.json", alias="JSON_STORE_PATH")

    # Core authentication and security
    jwt_secret_key: Optional[str] = Field(default=None, alias="JWT_SECRET_KEY")
    jwt_expire_days: int = Field(default=7, alias="JWT_EXPIRE_DAYS")
    admin_default_password: str = Field(default="admin123", alias="ADMIN_DEFAULT_PASSWORD")

    # Pricing configuration (optional mobile app access add-on)
    app_access_monthly_fee: float = Field(default=9.99, alias="APP_ACCESS_MONTHLY_FEE")
    app_access_annual_fee: float = Field(default=99.99, alias="APP_ACCESS_ANNUAL_FEE")

    # Frontend configuration
    frontend_url: Optional[str] = Field(default="http://localhost:5173", alias="FRONTEND_URL")

    # Environment configuration
    env: Optional[str] = Field(default=None, alias="ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


# Instantiate settings object
settings = Settings()

# Determine if we're in production mode
IS_PRODUCTION = bool(settings.env and settings.env.lower() == "production")
